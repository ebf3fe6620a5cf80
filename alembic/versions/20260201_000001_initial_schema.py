"""Initial schema: users, properties, units, leases, invoices, payments

Revision ID: 20260201_000001
Revises: None
Create Date: 2026-02-01

Creates the tables used by move-in, lease management, rent scheduling and
monthly invoicing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260201_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column(
            'role',
            sa.Enum('SUPER_ADMIN', 'ADMIN', 'OWNER', 'TENANT', name='user_role'),
            nullable=False
        ),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('zip_code', sa.String(length=20), nullable=True),
        sa.Column('base_rent', sa.Numeric(precision=12, scale=2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_properties_owner_id'),
    )
    op.create_index('ix_properties_owner_id', 'properties', ['owner_id'])

    op.create_table(
        'property_units',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('unit_type', sa.String(length=50), nullable=False),
        sa.Column('floor', sa.Integer(), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=False),
        sa.Column('bathrooms', sa.Integer(), nullable=False),
        sa.Column('size_sq_ft', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('rent_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('AVAILABLE', 'OCCUPIED', 'MAINTENANCE', name='unit_status', create_constraint=True),
            nullable=False,
            server_default='AVAILABLE'
        ),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['property_id'],
            ['properties.id'],
            name='fk_property_units_property_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], name='fk_property_units_tenant_id'),
        sa.CheckConstraint(
            "(status = 'OCCUPIED' AND tenant_id IS NOT NULL) "
            "OR (status <> 'OCCUPIED' AND tenant_id IS NULL)",
            name='ck_property_units_status_tenant'
        ),
    )
    op.create_index('ix_property_units_property_id', 'property_units', ['property_id'])
    op.create_index('ix_property_units_status', 'property_units', ['status'])
    op.create_index('ix_property_units_tenant_id', 'property_units', ['tenant_id'])

    op.create_table(
        'leases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('lease_start_date', sa.Date(), nullable=False),
        sa.Column('lease_end_date', sa.Date(), nullable=False),
        sa.Column('monthly_rent', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('security_deposit', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('advance_payment', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('agreement_number', sa.String(length=20), nullable=True),
        sa.Column('agreement_pdf_path', sa.String(length=500), nullable=True),
        sa.Column(
            'status',
            sa.Enum('ACTIVE', 'EXPIRED', 'TERMINATED', name='lease_status', create_constraint=True),
            nullable=False,
            server_default='ACTIVE'
        ),
        sa.Column('terminated_date', sa.DateTime(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('late_fee_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('late_fee_after_days', sa.Integer(), nullable=False),
        sa.Column('notice_period_days', sa.Integer(), nullable=False),
        sa.Column('pet_allowed', sa.Boolean(), nullable=False),
        sa.Column('smoking_allowed', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('signed_date', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('move_in_date', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('move_out_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('agreement_number', name='uq_leases_agreement_number'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_leases_property_id'),
        sa.ForeignKeyConstraint(['unit_id'], ['property_units.id'], name='fk_leases_unit_id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], name='fk_leases_tenant_id'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_leases_owner_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_leases_property_id', 'leases', ['property_id'])
    op.create_index('ix_leases_unit_id', 'leases', ['unit_id'])
    op.create_index('ix_leases_tenant_id', 'leases', ['tenant_id'])
    op.create_index('ix_leases_owner_id', 'leases', ['owner_id'])
    op.create_index('ix_leases_status', 'leases', ['status'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('period', sa.String(length=7), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'PAID', 'OVERDUE', name='invoice_status', create_constraint=True),
            nullable=False,
            server_default='PENDING'
        ),
        sa.Column('payment_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('period', 'unit_id', 'tenant_id', name='uq_invoices_period_unit_tenant'),
        sa.ForeignKeyConstraint(
            ['property_id'],
            ['properties.id'],
            name='fk_invoices_property_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['unit_id'], ['property_units.id'], name='fk_invoices_unit_id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], name='fk_invoices_tenant_id'),
    )
    op.create_index('ix_invoices_property_id', 'invoices', ['property_id'])
    op.create_index('ix_invoices_unit_id', 'invoices', ['unit_id'])
    op.create_index('ix_invoices_tenant_id', 'invoices', ['tenant_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_period', 'invoices', ['period'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('lease_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('method', sa.Enum('CARD', 'BANK', 'CASH', name='payment_method'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'SUCCEEDED', 'FAILED', name='payment_status'),
            nullable=False,
            server_default='PENDING'
        ),
        sa.Column('stripe_payment_intent_id', sa.String(length=255), nullable=True),
        sa.Column('receipt_url', sa.String(length=500), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column('property_id', sa.Integer(), nullable=True),
        sa.Column('unit_id', sa.Integer(), nullable=True),
        sa.Column('unit_number', sa.String(length=50), nullable=True),
        sa.Column('month_label', sa.String(length=50), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column(
            'payment_type',
            sa.Enum('rent_payment', 'invoice_payment', name='payment_type'),
            nullable=False
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], name='fk_payments_tenant_id'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_payments_invoice_id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_payments_lease_id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], name='fk_payments_property_id'),
        sa.ForeignKeyConstraint(['unit_id'], ['property_units.id'], name='fk_payments_unit_id'),
    )
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'])
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])
    op.create_index('ix_payments_lease_id', 'payments', ['lease_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_stripe_payment_intent_id', 'payments', ['stripe_payment_intent_id'])
    op.create_index('ix_payments_unit_id', 'payments', ['unit_id'])


def downgrade() -> None:
    """Drop all tables in dependency order."""
    op.drop_table('payments')
    op.drop_table('invoices')
    op.drop_table('leases')
    op.drop_table('property_units')
    op.drop_table('properties')
    op.drop_table('users')
