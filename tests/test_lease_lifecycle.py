"""Lease edit guard, move-out and reconciliation."""
from datetime import date
from decimal import Decimal

import pytest

from models import Lease, LeaseStatus, Payment, PaymentStatus, PropertyUnit, UnitStatus, UserRole
from schemas.lease import LeaseTermsInput, LeaseUpdate
from services.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from services.lease_service import LeaseService
from tests.conftest import caller, move_in_request


@pytest.fixture
def lease(db, seed, generator):
    result = LeaseService.move_in(
        db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, move_in_request(seed.tenant), generator
    )
    db.commit()
    return result.lease


def _pending(db, lease):
    return (
        db.query(Payment)
        .filter(Payment.lease_id == lease.id, Payment.status == PaymentStatus.PENDING)
        .order_by(Payment.due_date)
        .all()
    )


def test_partial_update_keeps_other_fields(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    updated = LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(notes="Parking spot 4"), generator)
    db.commit()

    assert updated.notes == "Parking spot 4"
    assert updated.monthly_rent == Decimal("1000.00")
    assert updated.lease_end_date == date(2025, 12, 31)
    assert len(generator.generated) == 2
    assert updated.agreement_pdf_path == generator.generated[-1][1].relative_path


def test_rent_change_reschedules_pending_payments(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(monthly_rent=Decimal("1100.00")), generator)
    db.commit()

    pending = _pending(db, lease)
    assert len(pending) == 12
    assert {p.amount for p in pending} == {Decimal("1100.00")}


def test_shortened_lease_drops_months(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(lease_end_date=date(2025, 6, 30)), generator)
    db.commit()

    assert len(_pending(db, lease)) == 6


def test_terms_are_merged(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(terms=LeaseTermsInput(pet_allowed=True)), generator)
    db.commit()

    assert lease.pet_allowed is True
    assert lease.notice_period_days == 30
    assert lease.late_fee_amount == Decimal("50")


def test_edit_blocked_after_rent_collected(db, seed, lease, generator):
    payment = _pending(db, lease)[0]
    payment.status = PaymentStatus.SUCCEEDED
    db.commit()

    with pytest.raises(ConflictError, match="rent has been collected"):
        LeaseService.update_lease(
            db, caller(seed.owner, UserRole.OWNER), lease.id, LeaseUpdate(notes="too late"), generator
        )
    db.rollback()
    assert db.query(Lease).filter(Lease.id == lease.id).one().notes is None


def test_edit_rejects_inverted_dates(db, seed, lease, generator):
    with pytest.raises(ValidationError):
        LeaseService.update_lease(
            db,
            caller(seed.owner, UserRole.OWNER),
            lease.id,
            LeaseUpdate(lease_end_date=date(2024, 12, 1)),
            generator,
        )


def test_edit_requires_manager_and_ownership(db, seed, lease, generator):
    with pytest.raises(ForbiddenError):
        LeaseService.update_lease(db, caller(seed.tenant, UserRole.TENANT), lease.id, LeaseUpdate(notes="x"), generator)
    with pytest.raises(ForbiddenError):
        LeaseService.update_lease(
            db, caller(seed.other_owner, UserRole.OWNER), lease.id, LeaseUpdate(notes="x"), generator
        )
    with pytest.raises(NotFoundError, match="Lease not found"):
        LeaseService.update_lease(db, caller(seed.admin, UserRole.ADMIN), 9999, LeaseUpdate(notes="x"), generator)


def test_agreement_regeneration_failure_is_swallowed(db, seed, lease, generator):
    previous_path = lease.agreement_pdf_path
    generator.fail = True

    updated = LeaseService.update_lease(
        db, caller(seed.owner, UserRole.OWNER), lease.id, LeaseUpdate(notes="Keep the lights on"), generator
    )
    db.commit()

    assert updated.notes == "Keep the lights on"
    assert updated.agreement_pdf_path == previous_path


def test_update_discards_replaced_agreement(db, seed, lease, generator):
    previous_path = lease.agreement_pdf_path

    updated = LeaseService.update_lease(
        db, caller(seed.owner, UserRole.OWNER), lease.id, LeaseUpdate(notes="New notes"), generator
    )
    db.commit()

    assert updated.agreement_pdf_path != previous_path
    assert generator.discarded == [previous_path]


def test_terminated_lease_cannot_be_edited(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.move_out(db, owner, lease.id, date(2025, 6, 15))
    db.commit()

    with pytest.raises(ConflictError, match="terminated lease"):
        LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(monthly_rent=Decimal("1100.00")), generator)
    db.rollback()

    pending = _pending(db, lease)
    assert len(pending) == 6
    assert all(p.due_date <= date(2025, 6, 15) for p in pending)
    assert all(p.amount == Decimal("1000.00") for p in pending)


def test_editing_previous_lease_leaves_new_tenant_schedule(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.move_out(db, owner, lease.id, date(2025, 6, 15))
    db.commit()
    new_lease = LeaseService.move_in(
        db,
        owner,
        seed.property,
        seed.unit_a,
        move_in_request(seed.tenant2, lease_start_date=date(2025, 7, 1)),
        generator,
    ).lease
    db.commit()

    with pytest.raises(ConflictError):
        LeaseService.update_lease(db, owner, lease.id, LeaseUpdate(lease_end_date=date(2025, 12, 15)), generator)
    db.rollback()

    assert len(_pending(db, lease)) == 6
    assert [p.due_date.month for p in _pending(db, new_lease)] == [7, 8, 9, 10, 11, 12]
    assert {p.tenant_id for p in _pending(db, new_lease)} == {seed.tenant2}


def test_move_out_terminates_and_frees_unit(db, seed, lease):
    result = LeaseService.move_out(db, caller(seed.owner, UserRole.OWNER), lease.id, date(2025, 6, 15))
    db.commit()

    assert result.lease.status == LeaseStatus.TERMINATED
    assert result.lease.terminated_date is not None
    assert result.lease.move_out_date == date(2025, 6, 15)
    # July through December are cancelled
    assert result.payments_cancelled == 6
    assert len(_pending(db, lease)) == 6

    unit = db.query(PropertyUnit).filter(PropertyUnit.id == seed.unit_a).one()
    assert unit.status == UnitStatus.AVAILABLE
    assert unit.tenant_id is None


def test_move_out_keeps_collected_payments(db, seed, lease):
    payments = _pending(db, lease)
    payments[-1].status = PaymentStatus.SUCCEEDED
    db.commit()

    LeaseService.move_out(db, caller(seed.admin, UserRole.ADMIN), lease.id, date(2025, 1, 15))
    db.commit()

    remaining = db.query(Payment).filter(Payment.lease_id == lease.id).all()
    assert len(remaining) == 2
    assert {p.status for p in remaining} == {PaymentStatus.PENDING, PaymentStatus.SUCCEEDED}


def test_move_out_twice_conflicts(db, seed, lease):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.move_out(db, owner, lease.id, date(2025, 6, 15))
    db.commit()

    with pytest.raises(ConflictError, match="TERMINATED"):
        LeaseService.move_out(db, owner, lease.id, date(2025, 7, 1))


def test_unit_can_be_leased_again_after_move_out(db, seed, lease, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.move_out(db, owner, lease.id, date(2025, 6, 15))
    db.commit()

    result = LeaseService.move_in(
        db,
        owner,
        seed.property,
        seed.unit_a,
        move_in_request(seed.tenant2, lease_start_date=date(2025, 7, 1)),
        generator,
    )
    db.commit()

    assert result.lease.agreement_number == "LA-000002"
    history = LeaseService.lease_history(db, owner, seed.unit_a)
    assert [item.id for item in history] == [result.lease.id, lease.id]


def test_reconcile_terminates_leases_on_available_units(db, seed, lease):
    LeaseService._release_unit(db, seed.unit_a, seed.tenant)
    db.commit()

    fixed = LeaseService.reconcile_terminated_leases(db)
    db.commit()

    assert [item.id for item in fixed] == [lease.id]
    assert db.query(Lease).filter(Lease.id == lease.id).one().status == LeaseStatus.TERMINATED
    assert LeaseService.reconcile_terminated_leases(db) == []


def test_list_leases_is_scoped_by_role(db, seed, lease):
    assert [item.id for item in LeaseService.list_leases(db, caller(seed.owner, UserRole.OWNER))] == [lease.id]
    assert LeaseService.list_leases(db, caller(seed.other_owner, UserRole.OWNER)) == []
    assert [item.id for item in LeaseService.list_leases(db, caller(seed.tenant, UserRole.TENANT))] == [lease.id]
    assert LeaseService.list_leases(db, caller(seed.tenant2, UserRole.TENANT)) == []
    assert len(LeaseService.list_leases(db, caller(seed.admin, UserRole.ADMIN), unit_id=seed.unit_a)) == 1
    assert LeaseService.list_leases(db, caller(seed.admin, UserRole.ADMIN), unit_id=seed.unit_b) == []
