# models/invoice.py
import enum
from datetime import date

from sqlalchemy import (
     Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from .base import Base


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice payment status."""
     PENDING = "PENDING"
     PAID = "PAID"
     OVERDUE = "OVERDUE"


class Invoice(Base):
     """
     Invoice model - one monthly rent bill per occupied unit and tenant.

     Created only by the monthly generator (cron or on demand). At most one
     invoice exists per (period, unit_id, tenant_id); the unique constraint
     enforces it even when two generator runs race.
     """
     __tablename__ = "invoices"
     __table_args__ = (
          UniqueConstraint("period", "unit_id", "tenant_id", name="uq_invoices_period_unit_tenant"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     property_id = Column(
          Integer,
          ForeignKey("properties.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     unit_id = Column(Integer, ForeignKey("property_units.id"), nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

     # Invoice details
     amount = Column(Numeric(12, 2), nullable=False)
     due_date = Column(Date, nullable=False, index=True)
     period = Column(String(7), nullable=False, index=True)  # YYYY-MM
     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True),
          default=InvoiceStatus.PENDING,
          nullable=False,
          index=True
     )
     # Last payment that settled this invoice (payments.invoice_id is the FK side)
     payment_id = Column(Integer, nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     tenant = relationship("User", foreign_keys=[tenant_id])
     payments = relationship("Payment", back_populates="invoice", foreign_keys="Payment.invoice_id")

     def __repr__(self):
          return f"<Invoice(id={self.id}, period='{self.period}', amount={self.amount}, status='{self.status.value}')>"

     def is_overdue(self, today: date) -> bool:
          """Check if invoice is past due date and unpaid."""
          return self.status == InvoiceStatus.PENDING and self.due_date < today

     def mark_as_paid(self, payment_id=None) -> None:
          """Mark the invoice as paid."""
          self.status = InvoiceStatus.PAID
          if payment_id is not None:
               self.payment_id = payment_id

     def mark_as_overdue(self) -> None:
          """Mark the invoice as overdue."""
          self.status = InvoiceStatus.OVERDUE

     # Declared last: inside the class body this name shadows the builtin
     property = relationship("Property")
