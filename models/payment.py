# models/payment.py
import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class PaymentMethod(str, enum.Enum):
     CARD = "CARD"
     BANK = "BANK"
     CASH = "CASH"


class PaymentStatus(str, enum.Enum):
     PENDING = "PENDING"
     SUCCEEDED = "SUCCEEDED"
     FAILED = "FAILED"


class PaymentType(str, enum.Enum):
     RENT_PAYMENT = "rent_payment"
     INVOICE_PAYMENT = "invoice_payment"


class Payment(TimestampMixin, Base):
     """
     Payment model - a billable or paid transaction.

     Rent payments are pre-scheduled one per lease month at move-in; invoice
     payments are created when a tenant starts paying an invoice. The
     property/unit/month/due-date columns form the payment's metadata.
     """
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
     invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
     lease_id = Column(Integer, ForeignKey("leases.id"), nullable=True, index=True)

     amount = Column(Numeric(12, 2), nullable=False)
     method = Column(Enum(PaymentMethod, name="payment_method"), default=PaymentMethod.CARD, nullable=False)
     status = Column(
          Enum(PaymentStatus, name="payment_status"),
          default=PaymentStatus.PENDING,
          nullable=False,
          index=True,
     )
     stripe_payment_intent_id = Column(String(255), nullable=True, index=True)
     receipt_url = Column(String(500), nullable=True)
     description = Column(String(255), nullable=True)
     notes = Column(Text, nullable=True)
     paid_date = Column(DateTime, nullable=True)

     # Metadata
     property_id = Column(Integer, ForeignKey("properties.id"), nullable=True)
     unit_id = Column(Integer, ForeignKey("property_units.id"), nullable=True, index=True)
     unit_number = Column(String(50), nullable=True)
     month_label = Column(String(50), nullable=True)  # e.g. "January 2025"
     due_date = Column(Date, nullable=True)
     payment_type = Column(
          Enum(PaymentType, name="payment_type", values_callable=lambda e: [m.value for m in e]),
          default=PaymentType.INVOICE_PAYMENT,
          nullable=False,
     )

     # Relationships
     tenant = relationship("User", foreign_keys=[tenant_id])
     invoice = relationship("Invoice", back_populates="payments", foreign_keys=[invoice_id])
     lease = relationship("Lease", back_populates="payments")

     @property
     def metadata_dict(self) -> dict:
          return {
               "property_id": self.property_id,
               "unit_id": self.unit_id,
               "unit_number": self.unit_number,
               "month": self.month_label,
               "due_date": self.due_date.isoformat() if self.due_date else None,
               "type": self.payment_type.value if self.payment_type else None,
          }

     def mark_as_succeeded(self, paid_at) -> None:
          self.status = PaymentStatus.SUCCEEDED
          self.paid_date = paid_at

     def __repr__(self):
          return f"<Payment(id={self.id}, amount={self.amount}, status='{self.status.value}')>"
