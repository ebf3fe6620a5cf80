# models/lease.py
import enum

from sqlalchemy import (
     Column, Integer, String, Numeric, Date, Boolean, Text, DateTime, ForeignKey, Enum, JSON, func,
)
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


AGREEMENT_NUMBER_PREFIX = "LA-"

# Keys accepted in Lease.documents
DOCUMENT_KEYS = ("signed_lease", "id_proof", "deposit_receipt", "move_in_inspection")

DEFAULT_TERMS = {
     "late_fee_amount": 50,
     "late_fee_after_days": 5,
     "notice_period_days": 30,
     "pet_allowed": False,
     "smoking_allowed": False,
}


class LeaseStatus(str, enum.Enum):
     """ACTIVE -> EXPIRED or ACTIVE -> TERMINATED; terminal states are final."""
     ACTIVE = "ACTIVE"
     EXPIRED = "EXPIRED"
     TERMINATED = "TERMINATED"


def format_agreement_number(sequence: int) -> str:
     """LA-000001 style agreement number."""
     return f"{AGREEMENT_NUMBER_PREFIX}{sequence:06d}"


class Lease(TimestampMixin, Base):
     """
     Lease model - one tenancy period of a tenant in a unit.

     Several historical leases may exist per unit; only the one created by
     the move-in that occupied the unit is current.
     """
     __tablename__ = "leases"
     # Keys are never reused, which keeps agreement numbers unique.
     __table_args__ = {"sqlite_autoincrement": True}

     id = Column(Integer, primary_key=True, autoincrement=True)
     property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
     unit_id = Column(Integer, ForeignKey("property_units.id"), nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
     owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

     # Lease period and money
     lease_start_date = Column(Date, nullable=False)
     lease_end_date = Column(Date, nullable=False)
     monthly_rent = Column(Numeric(12, 2), nullable=False)
     security_deposit = Column(Numeric(12, 2), default=0, nullable=False)
     advance_payment = Column(Numeric(12, 2), default=0, nullable=False)

     # Agreement
     agreement_number = Column(String(20), unique=True, nullable=True)
     agreement_pdf_path = Column(String(500), nullable=True)
     status = Column(
          Enum(LeaseStatus, name="lease_status", create_constraint=True),
          default=LeaseStatus.ACTIVE,
          nullable=False,
          index=True,
     )
     terminated_date = Column(DateTime, nullable=True)

     # Uploaded documents keyed by DOCUMENT_KEYS; each value is the upload
     # metadata {url, filename, size, type, uploaded_at}
     documents = Column(JSON, nullable=False, default=dict)

     # Terms
     late_fee_amount = Column(Numeric(10, 2), default=50, nullable=False)
     late_fee_after_days = Column(Integer, default=5, nullable=False)
     notice_period_days = Column(Integer, default=30, nullable=False)
     pet_allowed = Column(Boolean, default=False, nullable=False)
     smoking_allowed = Column(Boolean, default=False, nullable=False)

     notes = Column(Text, nullable=True)

     signed_date = Column(DateTime, server_default=func.now(), nullable=False)
     move_in_date = Column(DateTime, server_default=func.now(), nullable=False)
     move_out_date = Column(Date, nullable=True)

     # Relationships
     unit = relationship("PropertyUnit", back_populates="leases")
     tenant = relationship("User", foreign_keys=[tenant_id])
     owner = relationship("User", foreign_keys=[owner_id])
     payments = relationship("Payment", back_populates="lease")

     @property
     def terms(self) -> dict:
          return {
               "late_fee_amount": self.late_fee_amount,
               "late_fee_after_days": self.late_fee_after_days,
               "notice_period_days": self.notice_period_days,
               "pet_allowed": self.pet_allowed,
               "smoking_allowed": self.smoking_allowed,
          }

     @property
     def is_active(self) -> bool:
          return self.status == LeaseStatus.ACTIVE

     def __repr__(self):
          return f"<Lease(id={self.id}, agreement='{self.agreement_number}', unit_id={self.unit_id}, status='{self.status.value}')>"

     # Declared last: inside the class body this name shadows the builtin
     property = relationship("Property", back_populates="leases")
