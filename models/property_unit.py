# models/property_unit.py
import enum

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class UnitStatus(str, enum.Enum):
     AVAILABLE = "AVAILABLE"
     OCCUPIED = "OCCUPIED"
     MAINTENANCE = "MAINTENANCE"


class PropertyUnit(TimestampMixin, Base):
     """
     PropertyUnit model - individual rentable units within a property.

     A unit is OCCUPIED exactly when it has a tenant; the check constraint
     keeps the pair consistent at the database level.
     """
     __tablename__ = "property_units"
     __table_args__ = (
          CheckConstraint(
               "(status = 'OCCUPIED' AND tenant_id IS NOT NULL) "
               "OR (status <> 'OCCUPIED' AND tenant_id IS NULL)",
               name="ck_property_units_status_tenant",
          ),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

     name = Column(String(50), nullable=False)  # unit number as shown to people, e.g. "101"
     unit_type = Column(String(50), default="APARTMENT", nullable=False)
     floor = Column(Integer, default=0, nullable=False)
     bedrooms = Column(Integer, default=0, nullable=False)
     bathrooms = Column(Integer, default=0, nullable=False)
     size_sq_ft = Column(Numeric(10, 2), nullable=True)
     rent_amount = Column(Numeric(12, 2), nullable=False)
     status = Column(
          Enum(UnitStatus, name="unit_status", create_constraint=True),
          default=UnitStatus.AVAILABLE,
          nullable=False,
          index=True,
     )
     tenant_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

     # Relationships
     tenant = relationship("User", foreign_keys=[tenant_id])
     leases = relationship("Lease", back_populates="unit")

     @property
     def is_available(self) -> bool:
          return self.status == UnitStatus.AVAILABLE

     def __repr__(self):
          return f"<PropertyUnit(id={self.id}, name='{self.name}', status='{self.status.value}')>"

     # Declared last: inside the class body this name shadows the builtin
     property = relationship("Property", back_populates="units")
