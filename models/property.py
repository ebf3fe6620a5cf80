# models/property.py
from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Property(TimestampMixin, Base):
     """
     Property model - a building or estate made of one or more units.
     """
     __tablename__ = "properties"

     id = Column(Integer, primary_key=True, autoincrement=True)
     owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
     title = Column(String(255), nullable=False)
     address = Column(String(500), nullable=False)
     description = Column(Text, nullable=True)

     # Location
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)
     country = Column(String(100), nullable=True)
     zip_code = Column(String(20), nullable=True)

     base_rent = Column(Numeric(12, 2), nullable=True)

     # Relationships
     owner = relationship("User", back_populates="properties", foreign_keys=[owner_id])
     units = relationship(
          "PropertyUnit",
          back_populates="property",
          cascade="all, delete-orphan",
          order_by="PropertyUnit.id",
     )
     leases = relationship("Lease", back_populates="property")

     def __repr__(self):
          return f"<Property(id={self.id}, title='{self.title}')>"
