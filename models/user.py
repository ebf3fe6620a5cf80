# models/user.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class UserRole(str, enum.Enum):
     """Roles carried in the auth token and stored on the user."""
     SUPER_ADMIN = "SUPER_ADMIN"
     ADMIN = "ADMIN"
     OWNER = "OWNER"
     TENANT = "TENANT"


class User(Base):
     """
     User model - owners, tenants and administrators share one table,
     distinguished by role.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     password_hash = Column(String(255), nullable=False)
     name = Column(String(200), nullable=False)
     first_name = Column(String(100), nullable=True)
     last_name = Column(String(100), nullable=True)
     phone = Column(String(50), nullable=True)
     role = Column(Enum(UserRole, name="user_role"), nullable=False, index=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     properties = relationship("Property", back_populates="owner", foreign_keys="Property.owner_id")

     @property
     def display_name(self) -> str:
          if self.first_name or self.last_name:
               return " ".join(p for p in (self.first_name, self.last_name) if p)
          return self.name

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
