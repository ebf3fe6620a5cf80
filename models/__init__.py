# models/__init__.py
from .base import Base
from .user import User, UserRole
from .property import Property
from .property_unit import PropertyUnit, UnitStatus
from .lease import Lease, LeaseStatus
from .payment import Payment, PaymentMethod, PaymentStatus, PaymentType
from .invoice import Invoice, InvoiceStatus

__all__ = [
     "Base",
     "User",
     "UserRole",
     "Property",
     "PropertyUnit",
     "UnitStatus",
     "Lease",
     "LeaseStatus",
     "Payment",
     "PaymentMethod",
     "PaymentStatus",
     "PaymentType",
     "Invoice",
     "InvoiceStatus",
]
