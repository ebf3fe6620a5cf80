# services/__init__.py
from .exceptions import ServiceError, ValidationError, ForbiddenError, NotFoundError, ConflictError
from .access import CurrentUser
from .agreement_service import AgreementFile, AgreementGenerator, build_agreement_snapshot
from .invoice_service import InvoiceService
from .lease_service import LeaseService, MoveInResult, MoveOutResult
from .payment_schedule import generate_rent_payments, current_period_utc
from .payment_service import PaymentService

__all__ = [
     "ServiceError",
     "ValidationError",
     "ForbiddenError",
     "NotFoundError",
     "ConflictError",
     "CurrentUser",
     "AgreementFile",
     "AgreementGenerator",
     "build_agreement_snapshot",
     "InvoiceService",
     "LeaseService",
     "MoveInResult",
     "MoveOutResult",
     "generate_rent_payments",
     "current_period_utc",
     "PaymentService",
]
