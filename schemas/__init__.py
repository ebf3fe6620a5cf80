# schemas/__init__.py
from .invoice import (
     InvoiceGenerateRequest,
     InvoiceGenerateResponse,
     InvoiceResponse,
     InvoiceListResponse,
)
from .lease import (
     DocumentInfo,
     LeaseResponse,
     LeaseUpdate,
     MoveInRequest,
     MoveInResponse,
     MoveOutRequest,
     MoveOutResponse,
)
from .payment import PaymentResponse, PaymentUpdate, RentPaymentIntentRequest

__all__ = [
     "InvoiceGenerateRequest",
     "InvoiceGenerateResponse",
     "InvoiceResponse",
     "InvoiceListResponse",
     "DocumentInfo",
     "LeaseResponse",
     "LeaseUpdate",
     "MoveInRequest",
     "MoveInResponse",
     "MoveOutRequest",
     "MoveOutResponse",
     "PaymentResponse",
     "PaymentUpdate",
     "RentPaymentIntentRequest",
]
