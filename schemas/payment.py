# schemas/payment.py
"""
Pydantic schemas for the payments API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class PaymentMetadata(BaseModel):
     property_id: Optional[int] = None
     unit_id: Optional[int] = None
     unit_number: Optional[str] = None
     month: Optional[str] = None
     due_date: Optional[str] = None  # ISO date
     type: Optional[str] = None


class PaymentResponse(BaseModel):
     id: int
     tenant_id: int
     invoice_id: Optional[int] = None
     lease_id: Optional[int] = None
     amount: Decimal
     method: str
     status: str
     stripe_payment_intent_id: Optional[str] = None
     description: Optional[str] = None
     notes: Optional[str] = None
     paid_date: Optional[datetime] = None
     metadata: PaymentMetadata
     created_at: Optional[datetime] = None


class PaymentUpdate(BaseModel):
     """Manual update by an owner or admin (cash / bank transfer)."""
     payment_method: Optional[str] = Field(None, description="CASH or BANK")
     status: Optional[str] = Field(None, description="PENDING, SUCCEEDED or FAILED")
     notes: Optional[str] = None


class RentPaymentIntentRequest(BaseModel):
     """Tenant-initiated payment of one month of rent."""
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     month: str = Field(..., min_length=1, description="Month label, e.g. 'January 2025'")
     unit_id: int = Field(..., gt=0)
     property_id: int = Field(..., gt=0)
     due_date: Optional[date] = None
     unit_number: Optional[str] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": 1200.00,
                    "month": "January 2025",
                    "unit_id": 4,
                    "property_id": 1,
                    "due_date": "2025-01-01",
                    "unit_number": "101",
               }
          }
     )


class InvoiceIntentRequest(BaseModel):
     invoice_id: int = Field(..., gt=0, description="Invoice to pay")


class PaymentIntentResponse(BaseModel):
     client_secret: Optional[str]
     payment_id: int
     payment_intent_id: str


class DeletedCountResponse(BaseModel):
     message: str
     deleted_count: int
