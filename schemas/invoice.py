# schemas/invoice.py
"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class InvoiceStatusEnum(str, Enum):
     """Invoice payment status options."""
     PENDING = "PENDING"
     PAID = "PAID"
     OVERDUE = "OVERDUE"


class InvoiceGenerateRequest(BaseModel):
     """Schema for generating the monthly invoices of one period."""
     period: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="Billing period, YYYY-MM")

     model_config = ConfigDict(json_schema_extra={"example": {"period": "2025-10"}})


class InvoiceGenerateResponse(BaseModel):
     period: str
     created: int


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     property_id: int
     unit_id: int
     tenant_id: int
     amount: Decimal
     due_date: date
     period: str
     status: InvoiceStatusEnum
     payment_id: Optional[int] = None
     created_at: datetime

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "property_id": 1,
                    "unit_id": 4,
                    "tenant_id": 7,
                    "amount": 1200.00,
                    "due_date": "2025-10-05",
                    "period": "2025-10",
                    "status": "PENDING",
                    "payment_id": None,
                    "created_at": "2025-10-01T00:00:01",
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
