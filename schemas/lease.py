# schemas/lease.py
"""
Pydantic schemas for the move-in and lease API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from models.lease import DOCUMENT_KEYS


class DocumentInfo(BaseModel):
     """Metadata returned by the document upload endpoint."""
     url: str
     filename: str
     size: Optional[int] = None
     type: Optional[str] = None
     uploaded_at: Optional[datetime] = None


class LeaseTermsInput(BaseModel):
     """
     Lease terms as submitted. Values are coerced when the lease is built;
     falsy numbers fall back to the defaults.
     """
     late_fee_amount: Optional[Any] = None
     late_fee_after_days: Optional[Any] = None
     notice_period_days: Optional[Any] = None
     pet_allowed: Optional[Any] = None
     smoking_allowed: Optional[Any] = None


class LeaseTerms(BaseModel):
     late_fee_amount: Decimal
     late_fee_after_days: int
     notice_period_days: int
     pet_allowed: bool
     smoking_allowed: bool


def _check_document_keys(value: Optional[Dict[str, DocumentInfo]]):
     if value:
          unknown = set(value) - set(DOCUMENT_KEYS)
          if unknown:
               raise ValueError(f"Unknown document keys: {', '.join(sorted(unknown))}")
     return value


DocumentMap = Annotated[Optional[Dict[str, DocumentInfo]], AfterValidator(_check_document_keys)]


class MoveInRequest(BaseModel):
     """Schema for moving a tenant into a unit."""
     tenant_id: int = Field(..., gt=0, description="User ID of the tenant (role TENANT)")
     lease_start_date: date
     lease_end_date: date
     monthly_rent: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     security_deposit: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     advance_payment: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     terms: LeaseTermsInput = Field(default_factory=LeaseTermsInput)
     notes: Optional[str] = None
     documents: DocumentMap = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "tenant_id": 3,
                    "lease_start_date": "2025-01-01",
                    "lease_end_date": "2025-12-31",
                    "monthly_rent": 1200.00,
                    "security_deposit": 2400.00,
                    "terms": {"late_fee_amount": 50, "pet_allowed": True},
               }
          }
     )


class LeaseUpdate(BaseModel):
     """Schema for editing a lease. Only provided fields are changed."""
     lease_start_date: Optional[date] = None
     lease_end_date: Optional[date] = None
     monthly_rent: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     security_deposit: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     advance_payment: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     terms: Optional[LeaseTermsInput] = None
     notes: Optional[str] = None
     documents: DocumentMap = None

     model_config = ConfigDict(
          json_schema_extra={"example": {"monthly_rent": 1300.00, "notes": "Rent adjusted before first payment"}}
     )


class MoveOutRequest(BaseModel):
     move_out_date: Optional[date] = None


class LeaseResponse(BaseModel):
     """Schema for lease response."""
     id: int
     agreement_number: Optional[str]
     property_id: int
     unit_id: int
     tenant_id: int
     owner_id: int
     lease_start_date: date
     lease_end_date: date
     monthly_rent: Decimal
     security_deposit: Decimal
     advance_payment: Decimal
     agreement_pdf_path: Optional[str] = None
     status: str
     terminated_date: Optional[datetime] = None
     documents: Dict[str, Any] = {}
     terms: LeaseTerms
     notes: Optional[str] = None
     signed_date: Optional[datetime] = None
     move_in_date: Optional[datetime] = None
     move_out_date: Optional[date] = None
     created_at: Optional[datetime] = None

     # Optional related data
     property_title: Optional[str] = None
     unit_number: Optional[str] = None
     tenant_name: Optional[str] = None
     tenant_email: Optional[str] = None


class MoveInResponse(BaseModel):
     message: str = "Move-in successful and payment schedule created"
     lease: LeaseResponse
     agreement_path: Optional[str]
     payments_created: int


class MoveOutResponse(BaseModel):
     message: str = "Move-out completed"
     lease: LeaseResponse
     payments_cancelled: int


class TenantOption(BaseModel):
     id: int
     name: str
     first_name: Optional[str] = None
     last_name: Optional[str] = None
     email: str
     phone: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class ReconcileResponse(BaseModel):
     message: str
     count: int
     lease_ids: List[int] = []
