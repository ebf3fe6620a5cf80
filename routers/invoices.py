# routers/invoices.py
"""
Invoice API routes.

Role-based access:
- Tenant: can only access own invoices
- Owner: invoices of units on their properties
- Admin: all invoices
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_roles, verify_token
from models import UserRole
from schemas.invoice import (
     InvoiceGenerateRequest,
     InvoiceGenerateResponse,
     InvoiceListResponse,
     InvoiceResponse,
)
from services.access import CurrentUser
from services.invoice_service import InvoiceService

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post(
     "/generate",
     response_model=InvoiceGenerateResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Generate monthly invoices for a period"
)
def generate_invoices(
     body: InvoiceGenerateRequest,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     """
     Create one invoice per occupied unit for **period** (YYYY-MM).
     Units that already have an invoice for the period are skipped, so
     calling this twice creates nothing the second time.
     """
     created = InvoiceService.generate_for_caller(db, user, body.period)
     db.commit()
     return InvoiceGenerateResponse(period=body.period, created=len(created))


@router.post(
     "/mark-overdue",
     summary="Mark past-due pending invoices as overdue"
)
def mark_overdue(
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(require_roles(UserRole.ADMIN)),
):
     count = InvoiceService.mark_overdue_invoices(db)
     db.commit()
     return {"marked_overdue": count}


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices"
)
def list_invoices(
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     invoices = InvoiceService.list_for_caller(db, user)
     return InvoiceListResponse(
          invoices=[InvoiceResponse.model_validate(inv) for inv in invoices],
          total=len(invoices),
     )


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     return InvoiceResponse.model_validate(InvoiceService.get_for_caller(db, user, invoice_id))
