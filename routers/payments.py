# routers/payments.py
"""
Payment API routes.

Scheduled rent payments come from move-in; here they are listed, settled
manually (cash / bank) by owners and admins, or paid by card through
Stripe. The Stripe webhook confirms card payments.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from config import Settings
from database import get_session
from dependencies import get_settings_from_app, get_stripe_client, verify_token
from models import Payment
from schemas.payment import (
     DeletedCountResponse,
     InvoiceIntentRequest,
     PaymentIntentResponse,
     PaymentMetadata,
     PaymentResponse,
     PaymentUpdate,
     RentPaymentIntentRequest,
)
from services.access import CurrentUser
from services.payment_service import PaymentService
from services.stripe_client import StripeClient, StripeError, WebhookError, construct_webhook_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _build_payment_response(payment: Payment) -> PaymentResponse:
     return PaymentResponse(
          id=payment.id,
          tenant_id=payment.tenant_id,
          invoice_id=payment.invoice_id,
          lease_id=payment.lease_id,
          amount=payment.amount,
          method=payment.method.value,
          status=payment.status.value,
          stripe_payment_intent_id=payment.stripe_payment_intent_id,
          description=payment.description,
          notes=payment.notes,
          paid_date=payment.paid_date,
          metadata=PaymentMetadata(**payment.metadata_dict),
          created_at=payment.created_at,
     )


@router.get(
     "",
     response_model=List[PaymentResponse],
     summary="List payments"
)
def list_payments(
     status_filter: Optional[str] = Query(None, alias="status", description="PENDING, SUCCEEDED or FAILED"),
     unit_id: Optional[int] = Query(None, description="Filter by unit ID"),
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     """Tenants see their own payments; owners and admins see all matching rows."""
     payments = PaymentService.list_for_caller(db, user, status=status_filter, unit_id=unit_id)
     return [_build_payment_response(p) for p in payments]


@router.patch(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Record a manual payment"
)
def update_payment(
     payment_id: int,
     body: PaymentUpdate,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     payment = PaymentService.update_payment(db, user, payment_id, body)
     db.commit()
     db.refresh(payment)
     return _build_payment_response(payment)


@router.delete(
     "/unit/{unit_id}/pending",
     response_model=DeletedCountResponse,
     summary="Delete pending payments of a unit"
)
def delete_pending_payments(
     unit_id: int,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     deleted = PaymentService.delete_pending_for_unit(db, user, unit_id)
     db.commit()
     return DeletedCountResponse(message=f"Deleted {deleted} pending payments", deleted_count=deleted)


@router.post(
     "/rent-payment",
     response_model=PaymentIntentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Start a card payment for rent"
)
def create_rent_payment(
     body: RentPaymentIntentRequest,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
     stripe: StripeClient = Depends(get_stripe_client),
):
     try:
          payment, intent = PaymentService.create_rent_payment_intent(db, user, body, stripe)
     except StripeError as e:
          raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
     db.commit()
     return PaymentIntentResponse(
          client_secret=intent.get("client_secret"),
          payment_id=payment.id,
          payment_intent_id=intent["id"],
     )


@router.post(
     "/intent",
     response_model=PaymentIntentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Start a card payment for an invoice"
)
def create_invoice_payment(
     body: InvoiceIntentRequest,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
     stripe: StripeClient = Depends(get_stripe_client),
):
     try:
          payment, intent = PaymentService.create_invoice_payment_intent(db, user, body.invoice_id, stripe)
     except StripeError as e:
          raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
     db.commit()
     return PaymentIntentResponse(
          client_secret=intent.get("client_secret"),
          payment_id=payment.id,
          payment_intent_id=intent["id"],
     )


@router.post("/webhook", summary="Stripe webhook")
async def stripe_webhook(
     request: Request,
     db: Session = Depends(get_session),
     settings: Settings = Depends(get_settings_from_app),
):
     """
     Receives Stripe payment intent events. Every request must carry a
     Stripe-Signature header valid for STRIPE_WEBHOOK_SECRET; without a
     configured secret all events are refused.
     """
     payload = await request.body()
     try:
          event = construct_webhook_event(
               payload, request.headers.get("Stripe-Signature"), settings.stripe_webhook_secret
          )
     except WebhookError as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

     payment = PaymentService.handle_stripe_event(db, event)
     db.commit()
     if payment is None:
          return {"received": True}
     return {"received": True, "payment_id": payment.id, "status": payment.status.value}
