# services/payment_service.py
"""
Payment Service - listing, manual settlement and card payments.

Scheduled rent payments are created by the move-in workflow; this module
covers what happens to them afterwards, plus payments a tenant starts
from the app (a Stripe payment intent plus a PENDING payment row).
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Invoice, Payment, PaymentMethod, PaymentStatus, PaymentType, Property, PropertyUnit
from models.invoice import InvoiceStatus
from schemas.payment import PaymentUpdate, RentPaymentIntentRequest
from .access import CurrentUser, require_manager, require_owns
from .exceptions import ForbiddenError, NotFoundError, ValidationError
from .stripe_client import StripeClient

logger = logging.getLogger(__name__)

MANUAL_METHODS = (PaymentMethod.CASH, PaymentMethod.BANK)


def _utcnow() -> datetime:
     return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_enum(enum_cls, value: str, message: str):
     try:
          return enum_cls(value.upper())
     except ValueError:
          raise ValidationError(message)


class PaymentService:

     @staticmethod
     def list_for_caller(
          db: Session,
          caller: CurrentUser,
          status: Optional[str] = None,
          unit_id: Optional[int] = None,
     ) -> List[Payment]:
          query = db.query(Payment)
          if caller.is_tenant:
               query = query.filter(Payment.tenant_id == caller.id)
          if status:
               query = query.filter(
                    Payment.status == _parse_enum(PaymentStatus, status, "Invalid status filter")
               )
          if unit_id is not None:
               query = query.filter(Payment.unit_id == unit_id)
          return query.order_by(Payment.due_date.asc(), Payment.id.asc()).all()

     @staticmethod
     def update_payment(db: Session, caller: CurrentUser, payment_id: int, request: PaymentUpdate) -> Payment:
          """
          Record a manual (cash or bank) settlement or status change.
          Moving to SUCCEEDED stamps paid_date.
          """
          require_manager(caller)

          method = None
          if request.payment_method:
               method = _parse_enum(
                    PaymentMethod,
                    request.payment_method,
                    "Invalid payment method. Only CASH or BANK allowed for manual updates.",
               )
               if method not in MANUAL_METHODS:
                    raise ValidationError("Invalid payment method. Only CASH or BANK allowed for manual updates.")

          new_status = None
          if request.status:
               new_status = _parse_enum(
                    PaymentStatus, request.status, "Invalid status. Must be PENDING, SUCCEEDED, or FAILED."
               )

          payment = db.query(Payment).filter(Payment.id == payment_id).first()
          if not payment:
               raise NotFoundError("Payment")
          if caller.is_owner:
               PaymentService._require_property_owner(db, caller, payment.property_id)

          if method is not None:
               payment.method = method
          if new_status is not None:
               if new_status == PaymentStatus.SUCCEEDED and payment.status != PaymentStatus.SUCCEEDED:
                    payment.mark_as_succeeded(_utcnow())
                    PaymentService._settle_invoice(db, payment)
               else:
                    payment.status = new_status
          if request.notes:
               payment.notes = request.notes

          db.flush()
          return payment

     @staticmethod
     def delete_pending_for_unit(db: Session, caller: CurrentUser, unit_id: int) -> int:
          """Bulk-delete PENDING payments of a unit; returns the count."""
          require_manager(caller)
          unit = db.query(PropertyUnit).filter(PropertyUnit.id == unit_id).first()
          if not unit:
               raise NotFoundError("Unit")
          if caller.is_owner:
               PaymentService._require_property_owner(db, caller, unit.property_id)

          deleted = (
               db.query(Payment)
               .filter(Payment.unit_id == unit_id, Payment.status == PaymentStatus.PENDING)
               .delete(synchronize_session=False)
          )
          logger.info("Deleted %d pending payments for unit %s", deleted, unit_id)
          return deleted

     @staticmethod
     def create_rent_payment_intent(
          db: Session,
          caller: CurrentUser,
          request: RentPaymentIntentRequest,
          stripe: StripeClient,
     ):
          """
          Start a card payment for one month of rent.

          Returns:
               (payment, intent) - the PENDING row and Stripe's response
          """
          if not caller.is_tenant:
               raise ForbiddenError("Only tenants can pay rent")

          due_date = request.due_date.isoformat() if request.due_date else None
          intent = stripe.create_payment_intent(
               request.amount,
               {
                    "tenantId": caller.id,
                    "unitId": request.unit_id,
                    "propertyId": request.property_id,
                    "unitNumber": request.unit_number,
                    "month": request.month,
                    "dueDate": due_date,
                    "type": PaymentType.RENT_PAYMENT.value,
               },
          )
          payment = Payment(
               tenant_id=caller.id,
               amount=request.amount,
               method=PaymentMethod.CARD,
               status=PaymentStatus.PENDING,
               stripe_payment_intent_id=intent["id"],
               description=f"Rent payment for {request.month}",
               property_id=request.property_id,
               unit_id=request.unit_id,
               unit_number=request.unit_number,
               month_label=request.month,
               due_date=request.due_date,
               payment_type=PaymentType.RENT_PAYMENT,
          )
          db.add(payment)
          db.flush()
          return payment, intent

     @staticmethod
     def create_invoice_payment_intent(db: Session, caller: CurrentUser, invoice_id: int, stripe: StripeClient):
          """Start a card payment for one of the caller's invoices."""
          invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
          if not invoice:
               raise NotFoundError("Invoice")
          if invoice.tenant_id != caller.id:
               raise ForbiddenError("Forbidden")

          intent = stripe.create_payment_intent(
               invoice.amount,
               {"invoiceId": invoice.id, "tenantId": caller.id},
          )
          payment = Payment(
               tenant_id=caller.id,
               invoice_id=invoice.id,
               amount=invoice.amount,
               method=PaymentMethod.CARD,
               status=PaymentStatus.PENDING,
               stripe_payment_intent_id=intent["id"],
               description=f"Invoice payment for {invoice.period}",
               property_id=invoice.property_id,
               unit_id=invoice.unit_id,
               payment_type=PaymentType.INVOICE_PAYMENT,
          )
          db.add(payment)
          db.flush()
          return payment, intent

     @staticmethod
     def handle_stripe_event(db: Session, event: dict) -> Optional[Payment]:
          """
          Apply a Stripe webhook event.

          payment_intent.succeeded -> payment SUCCEEDED (and its invoice PAID);
          payment_intent.payment_failed -> payment FAILED. Other events and
          unknown intents are ignored.
          """
          event_type = event.get("type")
          if event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
               return None

          intent = (event.get("data") or {}).get("object") or {}
          payment = db.query(Payment).filter(Payment.stripe_payment_intent_id == intent.get("id")).first()
          if not payment:
               logger.warning("Stripe event %s for unknown intent %s", event_type, intent.get("id"))
               return None

          if event_type == "payment_intent.succeeded":
               if payment.status != PaymentStatus.SUCCEEDED:
                    payment.mark_as_succeeded(_utcnow())
                    payment.method = PaymentMethod.CARD
                    PaymentService._settle_invoice(db, payment)
          elif payment.status == PaymentStatus.PENDING:
               payment.status = PaymentStatus.FAILED

          db.flush()
          return payment

     @staticmethod
     def _settle_invoice(db: Session, payment: Payment) -> None:
          if payment.invoice_id is None:
               return
          invoice = db.query(Invoice).filter(Invoice.id == payment.invoice_id).first()
          if invoice and invoice.status != InvoiceStatus.PAID:
               invoice.mark_as_paid(payment_id=payment.id)

     @staticmethod
     def _require_property_owner(db: Session, caller: CurrentUser, property_id: Optional[int]) -> None:
          """Owners may only touch payments on their own properties."""
          property = db.query(Property).filter(Property.id == property_id).first() if property_id else None
          if property is None:
               raise ForbiddenError("You can only manage payments on your own properties")
          require_owns(caller, property.owner_id, "You can only manage payments on your own properties")
