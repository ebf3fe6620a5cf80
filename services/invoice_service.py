# services/invoice_service.py
"""
Invoice Service - Business logic layer for monthly rent invoices.

One invoice per occupied unit, tenant and billing period. Generation is
idempotent: units that already have an invoice for the period are skipped,
and the unique constraint on (period, unit_id, tenant_id) catches rows a
concurrent run inserted in between.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Invoice, Property, PropertyUnit, UnitStatus
from models.invoice import InvoiceStatus
from .access import CurrentUser
from .exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Rent invoices fall due on this day of the billing month
INVOICE_DUE_DAY = 5


def parse_period(period: str) -> date:
     """'2025-10' -> date(2025, 10, 1); raises ValidationError when malformed."""
     try:
          year, month = period.split("-")
          if len(year) != 4 or len(month) != 2:
               raise ValueError(period)
          return date(int(year), int(month), 1)
     except (ValueError, AttributeError):
          raise ValidationError(f"Invalid period '{period}', expected YYYY-MM")


def invoice_due_date(period: str) -> date:
     return parse_period(period).replace(day=INVOICE_DUE_DAY)


class InvoiceService:
     """Service class for invoice-related business logic."""

     @staticmethod
     def stage_invoices(db: Session, period: str, owner_id: Optional[int] = None) -> List[Invoice]:
          """
          Build (unsaved) invoices for every occupied unit lacking one.

          Args:
               db: SQLAlchemy database session
               period: billing period, YYYY-MM
               owner_id: restrict the scan to one owner's properties
          """
          due_date = invoice_due_date(period)

          query = db.query(Property)
          if owner_id is not None:
               query = query.filter(Property.owner_id == owner_id)

          staged = []
          for property in query.order_by(Property.id).all():
               for unit in property.units:
                    if unit.status != UnitStatus.OCCUPIED or unit.tenant_id is None:
                         continue
                    exists = db.query(Invoice.id).filter(
                         Invoice.period == period,
                         Invoice.unit_id == unit.id,
                         Invoice.tenant_id == unit.tenant_id,
                    ).first()
                    if exists:
                         continue
                    staged.append(
                         Invoice(
                              property_id=property.id,
                              unit_id=unit.id,
                              tenant_id=unit.tenant_id,
                              amount=unit.rent_amount,
                              due_date=due_date,
                              period=period,
                              status=InvoiceStatus.PENDING,
                         )
                    )
          return staged

     @staticmethod
     def insert_ignoring_duplicates(db: Session, invoices: List[Invoice]) -> List[Invoice]:
          """
          Insert invoices in one batch; if the unique constraint fires,
          retry row by row and skip the ones that already exist.
          """
          if not invoices:
               return []
          try:
               with db.begin_nested():
                    db.add_all(invoices)
                    db.flush()
               return invoices
          except IntegrityError:
               logger.warning("Batch insert hit an existing invoice; inserting one by one")

          created = []
          for invoice in invoices:
               row = Invoice(
                    property_id=invoice.property_id,
                    unit_id=invoice.unit_id,
                    tenant_id=invoice.tenant_id,
                    amount=invoice.amount,
                    due_date=invoice.due_date,
                    period=invoice.period,
                    status=invoice.status,
               )
               try:
                    with db.begin_nested():
                         db.add(row)
                         db.flush()
                    created.append(row)
               except IntegrityError:
                    logger.info(
                         "Invoice for period %s unit %s tenant %s already exists, skipping",
                         row.period, row.unit_id, row.tenant_id,
                    )
          return created

     @staticmethod
     def generate_for_period(db: Session, period: str, owner_id: Optional[int] = None) -> List[Invoice]:
          """
          Generate the monthly invoices of `period`.

          Returns:
               List of created Invoice objects (empty when all exist already)
          """
          staged = InvoiceService.stage_invoices(db, period, owner_id=owner_id)
          return InvoiceService.insert_ignoring_duplicates(db, staged)

     @staticmethod
     def generate_for_caller(db: Session, caller: CurrentUser, period: str) -> List[Invoice]:
          """Owners generate for their own properties, admins for all."""
          if caller.is_tenant:
               raise ForbiddenError("Only admins and owners can generate invoices")
          owner_id = caller.id if caller.is_owner else None
          return InvoiceService.generate_for_period(db, period, owner_id=owner_id)

     @staticmethod
     def list_for_caller(db: Session, caller: CurrentUser) -> List[Invoice]:
          """TENANT: own invoices; OWNER: invoices of their properties; ADMIN: all."""
          query = db.query(Invoice)
          if caller.is_tenant:
               query = query.filter(Invoice.tenant_id == caller.id)
          elif caller.is_owner:
               query = query.join(Property, Invoice.property_id == Property.id).filter(Property.owner_id == caller.id)
          return query.order_by(Invoice.due_date.desc(), Invoice.id.desc()).all()

     @staticmethod
     def get_for_caller(db: Session, caller: CurrentUser, invoice_id: int) -> Invoice:
          invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
          if not invoice:
               raise NotFoundError("Invoice")
          if caller.is_tenant and invoice.tenant_id != caller.id:
               raise ForbiddenError("You do not have permission to view this invoice")
          if caller.is_owner and invoice.property.owner_id != caller.id:
               raise ForbiddenError("You do not have permission to view this invoice")
          return invoice

     @staticmethod
     def mark_overdue_invoices(db: Session, today: Optional[date] = None) -> int:
          """
          Mark all pending invoices past their due date as OVERDUE.

          Returns:
               Number of invoices marked as overdue
          """
          today = today or datetime.now(timezone.utc).date()
          pending = db.query(Invoice).filter(Invoice.status == InvoiceStatus.PENDING).all()
          overdue_invoices = [invoice for invoice in pending if invoice.is_overdue(today)]
          for invoice in overdue_invoices:
               invoice.mark_as_overdue()
          return len(overdue_invoices)
