# services/lease_service.py
"""
Lease Service - move-in, lease edit and move-out workflows.

Move-in is one unit of work: the lease row, the unit occupation, the
agreement document and the rent schedule are written in the caller's
transaction, and nothing is committed here. If any step raises, the
caller rolls back and the generated agreement file is removed.

Unit occupation and release are conditional UPDATEs (compare-and-swap on
the unit status), so two concurrent move-ins into the same unit cannot
both succeed.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from models import (
     Lease, LeaseStatus, Payment, PaymentStatus, PaymentType, Property, PropertyUnit, UnitStatus, User, UserRole,
)
from models.lease import DEFAULT_TERMS, format_agreement_number
from schemas.lease import LeaseTermsInput, LeaseUpdate, MoveInRequest
from .access import CurrentUser, require_manager, require_owns
from .agreement_service import AgreementGenerator, build_agreement_snapshot
from .exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from .payment_schedule import generate_rent_payments

logger = logging.getLogger(__name__)


@dataclass
class MoveInResult:
     lease: Lease
     agreement_path: Optional[str]
     payments_created: int


@dataclass
class MoveOutResult:
     lease: Lease
     payments_cancelled: int


def _utcnow() -> datetime:
     return datetime.now(timezone.utc).replace(tzinfo=None)


def _number_or_default(value, default, cast):
     """Coerce a submitted term; falsy or unparsable values use the default."""
     if value in (None, "", 0, False):
          return default
     try:
          result = cast(str(value)) if cast is Decimal else cast(float(value))
     except (ValueError, TypeError, InvalidOperation):
          return default
     return result or default


def _flag(value) -> bool:
     if isinstance(value, str):
          return value.strip().lower() in ("true", "1", "yes", "on")
     return bool(value)


def coerce_terms(terms: Optional[LeaseTermsInput]) -> dict:
     """
     Normalise submitted lease terms.

     Numbers are parsed and fall back to the defaults (late fee 50 after
     5 days, 30 days notice) when missing or zero; flags default to False.
     """
     raw = terms.model_dump() if terms is not None else {}
     return {
          "late_fee_amount": _number_or_default(raw.get("late_fee_amount"), Decimal(DEFAULT_TERMS["late_fee_amount"]), Decimal),
          "late_fee_after_days": _number_or_default(raw.get("late_fee_after_days"), DEFAULT_TERMS["late_fee_after_days"], int),
          "notice_period_days": _number_or_default(raw.get("notice_period_days"), DEFAULT_TERMS["notice_period_days"], int),
          "pet_allowed": _flag(raw.get("pet_allowed")),
          "smoking_allowed": _flag(raw.get("smoking_allowed")),
     }


def _check_date_range(start: date, end: date) -> None:
     if end < start:
          raise ValidationError("lease_end_date must be on or after lease_start_date")


def _documents_payload(documents) -> dict:
     if not documents:
          return {}
     return {key: info.model_dump(mode="json") for key, info in documents.items()}


class LeaseService:
     """Service class for lease lifecycle business logic."""

     @staticmethod
     def move_in(
          db: Session,
          caller: CurrentUser,
          property_id: int,
          unit_id: int,
          request: MoveInRequest,
          generator: AgreementGenerator,
     ) -> MoveInResult:
          """
          Move a tenant into an available unit.

          Checks, in order: input, property, ownership, unit, availability,
          tenant, owner. Then creates the lease, occupies the unit, renders
          the agreement and inserts the rent schedule.

          Raises:
               ValidationError, NotFoundError, ForbiddenError, ConflictError
          """
          require_manager(caller)
          if not request.tenant_id or not request.lease_start_date or not request.lease_end_date or not request.monthly_rent:
               raise ValidationError(
                    "Missing required fields: tenant_id, lease_start_date, lease_end_date, monthly_rent"
               )
          _check_date_range(request.lease_start_date, request.lease_end_date)

          property = db.query(Property).filter(Property.id == property_id).first()
          if not property:
               raise NotFoundError("Property")

          require_owns(caller, property.owner_id)

          unit = (
               db.query(PropertyUnit)
               .filter(PropertyUnit.id == unit_id, PropertyUnit.property_id == property.id)
               .populate_existing()
               .first()
          )
          if not unit:
               raise NotFoundError("Unit")

          if not unit.is_available:
               raise ConflictError("Unit is not available for move-in")

          tenant = db.query(User).filter(User.id == request.tenant_id).first()
          if not tenant or tenant.role != UserRole.TENANT:
               raise NotFoundError("Tenant")

          owner = db.query(User).filter(User.id == property.owner_id).first()
          if not owner:
               raise NotFoundError("Property owner")

          terms = coerce_terms(request.terms)
          lease = Lease(
               property_id=property.id,
               unit_id=unit.id,
               tenant_id=tenant.id,
               owner_id=owner.id,
               lease_start_date=request.lease_start_date,
               lease_end_date=request.lease_end_date,
               monthly_rent=request.monthly_rent,
               security_deposit=request.security_deposit or Decimal("0"),
               advance_payment=request.advance_payment or Decimal("0"),
               status=LeaseStatus.ACTIVE,
               documents=_documents_payload(request.documents),
               notes=request.notes,
               **terms,
          )
          db.add(lease)
          db.flush()
          lease.agreement_number = format_agreement_number(lease.id)

          LeaseService._occupy_unit(db, unit, tenant.id)

          snapshot = build_agreement_snapshot(lease, property, unit, tenant, owner)
          agreement = generator.generate(snapshot)
          try:
               lease.agreement_pdf_path = agreement.relative_path
               payments = generate_rent_payments(db, lease, property, unit)
               db.flush()
          except Exception:
               generator.remove(agreement)
               raise

          logger.info(
               "Move-in: lease %s unit %s tenant %s, %d payments scheduled",
               lease.agreement_number, unit.id, tenant.id, len(payments),
          )
          return MoveInResult(lease=lease, agreement_path=agreement.relative_path, payments_created=len(payments))

     @staticmethod
     def _occupy_unit(db: Session, unit: PropertyUnit, tenant_id: int) -> None:
          """Set the unit OCCUPIED only if it is still AVAILABLE."""
          result = db.execute(
               update(PropertyUnit)
               .where(PropertyUnit.id == unit.id, PropertyUnit.status == UnitStatus.AVAILABLE)
               .values(status=UnitStatus.OCCUPIED, tenant_id=tenant_id)
               .execution_options(synchronize_session=False)
          )
          if result.rowcount != 1:
               raise ConflictError("Unit is not available for move-in")
          db.refresh(unit)

     @staticmethod
     def _release_unit(db: Session, unit_id: int, tenant_id: int) -> bool:
          """Free the unit if it is still occupied by this tenant."""
          result = db.execute(
               update(PropertyUnit)
               .where(
                    PropertyUnit.id == unit_id,
                    PropertyUnit.status == UnitStatus.OCCUPIED,
                    PropertyUnit.tenant_id == tenant_id,
               )
               .values(status=UnitStatus.AVAILABLE, tenant_id=None)
               .execution_options(synchronize_session=False)
          )
          return result.rowcount == 1

     @staticmethod
     def has_collected_rent(db: Session, unit_id: int) -> bool:
          """True once any payment for the unit has succeeded."""
          return (
               db.query(Payment.id)
               .filter(Payment.unit_id == unit_id, Payment.status == PaymentStatus.SUCCEEDED)
               .first()
               is not None
          )

     @staticmethod
     def get_lease(db: Session, lease_id: int) -> Lease:
          lease = db.query(Lease).filter(Lease.id == lease_id).first()
          if not lease:
               raise NotFoundError("Lease")
          return lease

     @staticmethod
     def update_lease(
          db: Session,
          caller: CurrentUser,
          lease_id: int,
          request: LeaseUpdate,
          generator: AgreementGenerator,
     ) -> Lease:
          """
          Partially update a lease and regenerate its agreement.

          Only ACTIVE leases can be edited, and only until rent has been
          collected for their unit.
          Agreement regeneration failures are logged; the update stands.
          """
          require_manager(caller, "Access denied. Only admins and owners can update leases.")
          lease = LeaseService.get_lease(db, lease_id)
          require_owns(caller, lease.owner_id, "You can only manage your own leases")

          if not lease.is_active:
               raise ConflictError(f"Cannot edit a {lease.status.value.lower()} lease")

          if LeaseService.has_collected_rent(db, lease.unit_id):
               raise ConflictError("Cannot edit lease after rent has been collected")

          changes = request.model_dump(exclude_unset=True)
          start = changes.get("lease_start_date") or lease.lease_start_date
          end = changes.get("lease_end_date") or lease.lease_end_date
          _check_date_range(start, end)

          schedule_changed = False
          for field in ("lease_start_date", "lease_end_date", "monthly_rent"):
               if changes.get(field) is not None and changes[field] != getattr(lease, field):
                    setattr(lease, field, changes[field])
                    schedule_changed = True

          for field in ("security_deposit", "advance_payment"):
               if changes.get(field) is not None:
                    setattr(lease, field, changes[field])

          if "notes" in changes:
               lease.notes = changes["notes"]

          if request.terms is not None:
               submitted = request.terms.model_dump(exclude_unset=True)
               merged = {key: submitted.get(key, value) for key, value in lease.terms.items()}
               for key, value in coerce_terms(LeaseTermsInput(**merged)).items():
                    setattr(lease, key, value)

          if request.documents:
               documents = dict(lease.documents or {})
               documents.update(_documents_payload(request.documents))
               lease.documents = documents

          db.flush()

          if schedule_changed:
               LeaseService._reschedule_pending_payments(db, lease)

          LeaseService._regenerate_agreement(db, lease, generator)
          return lease

     @staticmethod
     def _reschedule_pending_payments(db: Session, lease: Lease) -> int:
          """Replace the lease's pending rent rows with a schedule for the new terms."""
          removed = (
               db.query(Payment)
               .filter(
                    Payment.lease_id == lease.id,
                    Payment.status == PaymentStatus.PENDING,
                    Payment.payment_type == PaymentType.RENT_PAYMENT,
               )
               .delete(synchronize_session=False)
          )
          created = generate_rent_payments(db, lease, lease.property, lease.unit)
          logger.info("Lease %s rescheduled: %d pending removed, %d created", lease.id, removed, len(created))
          return len(created)

     @staticmethod
     def _regenerate_agreement(db: Session, lease: Lease, generator: AgreementGenerator) -> None:
          """Render a fresh agreement and drop the file it replaces."""
          previous = lease.agreement_pdf_path
          try:
               snapshot = build_agreement_snapshot(lease, lease.property, lease.unit, lease.tenant, lease.owner)
               agreement = generator.generate(snapshot)
          except Exception:
               logger.exception("Agreement regeneration failed for lease %s; keeping previous document", lease.id)
               return
          lease.agreement_pdf_path = agreement.relative_path
          db.flush()
          if previous and previous != agreement.relative_path:
               generator.discard(previous)

     @staticmethod
     def move_out(
          db: Session,
          caller: CurrentUser,
          lease_id: int,
          move_out_date: Optional[date] = None,
     ) -> MoveOutResult:
          """
          End an active lease and free its unit.

          The lease becomes TERMINATED, the unit AVAILABLE (if this tenant
          still holds it) and pending rent due after the move-out date is
          cancelled. Collected payments are untouched.
          """
          require_manager(caller)
          lease = LeaseService.get_lease(db, lease_id)
          require_owns(caller, lease.owner_id, "You can only manage your own leases")

          if not lease.is_active:
               raise ConflictError(f"Lease is already {lease.status.value}")

          move_out_date = move_out_date or _utcnow().date()
          lease.status = LeaseStatus.TERMINATED
          lease.terminated_date = _utcnow()
          lease.move_out_date = move_out_date

          if not LeaseService._release_unit(db, lease.unit_id, lease.tenant_id):
               logger.warning("Unit %s was not occupied by tenant %s at move-out", lease.unit_id, lease.tenant_id)
          db.expire(lease.unit)

          cancelled = (
               db.query(Payment)
               .filter(
                    Payment.lease_id == lease.id,
                    Payment.status == PaymentStatus.PENDING,
                    Payment.payment_type == PaymentType.RENT_PAYMENT,
                    Payment.due_date > move_out_date,
               )
               .delete(synchronize_session=False)
          )
          db.flush()
          db.refresh(lease)
          logger.info("Move-out: lease %s terminated, %d pending payments cancelled", lease.id, cancelled)
          return MoveOutResult(lease=lease, payments_cancelled=cancelled)

     @staticmethod
     def reconcile_terminated_leases(db: Session) -> List[Lease]:
          """
          Mark ACTIVE leases whose unit is AVAILABLE as TERMINATED.

          Repairs leases left behind by units freed outside move_out().
          """
          stale = (
               db.query(Lease)
               .join(PropertyUnit, Lease.unit_id == PropertyUnit.id)
               .filter(Lease.status == LeaseStatus.ACTIVE, PropertyUnit.status == UnitStatus.AVAILABLE)
               .all()
          )
          now = _utcnow()
          for lease in stale:
               lease.status = LeaseStatus.TERMINATED
               lease.terminated_date = now
          db.flush()
          return stale

     @staticmethod
     def list_leases(db: Session, caller: CurrentUser, unit_id: Optional[int] = None) -> List[Lease]:
          """Leases visible to the caller, newest first."""
          query = LeaseService._scoped(db.query(Lease), caller)
          if unit_id is not None:
               query = query.filter(Lease.unit_id == unit_id)
          return query.order_by(Lease.created_at.desc(), Lease.id.desc()).all()

     @staticmethod
     def lease_history(db: Session, caller: CurrentUser, unit_id: int) -> List[Lease]:
          """All leases of a unit, most recent start first."""
          query = LeaseService._scoped(db.query(Lease).filter(Lease.unit_id == unit_id), caller)
          return query.order_by(Lease.lease_start_date.desc(), Lease.id.desc()).all()

     @staticmethod
     def _scoped(query, caller: CurrentUser):
          if caller.is_tenant:
               return query.filter(Lease.tenant_id == caller.id)
          if caller.is_owner:
               return query.filter(Lease.owner_id == caller.id)
          return query

     @staticmethod
     def get_lease_for_agreement(db: Session, caller: CurrentUser, lease_id: int) -> Lease:
          """Lease whose agreement the caller may download."""
          lease = LeaseService.get_lease(db, lease_id)
          if caller.is_tenant and lease.tenant_id != caller.id:
               raise ForbiddenError("Access denied")
          if caller.is_owner and lease.owner_id != caller.id:
               raise ForbiddenError("Access denied")
          return lease

     @staticmethod
     def available_tenants(db: Session) -> List[User]:
          return db.query(User).filter(User.role == UserRole.TENANT).order_by(User.name).all()
