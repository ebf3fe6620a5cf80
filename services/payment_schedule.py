# services/payment_schedule.py
"""
Rent payment schedule generation.

One PENDING payment per calendar month of a lease, due on the first of that
month. Dates are plain calendar dates (no time component), so the schedule
does not shift with the server timezone or DST.
"""
import calendar
from datetime import date, datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy.orm import Session

from models import Lease, Payment, Property, PropertyUnit
from models.payment import PaymentMethod, PaymentStatus, PaymentType


def add_months(start: date, months: int) -> date:
     """
     Return the date `months` calendar months after `start`.

     The day of month is clamped to the target month's length
     (2025-01-31 + 1 month -> 2025-02-28).
     """
     index = start.month - 1 + months
     year = start.year + index // 12
     month = index % 12 + 1
     day = min(start.day, calendar.monthrange(year, month)[1])
     return date(year, month, day)


def month_label(value: date) -> str:
     """Human label such as 'January 2025'."""
     return f"{calendar.month_name[value.month]} {value.year}"


def iter_lease_months(start: date, end: date) -> Iterator[date]:
     """
     Yield the month cursor for every billing month of [start, end].

     The cursor begins at `start` and advances one calendar month at a time
     while it is still <= end. An inverted range yields nothing.
     """
     step = 0
     cursor = start
     while cursor <= end:
          yield cursor
          step += 1
          cursor = add_months(start, step)


def current_period_utc(now: Optional[datetime] = None) -> str:
     """Current UTC year-month as 'YYYY-MM'."""
     now = now or datetime.now(timezone.utc)
     if now.tzinfo is not None:
          now = now.astimezone(timezone.utc)
     return f"{now.year:04d}-{now.month:02d}"


def build_rent_payments(lease: Lease, property: Property, unit: PropertyUnit) -> List[Payment]:
     """Build (but do not persist) the rent payments for a lease."""
     payments = []
     for cursor in iter_lease_months(lease.lease_start_date, lease.lease_end_date):
          label = month_label(cursor)
          payments.append(
               Payment(
                    tenant_id=lease.tenant_id,
                    lease_id=lease.id,
                    amount=lease.monthly_rent,
                    method=PaymentMethod.CARD,  # placeholder until actually paid
                    status=PaymentStatus.PENDING,
                    description=f"Rent payment for {label}",
                    property_id=property.id,
                    unit_id=unit.id,
                    unit_number=unit.name,
                    month_label=label,
                    due_date=cursor.replace(day=1),
                    payment_type=PaymentType.RENT_PAYMENT,
               )
          )
     return payments


def generate_rent_payments(
     db: Session,
     lease: Lease,
     property: Property,
     unit: PropertyUnit
) -> List[Payment]:
     """
     Insert the full rent schedule for a lease in one flush.

     Args:
          db: SQLAlchemy database session (caller owns the transaction)
          lease: persisted lease (must have an id)
          property: the lease's property
          unit: the lease's unit; its name becomes the payment unit_number

     Returns:
          The created Payment rows (empty when start > end)
     """
     payments = build_rent_payments(lease, property, unit)
     if payments:
          db.add_all(payments)
          db.flush()
     return payments
