# jobs/invoice_cron.py
"""
Monthly invoice job.

Disabled unless AUTO_INVOICES_ENABLED=true; the schedule is a crontab
expression (AUTO_INVOICES_CRON, default "0 0 1 * *") evaluated in UTC.
A failing run is logged and the next tick proceeds normally.
"""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Settings
from database import Database
from services.invoice_service import InvoiceService
from services.payment_schedule import current_period_utc

logger = logging.getLogger(__name__)

JOB_ID = "invoice-cron"


def run_invoice_job(database: Database, now: Optional[datetime] = None) -> int:
     """
     Create this period's invoices for all occupied units.

     Returns:
          Number of invoices created (0 on failure)
     """
     period = current_period_utc(now)
     try:
          with database.session() as db:
               created = InvoiceService.generate_for_period(db, period)
               count = len(created)
     except Exception:
          logger.exception("[invoice-cron] Run for %s failed", period)
          return 0

     if count:
          logger.info("[invoice-cron] Created %d invoices for %s", count, period)
     else:
          logger.info("[invoice-cron] No invoices to create for %s", period)
     return count


def start_invoice_cron(settings: Settings, database: Database) -> Optional[BackgroundScheduler]:
     """
     Schedule run_invoice_job. Returns the started scheduler, or None when
     the job is disabled. Runs never overlap within this process.
     """
     if not settings.auto_invoices_enabled:
          return None

     scheduler = BackgroundScheduler(timezone="UTC")
     scheduler.add_job(
          run_invoice_job,
          CronTrigger.from_crontab(settings.auto_invoices_cron, timezone="UTC"),
          args=[database],
          id=JOB_ID,
          max_instances=1,
          coalesce=True,
          replace_existing=True,
     )
     scheduler.start()
     logger.info("[invoice-cron] Scheduled with %s", settings.auto_invoices_cron)
     return scheduler
