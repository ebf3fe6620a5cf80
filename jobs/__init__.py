# jobs/__init__.py
from .invoice_cron import run_invoice_job, start_invoice_cron

__all__ = ["run_invoice_job", "start_invoice_cron"]
