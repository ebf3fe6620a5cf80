# services/agreement_service.py
"""
Rent agreement document generation.

The move-in and lease-edit workflows hand a plain-dict snapshot of the
lease, property, unit, tenant and owner to an AgreementGenerator, which
renders a PDF with ReportLab and returns where it was written. The
generator is injected, so tests can replace it.
"""
import io
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from models import Lease, Property, PropertyUnit, User

logger = logging.getLogger(__name__)


@dataclass
class AgreementFile:
     file_path: str
     file_name: str
     relative_path: str


def _fmt_date(value) -> str:
     if value is None:
          return "-"
     if isinstance(value, datetime):
          value = value.date()
     if isinstance(value, date):
          return value.strftime("%B %d, %Y")
     return str(value)


def _fmt_money(value) -> str:
     if value is None:
          return "-"
     return f"{Decimal(str(value)):,.2f}"


def build_agreement_snapshot(
     lease: Lease,
     property: Property,
     unit: PropertyUnit,
     tenant: User,
     owner: User
) -> Dict[str, Any]:
     """Plain-dict view of everything printed on the agreement."""
     return {
          "agreement_number": lease.agreement_number,
          "lease_start_date": lease.lease_start_date,
          "lease_end_date": lease.lease_end_date,
          "monthly_rent": lease.monthly_rent,
          "security_deposit": lease.security_deposit,
          "advance_payment": lease.advance_payment,
          "terms": dict(lease.terms),
          "notes": lease.notes,
          "property": {"title": property.title, "address": property.address},
          "unit": {
               "name": unit.name,
               "type": unit.unit_type,
               "size_sq_ft": unit.size_sq_ft,
               "floor": unit.floor,
               "bedrooms": unit.bedrooms,
               "bathrooms": unit.bathrooms,
          },
          "tenant": {"name": tenant.display_name, "email": tenant.email, "phone": tenant.phone},
          "owner": {"name": owner.display_name, "email": owner.email, "phone": owner.phone},
     }


class AgreementGenerator:
     """Renders rent agreements to PDF files under output_dir."""

     def __init__(self, output_dir: str, public_prefix: str = "/uploads/agreements"):
          self.output_dir = output_dir
          self.public_prefix = public_prefix.rstrip("/")

     def generate(self, snapshot: Dict[str, Any]) -> AgreementFile:
          """
          Render the agreement and write it to disk.

          Returns:
               AgreementFile with the absolute path, the file name and the
               path relative to the uploads mount (stored on the lease).
          """
          os.makedirs(self.output_dir, exist_ok=True)
          number = snapshot.get("agreement_number") or "draft"
          file_name = f"rent-agreement-{number}-{uuid.uuid4().hex[:8]}.pdf"
          file_path = os.path.join(self.output_dir, file_name)
          with open(file_path, "wb") as fh:
               fh.write(self.render(snapshot))
          logger.info("Generated agreement %s at %s", number, file_path)
          return AgreementFile(
               file_path=file_path,
               file_name=file_name,
               relative_path=f"{self.public_prefix}/{file_name}",
          )

     def remove(self, agreement: AgreementFile) -> None:
          """Delete a generated file (used when the surrounding transaction fails)."""
          try:
               os.remove(agreement.file_path)
          except FileNotFoundError:
               pass

     def discard(self, relative_path: str) -> None:
          """Delete a stored agreement by the path kept on the lease."""
          try:
               os.remove(self.resolve(relative_path))
          except FileNotFoundError:
               pass
          logger.info("Discarded agreement %s", relative_path)

     def resolve(self, relative_path: str) -> str:
          """Map a stored relative path back to a file under output_dir."""
          return os.path.join(self.output_dir, os.path.basename(relative_path))

     def render(self, snapshot: Dict[str, Any]) -> bytes:
          buffer = io.BytesIO()
          doc = SimpleDocTemplate(
               buffer,
               pagesize=A4,
               leftMargin=50,
               rightMargin=50,
               topMargin=50,
               bottomMargin=50,
               title=f"Rent Agreement - {snapshot.get('agreement_number')}",
               author="Smart Property Manager",
               subject="Residential Lease Agreement",
          )
          doc.build(self._story(snapshot))
          return buffer.getvalue()

     def _story(self, snapshot: Dict[str, Any]) -> List:
          styles = getSampleStyleSheet()
          title = ParagraphStyle(
               "AgreementTitle",
               parent=styles["Title"],
               fontName="Helvetica-Bold",
               fontSize=20,
               leading=26,
               alignment=TA_CENTER,
          )
          meta = ParagraphStyle("AgreementMeta", parent=styles["Normal"], fontSize=10, alignment=TA_CENTER)
          section = ParagraphStyle(
               "AgreementSection",
               parent=styles["Heading4"],
               fontName="Helvetica-Bold",
               fontSize=12,
               spaceBefore=12,
               spaceAfter=6,
          )
          body = ParagraphStyle("AgreementBody", parent=styles["Normal"], fontSize=11, leading=16)

          prop = snapshot.get("property") or {}
          unit = snapshot.get("unit") or {}
          tenant = snapshot.get("tenant") or {}
          owner = snapshot.get("owner") or {}
          terms = snapshot.get("terms") or {}

          def line(text: str):
               return Paragraph(escape(text), body)

          story = [
               Paragraph("RESIDENTIAL LEASE AGREEMENT", title),
               Paragraph(escape(f"Agreement Number: {snapshot.get('agreement_number')}"), meta),
               Paragraph(escape(f"Generated: {_fmt_date(date.today())}"), meta),
               Spacer(1, 18),
               Paragraph("1. PARTIES", section),
               line(f"Landlord: {owner.get('name')} ({owner.get('email')})"),
               line(f"Tenant: {tenant.get('name')} ({tenant.get('email')})"),
               Paragraph("2. PREMISES", section),
               line(f"Property: {prop.get('title')}, {prop.get('address')}"),
               line(
                    f"Unit: {unit.get('name')} ({unit.get('type')}), floor {unit.get('floor')}, "
                    f"{unit.get('bedrooms')} bed / {unit.get('bathrooms')} bath"
               ),
               Paragraph("3. TERM", section),
               line(
                    f"From {_fmt_date(snapshot.get('lease_start_date'))} "
                    f"to {_fmt_date(snapshot.get('lease_end_date'))}"
               ),
               Paragraph("4. RENT AND DEPOSIT", section),
               line(f"Monthly rent: {_fmt_money(snapshot.get('monthly_rent'))}, due on the 1st of each month"),
               line(f"Security deposit: {_fmt_money(snapshot.get('security_deposit'))}"),
               line(f"Advance payment: {_fmt_money(snapshot.get('advance_payment'))}"),
               Paragraph("5. TERMS", section),
               line(
                    f"Late fee of {_fmt_money(terms.get('late_fee_amount'))} after "
                    f"{terms.get('late_fee_after_days')} days"
               ),
               line(f"Notice period: {terms.get('notice_period_days')} days"),
               line(f"Pets allowed: {'Yes' if terms.get('pet_allowed') else 'No'}"),
               line(f"Smoking allowed: {'Yes' if terms.get('smoking_allowed') else 'No'}"),
          ]
          if snapshot.get("notes"):
               story += [Paragraph("6. ADDITIONAL NOTES", section), line(snapshot["notes"])]
          story += [
               Spacer(1, 36),
               line("Landlord signature: ______________________"),
               line("Tenant signature: ______________________"),
          ]
          return story
