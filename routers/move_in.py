# routers/move_in.py
"""
Move-in and lease API routes.

Role-based access:
- Admin: any property
- Owner: only their own properties and leases
- Tenant: read-only access to their own leases and agreements
"""
import io
import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from config import Settings
from database import get_session
from dependencies import (
     get_agreement_generator,
     get_document_storage,
     get_settings_from_app,
     require_roles,
     verify_token,
)
from models import Lease, UserRole
from schemas.lease import (
     DocumentInfo,
     LeaseResponse,
     LeaseUpdate,
     MoveInRequest,
     MoveInResponse,
     MoveOutRequest,
     MoveOutResponse,
     ReconcileResponse,
     TenantOption,
)
from services.access import CurrentUser
from services.agreement_service import AgreementGenerator, build_agreement_snapshot
from services.lease_service import LeaseService
from services.storage import DocumentStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/move-in", tags=["move-in"])

managers = require_roles(UserRole.ADMIN, UserRole.OWNER)

UPLOAD_CHUNK_SIZE = 64 * 1024


def _build_lease_response(lease: Lease) -> LeaseResponse:
     """Build lease response with related property, unit and tenant data."""
     return LeaseResponse(
          id=lease.id,
          agreement_number=lease.agreement_number,
          property_id=lease.property_id,
          unit_id=lease.unit_id,
          tenant_id=lease.tenant_id,
          owner_id=lease.owner_id,
          lease_start_date=lease.lease_start_date,
          lease_end_date=lease.lease_end_date,
          monthly_rent=lease.monthly_rent,
          security_deposit=lease.security_deposit,
          advance_payment=lease.advance_payment,
          agreement_pdf_path=lease.agreement_pdf_path,
          status=lease.status.value,
          terminated_date=lease.terminated_date,
          documents=lease.documents or {},
          terms=lease.terms,
          notes=lease.notes,
          signed_date=lease.signed_date,
          move_in_date=lease.move_in_date,
          move_out_date=lease.move_out_date,
          created_at=lease.created_at,
          property_title=lease.property.title if lease.property else None,
          unit_number=lease.unit.name if lease.unit else None,
          tenant_name=lease.tenant.display_name if lease.tenant else None,
          tenant_email=lease.tenant.email if lease.tenant else None,
     )


@router.post(
     "/upload-document",
     response_model=DocumentInfo,
     status_code=status.HTTP_201_CREATED,
     summary="Upload a move-in document"
)
async def upload_document(
     document: UploadFile = File(...),
     user: CurrentUser = Depends(managers),
     storage: DocumentStorage = Depends(get_document_storage),
     settings: Settings = Depends(get_settings_from_app),
):
     """
     Store one move-in document (signed lease, ID proof, deposit receipt or
     inspection report) and return its metadata. Attach the result to the
     move-in request under `documents.<key>`.
     """
     buffer = io.BytesIO()
     size = 0
     while True:
          chunk = await document.read(UPLOAD_CHUNK_SIZE)
          if not chunk:
               break
          size += len(chunk)
          if size > settings.max_document_bytes:
               raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"File exceeds the {settings.max_document_bytes // (1024 * 1024)} MB limit"
               )
          buffer.write(chunk)
     if size == 0:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
     buffer.seek(0)

     return storage.save(
          buffer,
          filename=document.filename,
          content_type=document.content_type,
          size=size,
          owner_id=user.id,
     )


@router.get(
     "/tenants",
     response_model=List[TenantOption],
     summary="List tenants available for move-in"
)
def list_tenants(
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(managers),
):
     return [
          TenantOption(
               id=tenant.id,
               name=tenant.display_name,
               first_name=tenant.first_name,
               last_name=tenant.last_name,
               email=tenant.email,
               phone=tenant.phone,
          )
          for tenant in LeaseService.available_tenants(db)
     ]


@router.get(
     "/leases",
     response_model=List[LeaseResponse],
     summary="List leases"
)
def list_leases(
     unit_id: Optional[int] = Query(None, description="Filter by unit ID"),
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     """
     **Role-based access:**
     - **Tenant**: own leases
     - **Owner**: leases on their properties
     - **Admin**: all leases
     """
     return [_build_lease_response(lease) for lease in LeaseService.list_leases(db, user, unit_id=unit_id)]


@router.put(
     "/leases/{lease_id}",
     response_model=LeaseResponse,
     summary="Edit a lease"
)
def update_lease(
     lease_id: int,
     lease_data: LeaseUpdate,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
     generator: AgreementGenerator = Depends(get_agreement_generator),
):
     """
     Update lease dates, rent, deposit, terms, notes or documents.
     Rejected with 409 once any rent for the unit has been collected.
     """
     lease = LeaseService.update_lease(db, user, lease_id, lease_data, generator)
     db.commit()
     db.refresh(lease)
     return _build_lease_response(lease)


@router.post(
     "/leases/{lease_id}/move-out",
     response_model=MoveOutResponse,
     summary="Move a tenant out"
)
def move_out(
     lease_id: int,
     body: Optional[MoveOutRequest] = None,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     result = LeaseService.move_out(db, user, lease_id, body.move_out_date if body else None)
     db.commit()
     return MoveOutResponse(lease=_build_lease_response(result.lease), payments_cancelled=result.payments_cancelled)


@router.get(
     "/agreement/{lease_id}",
     summary="Download the rent agreement PDF"
)
def download_agreement(
     lease_id: int,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
     generator: AgreementGenerator = Depends(get_agreement_generator),
):
     """
     Serve the stored agreement; re-render it from the lease when the file
     is missing (e.g. on a fresh container).
     """
     lease = LeaseService.get_lease_for_agreement(db, user, lease_id)
     file_name = f"rent-agreement-{lease.agreement_number}.pdf"

     if lease.agreement_pdf_path:
          path = generator.resolve(lease.agreement_pdf_path)
          if os.path.exists(path):
               return FileResponse(path, media_type="application/pdf", filename=file_name)

     logger.info("Agreement file for lease %s missing, rendering on the fly", lease.id)
     snapshot = build_agreement_snapshot(lease, lease.property, lease.unit, lease.tenant, lease.owner)
     return Response(
          content=generator.render(snapshot),
          media_type="application/pdf",
          headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
     )


@router.get(
     "/units/{unit_id}/lease-history",
     response_model=List[LeaseResponse],
     summary="Lease history of a unit"
)
def lease_history(
     unit_id: int,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
):
     return [_build_lease_response(lease) for lease in LeaseService.lease_history(db, user, unit_id)]


@router.post(
     "/fix-terminated-leases",
     response_model=ReconcileResponse,
     summary="Terminate active leases on available units"
)
def fix_terminated_leases(
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(require_roles(UserRole.ADMIN)),
):
     fixed = LeaseService.reconcile_terminated_leases(db)
     db.commit()
     return ReconcileResponse(
          message=f"Fixed {len(fixed)} leases",
          count=len(fixed),
          lease_ids=[lease.id for lease in fixed],
     )


@router.post(
     "/{property_id}/{unit_id}",
     response_model=MoveInResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Move a tenant into a unit"
)
def move_in(
     property_id: int,
     unit_id: int,
     move_in_data: MoveInRequest,
     db: Session = Depends(get_session),
     user: CurrentUser = Depends(verify_token),
     generator: AgreementGenerator = Depends(get_agreement_generator),
):
     """
     Create the lease, occupy the unit, generate the rent agreement and the
     monthly rent schedule in one transaction.

     - **409**: the unit is not available
     - **404**: property, unit or tenant not found
     - **403**: the caller is not an admin or the property's owner
     """
     result = LeaseService.move_in(db, user, property_id, unit_id, move_in_data, generator)
     try:
          db.commit()
     except Exception:
          generator.discard(result.agreement_path)
          raise
     db.refresh(result.lease)
     return MoveInResponse(
          lease=_build_lease_response(result.lease),
          agreement_path=result.agreement_path,
          payments_created=result.payments_created,
     )
