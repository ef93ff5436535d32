"""Certification router - FastAPI endpoints for provider certifications"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...email_service import notify, send_certification_reviewed_email
from ...models import User
from ...models_certification import CERTIFICATION_CATEGORIES
from ...storage import CERTIFICATION_TYPES, delete_upload, save_upload
from .schemas import (
    CertificationApprove,
    CertificationReject,
    CertificationResponse,
    serialize_certification,
)
from .service import CertificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/certifications", tags=["Certifications"])


def get_certification_service(db: Session = Depends(get_db)) -> CertificationService:
    """Dependency injection for CertificationService"""
    return CertificationService(db)


async def _notify_reviewed(certification, approved: bool) -> bool:
    provider = certification.service_provider
    if not provider:
        return False
    return await notify(
        send_certification_reviewed_email(
            provider.email,
            provider.name,
            certification.title,
            approved,
            provider.certification_points,
            provider.certification_level,
            certification.rejection_reason,
        )
    )


@router.post("/upload", response_model=CertificationResponse, status_code=201)
async def upload_certification(
    title: str = Form(...),
    issuingOrganization: str = Form(...),
    certificateNumber: str = Form(...),
    issueDate: datetime = Form(...),
    category: str = Form(...),
    expiryDate: Optional[datetime] = Form(None),
    points: Optional[int] = Form(None, ge=1, le=100),
    description: Optional[str] = Form(None),
    document: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: CertificationService = Depends(get_certification_service),
):
    """Upload a certification document for admin review"""
    if not current_user.is_provider:
        raise HTTPException(status_code=403, detail="Only service providers can upload certifications")
    if category not in CERTIFICATION_CATEGORIES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category. Expected one of: {', '.join(CERTIFICATION_CATEGORIES)}",
        )

    document_path = await save_upload(document, "certifications", "cert", CERTIFICATION_TYPES)
    try:
        certification = service.upload_certification(
            current_user,
            document_path,
            title=title,
            issuing_organization=issuingOrganization,
            certificate_number=certificateNumber,
            issue_date=issueDate,
            category=category,
            expiry_date=expiryDate,
            points=points,
            description=description,
        )
    except Exception:
        delete_upload(document_path)
        raise
    return serialize_certification(certification)


@router.get("/my", response_model=list[CertificationResponse])
async def get_my_certifications(
    current_user: User = Depends(get_current_user),
    service: CertificationService = Depends(get_certification_service),
):
    return [serialize_certification(c) for c in service.get_provider_certifications(current_user.id)]


@router.get("/provider/{provider_id}", response_model=list[CertificationResponse])
async def get_provider_certifications(
    provider_id: int,
    status: Optional[str] = Query(None),
    service: CertificationService = Depends(get_certification_service),
):
    return [serialize_certification(c) for c in service.get_provider_certifications(provider_id, status)]


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin/pending", response_model=list[CertificationResponse])
async def get_pending_certifications(
    _admin: User = Depends(require_admin),
    service: CertificationService = Depends(get_certification_service),
):
    return [serialize_certification(c) for c in service.get_pending()]


@router.get("/admin/all", response_model=list[CertificationResponse])
async def get_all_certifications(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    providerId: Optional[int] = Query(None),
    _admin: User = Depends(require_admin),
    service: CertificationService = Depends(get_certification_service),
):
    return [serialize_certification(c) for c in service.list_certifications(status, category, providerId)]


@router.get("/admin/stats")
async def get_certification_stats(
    _admin: User = Depends(require_admin),
    service: CertificationService = Depends(get_certification_service),
):
    return service.get_stats()


@router.patch("/admin/{certification_id}/approve", response_model=CertificationResponse)
async def approve_certification(
    certification_id: int,
    data: CertificationApprove,
    admin: User = Depends(require_admin),
    service: CertificationService = Depends(get_certification_service),
):
    certification = service.approve(certification_id, admin, data.adminNotes)
    await _notify_reviewed(certification, approved=True)
    return serialize_certification(certification)


@router.patch("/admin/{certification_id}/reject", response_model=CertificationResponse)
async def reject_certification(
    certification_id: int,
    data: CertificationReject,
    admin: User = Depends(require_admin),
    service: CertificationService = Depends(get_certification_service),
):
    certification = service.reject(certification_id, admin, data.rejectionReason, data.adminNotes)
    await _notify_reviewed(certification, approved=False)
    return serialize_certification(certification)


@router.delete("/{certification_id}")
async def delete_certification(
    certification_id: int,
    current_user: User = Depends(get_current_user),
    service: CertificationService = Depends(get_certification_service),
):
    """Owner or admin. Approved points are taken back."""
    document_path = service.delete(certification_id, current_user)
    delete_upload(document_path)
    return {"message": "Certification deleted successfully"}


__all__ = ["router"]
