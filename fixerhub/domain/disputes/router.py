"""Dispute router - FastAPI endpoints for disputes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...email_service import notify, send_dispute_resolved_email
from ...models import User
from ...storage import EVIDENCE_TYPES, save_upload
from .schemas import (
    DisputeCreate,
    DisputeMessageCreate,
    DisputeResolve,
    DisputeResponse,
    DisputeStatusUpdate,
    EvidenceResponse,
    serialize_dispute,
    serialize_evidence,
)
from .service import DisputeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/disputes", tags=["Disputes"])


def get_dispute_service(db: Session = Depends(get_db)) -> DisputeService:
    """Dependency injection for DisputeService"""
    return DisputeService(db)


@router.post("", response_model=DisputeResponse, status_code=201)
async def create_dispute(
    data: DisputeCreate,
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    """Report an issue with a booking you are part of"""
    dispute = service.create_dispute(data, current_user)
    return serialize_dispute(dispute, include_admin_notes=False)


@router.get("/user", response_model=list[DisputeResponse])
async def get_user_disputes(
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    return [
        serialize_dispute(d, include_admin_notes=current_user.is_admin)
        for d in service.get_user_disputes(current_user)
    ]


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin")
async def get_all_disputes(
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _admin: User = Depends(require_admin),
    service: DisputeService = Depends(get_dispute_service),
):
    """Admin queue, most urgent first"""
    disputes, pagination = service.list_disputes(status, priority, category, page, limit)
    return {"disputes": [serialize_dispute(d) for d in disputes], "pagination": pagination}


@router.get("/admin/stats")
async def get_dispute_stats(
    _admin: User = Depends(require_admin),
    service: DisputeService = Depends(get_dispute_service),
):
    return service.get_stats()


@router.patch("/{dispute_id}/status", response_model=DisputeResponse)
async def update_dispute_status(
    dispute_id: int,
    data: DisputeStatusUpdate,
    admin: User = Depends(require_admin),
    service: DisputeService = Depends(get_dispute_service),
):
    return serialize_dispute(service.update_status(dispute_id, data.status, admin, data.adminNote))


@router.patch("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: int,
    data: DisputeResolve,
    admin: User = Depends(require_admin),
    service: DisputeService = Depends(get_dispute_service),
):
    dispute = service.resolve(dispute_id, data, admin)

    for party in (dispute.service_seeker, dispute.service_provider):
        if party:
            await notify(
                send_dispute_resolved_email(party.email, party.name, dispute.title, dispute.resolution, dispute.outcome)
            )
    return serialize_dispute(dispute)


# ============================================================================
# PARTIES
# ============================================================================


@router.get("/{dispute_id}", response_model=DisputeResponse)
async def get_dispute(
    dispute_id: int,
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    dispute = service.get_dispute(dispute_id, current_user)
    return serialize_dispute(dispute, include_admin_notes=current_user.is_admin)


@router.post("/{dispute_id}/messages", response_model=DisputeResponse)
async def add_message(
    dispute_id: int,
    data: DisputeMessageCreate,
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    dispute = service.add_message(dispute_id, data.message, current_user)
    return serialize_dispute(dispute, include_admin_notes=current_user.is_admin)


@router.post("/{dispute_id}/evidence", response_model=EvidenceResponse)
async def upload_evidence(
    dispute_id: int,
    evidence: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: DisputeService = Depends(get_dispute_service),
):
    # Access is checked before anything touches the disk
    service.get_dispute(dispute_id, current_user)
    file_path = await save_upload(evidence, "evidence", "evidence", EVIDENCE_TYPES)
    item = service.add_evidence(dispute_id, file_path, evidence.filename, evidence.content_type, current_user)
    return serialize_evidence(item)


__all__ = ["router"]
