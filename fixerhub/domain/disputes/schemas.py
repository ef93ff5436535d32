"""Dispute domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models_dispute import DISPUTE_CATEGORIES, DISPUTE_OUTCOMES, DISPUTE_PRIORITIES, DISPUTE_STATUSES


def _check_choice(value, choices, field):
    if value is not None and value not in choices:
        raise ValueError(f"Invalid {field}. Expected one of: {', '.join(choices)}")
    return value


class DisputeCreate(BaseModel):
    bookingId: int
    title: str
    description: str
    category: str
    priority: str = "medium"

    @field_validator("title", "description")
    @classmethod
    def check_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return _check_choice(v, DISPUTE_CATEGORIES, "category")

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v):
        return _check_choice(v, DISPUTE_PRIORITIES, "priority")


class DisputeStatusUpdate(BaseModel):
    status: str
    adminNote: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _check_choice(v, DISPUTE_STATUSES, "status")


class DisputeResolve(BaseModel):
    resolution: str
    outcome: Optional[str] = None
    outcomeAmount: Optional[float] = None

    @field_validator("outcome")
    @classmethod
    def check_outcome(cls, v):
        return _check_choice(v, DISPUTE_OUTCOMES, "outcome")


class DisputeMessageCreate(BaseModel):
    message: str


class AdminNoteResponse(BaseModel):
    note: str
    adminId: int
    timestamp: datetime


class MessageResponse(BaseModel):
    senderId: int
    senderName: Optional[str] = None
    message: str
    timestamp: datetime
    isAdmin: bool


class EvidenceResponse(BaseModel):
    filePath: str
    fileName: Optional[str] = None
    fileType: Optional[str] = None
    uploadedBy: int
    uploadedAt: datetime


class DisputeResponse(BaseModel):
    """Schema for dispute response"""

    id: int
    title: str
    description: str
    bookingId: int
    serviceProviderId: int
    serviceProviderName: Optional[str] = None
    serviceSeekerId: int
    serviceSeekerName: Optional[str] = None
    reportedById: int
    category: str
    priority: str
    status: str
    assignedAdminId: Optional[int] = None
    resolution: Optional[str] = None
    resolvedAt: Optional[datetime] = None
    resolvedById: Optional[int] = None
    outcome: Optional[str] = None
    outcomeAmount: Optional[float] = None
    outcomeCurrency: Optional[str] = None
    adminNotes: list[AdminNoteResponse] = []
    messages: list[MessageResponse] = []
    evidence: list[EvidenceResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def serialize_evidence(item) -> EvidenceResponse:
    return EvidenceResponse(
        filePath=item.file_path,
        fileName=item.file_name,
        fileType=item.file_type,
        uploadedBy=item.uploaded_by_id,
        uploadedAt=item.uploaded_at,
    )


def serialize_dispute(dispute, include_admin_notes: bool = True) -> DisputeResponse:
    """Admin notes are internal and left out for the parties"""
    return DisputeResponse(
        id=dispute.id,
        title=dispute.title,
        description=dispute.description,
        bookingId=dispute.booking_id,
        serviceProviderId=dispute.service_provider_id,
        serviceProviderName=dispute.service_provider.name if dispute.service_provider else None,
        serviceSeekerId=dispute.service_seeker_id,
        serviceSeekerName=dispute.service_seeker.name if dispute.service_seeker else None,
        reportedById=dispute.reported_by_id,
        category=dispute.category,
        priority=dispute.priority,
        status=dispute.status,
        assignedAdminId=dispute.assigned_admin_id,
        resolution=dispute.resolution,
        resolvedAt=dispute.resolved_at,
        resolvedById=dispute.resolved_by_id,
        outcome=dispute.outcome,
        outcomeAmount=dispute.outcome_amount,
        outcomeCurrency=dispute.outcome_currency,
        adminNotes=[
            AdminNoteResponse(note=n.note, adminId=n.admin_id, timestamp=n.timestamp)
            for n in dispute.admin_notes
        ]
        if include_admin_notes
        else [],
        messages=[
            MessageResponse(
                senderId=m.sender_id,
                senderName=m.sender.name if m.sender else None,
                message=m.message,
                timestamp=m.timestamp,
                isAdmin=m.is_admin,
            )
            for m in dispute.messages
        ],
        evidence=[serialize_evidence(e) for e in dispute.evidence],
        created_at=dispute.created_at,
        updated_at=dispute.updated_at,
    )
