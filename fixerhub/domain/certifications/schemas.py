"""Certification domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CertificationApprove(BaseModel):
    adminNotes: Optional[str] = None


class CertificationReject(BaseModel):
    rejectionReason: str
    adminNotes: Optional[str] = None

    @field_validator("rejectionReason")
    @classmethod
    def check_reason(cls, v):
        if not v or not v.strip():
            raise ValueError("Rejection reason is required")
        return v.strip()


class CertificationResponse(BaseModel):
    """Schema for certification response"""

    id: int
    serviceProviderId: int
    serviceProviderName: Optional[str] = None
    title: str
    issuingOrganization: str
    certificateNumber: str
    issueDate: datetime
    expiryDate: Optional[datetime] = None
    category: str
    points: int
    description: Optional[str] = None
    documentFile: str
    status: str
    adminNotes: Optional[str] = None
    reviewedById: Optional[int] = None
    reviewedAt: Optional[datetime] = None
    rejectionReason: Optional[str] = None
    isExpired: bool
    isActive: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def serialize_certification(certification) -> CertificationResponse:
    provider = certification.service_provider
    return CertificationResponse(
        id=certification.id,
        serviceProviderId=certification.service_provider_id,
        serviceProviderName=provider.name if provider else None,
        title=certification.title,
        issuingOrganization=certification.issuing_organization,
        certificateNumber=certification.certificate_number,
        issueDate=certification.issue_date,
        expiryDate=certification.expiry_date,
        category=certification.category,
        points=certification.points,
        description=certification.description,
        documentFile=certification.document_file,
        status=certification.status,
        adminNotes=certification.admin_notes,
        reviewedById=certification.reviewed_by_id,
        reviewedAt=certification.reviewed_at,
        rejectionReason=certification.rejection_reason,
        isExpired=certification.is_expired,
        isActive=certification.is_active,
        created_at=certification.created_at,
    )
