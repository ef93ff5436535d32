"""
Certification service - upload, admin review and removal of provider credentials.

Status changes and the matching point changes share one transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_certification import DEFAULT_CERTIFICATION_POINTS, Certification
from ...shared.persistence import commit as commit_session
from ..users.repository import UserRepository
from .repository import CertificationRepository
from .scoring import CertificationScoring

logger = logging.getLogger(__name__)


class CertificationService:
    """Service layer for certification business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CertificationRepository()

    def get_certification(self, certification_id: int) -> Certification:
        certification = self.repo.get_certification(self.db, certification_id)
        if not certification:
            raise HTTPException(status_code=404, detail="Certification not found")
        return certification

    def _get_owner(self, certification: Certification) -> User:
        provider = UserRepository.get_by_id(self.db, certification.service_provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Service provider not found")
        return provider

    def upload_certification(
        self,
        user: User,
        document_path: str,
        title: str,
        issuing_organization: str,
        certificate_number: str,
        issue_date: datetime,
        category: str,
        expiry_date: Optional[datetime] = None,
        points: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Certification:
        """Create a pending certification and count it towards totalCertifications"""
        if not user.is_provider:
            raise HTTPException(status_code=403, detail="Only service providers can upload certifications")
        if expiry_date and expiry_date <= issue_date:
            raise HTTPException(status_code=400, detail="Expiry date must be after the issue date")

        certification = self.repo.create_certification(
            self.db,
            commit=False,
            service_provider_id=user.id,
            title=title,
            issuing_organization=issuing_organization,
            certificate_number=certificate_number,
            issue_date=issue_date,
            expiry_date=expiry_date,
            category=category,
            points=points or DEFAULT_CERTIFICATION_POINTS,
            description=description.strip() if description else None,
            document_file=document_path,
            status="pending",
        )
        CertificationScoring.adjust_total_certifications(self.db, user, 1, commit=False)
        commit_session(self.db, certification, user)
        logger.info(f"📜 Certification {certification.id} uploaded by provider {user.id}, pending review")
        return certification

    def get_provider_certifications(self, provider_id: int, status: Optional[str] = None) -> list[Certification]:
        return self.repo.get_provider_certifications(self.db, provider_id, status)

    def get_pending(self) -> list[Certification]:
        return self.repo.list_certifications(self.db, status="pending")

    def list_certifications(
        self, status: Optional[str] = None, category: Optional[str] = None, provider_id: Optional[int] = None
    ) -> list[Certification]:
        return self.repo.list_certifications(self.db, status, category, provider_id)

    def approve(self, certification_id: int, admin: User, admin_notes: Optional[str] = None) -> Certification:
        certification = self.get_certification(certification_id)
        if certification.status != "pending":
            raise HTTPException(status_code=400, detail="Certification is not pending approval")

        provider = self._get_owner(certification)
        certification.status = "approved"
        certification.admin_notes = admin_notes
        certification.reviewed_by_id = admin.id
        certification.reviewed_at = datetime.utcnow()
        CertificationScoring.add_certification_points(self.db, provider, certification.points, commit=False)
        commit_session(self.db, certification, provider)

        logger.info(
            f"✅ Certification {certification.id} approved by admin {admin.id}; "
            f"provider {provider.id} now at {provider.certification_points} points ({provider.certification_level})"
        )
        return certification

    def reject(
        self, certification_id: int, admin: User, rejection_reason: str, admin_notes: Optional[str] = None
    ) -> Certification:
        """Reject a pending certification, or revoke an approved one and its points"""
        certification = self.get_certification(certification_id)
        if certification.status == "rejected":
            raise HTTPException(status_code=400, detail="Certification is already rejected")

        provider = self._get_owner(certification)
        was_approved = certification.status == "approved"
        certification.status = "rejected"
        certification.rejection_reason = rejection_reason
        certification.admin_notes = admin_notes
        certification.reviewed_by_id = admin.id
        certification.reviewed_at = datetime.utcnow()
        if was_approved:
            CertificationScoring.remove_certification_points(self.db, provider, certification.points, commit=False)
        commit_session(self.db, certification, provider)

        logger.info(
            f"❌ Certification {certification.id} rejected by admin {admin.id}"
            + (" (points revoked)" if was_approved else "")
        )
        return certification

    def delete(self, certification_id: int, user: User) -> str:
        """Delete a certification. Returns the stored document path for cleanup."""
        certification = self.get_certification(certification_id)
        if not user.is_admin and certification.service_provider_id != user.id:
            raise HTTPException(status_code=403, detail="You can only delete your own certifications")

        provider = self._get_owner(certification)
        if certification.status == "approved":
            CertificationScoring.remove_certification_points(self.db, provider, certification.points, commit=False)
        CertificationScoring.adjust_total_certifications(self.db, provider, -1, commit=False)

        document_path = certification.document_file
        self.db.delete(certification)
        commit_session(self.db, provider)
        logger.info(f"🗑️ Certification {certification_id} deleted by user {user.id}")
        return document_path

    def get_stats(self) -> dict:
        return self.repo.get_stats(self.db)
