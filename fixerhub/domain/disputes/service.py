"""Dispute service - Business logic for reporting and working disputes"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import User
from ...models_dispute import Dispute, DisputeEvidence
from ...shared.formatting import pagination_data
from ...shared.persistence import commit as commit_session
from ..bookings.repository import BookingRepository
from .repository import DisputeRepository
from .schemas import DisputeCreate, DisputeResolve
from .workflow import DisputeWorkflow

logger = logging.getLogger(__name__)


class DisputeService:
    """Service layer for dispute business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DisputeRepository()

    def get_dispute(self, dispute_id: int, user: User) -> Dispute:
        """Fetch a dispute visible to the user (a party or an admin)"""
        dispute = self.repo.get_dispute(self.db, dispute_id)
        if not dispute:
            raise HTTPException(status_code=404, detail="Dispute not found")
        if not user.is_admin and not dispute.is_party(user.id):
            raise HTTPException(status_code=403, detail="Access denied")
        return dispute

    def create_dispute(self, data: DisputeCreate, user: User) -> Dispute:
        booking = BookingRepository.get_booking(self.db, data.bookingId)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if not booking.is_party(user.id):
            raise HTTPException(status_code=403, detail="You can only report disputes for your own bookings")
        if self.repo.get_active_for_booking(self.db, booking.id):
            raise HTTPException(status_code=400, detail="An active dispute already exists for this booking")

        dispute = self.repo.create_dispute(
            self.db,
            title=data.title,
            description=data.description,
            booking_id=booking.id,
            service_provider_id=booking.service_provider_id,
            service_seeker_id=booking.service_seeker_id,
            reported_by_id=user.id,
            category=data.category,
            priority=data.priority,
            status="open",
        )
        logger.info(f"⚠️ Dispute {dispute.id} opened on booking {booking.id} by user {user.id}")
        return dispute

    def get_user_disputes(self, user: User) -> list[Dispute]:
        return self.repo.get_user_disputes(self.db, user.id)

    def list_disputes(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Dispute], dict]:
        disputes, total = self.repo.list_disputes(self.db, status, priority, category, page, limit)
        return disputes, pagination_data(page, limit, total)

    def update_status(self, dispute_id: int, status: str, admin: User, note: Optional[str] = None) -> Dispute:
        dispute = self.get_dispute(dispute_id, admin)
        return DisputeWorkflow.update_status(self.db, dispute, status, admin.id, note)

    def resolve(self, dispute_id: int, data: DisputeResolve, admin: User) -> Dispute:
        dispute = self.get_dispute(dispute_id, admin)
        return DisputeWorkflow.resolve(
            self.db, dispute, data.resolution, admin.id, data.outcome, data.outcomeAmount
        )

    def add_message(self, dispute_id: int, message: str, user: User) -> Dispute:
        dispute = self.get_dispute(dispute_id, user)
        if dispute.status == "closed":
            raise HTTPException(status_code=400, detail="Cannot add messages to a closed dispute")
        DisputeWorkflow.add_message(self.db, dispute, user.id, message, is_admin=user.is_admin)
        return dispute

    def add_evidence(
        self, dispute_id: int, file_path: str, file_name: Optional[str], file_type: Optional[str], user: User
    ) -> DisputeEvidence:
        dispute = self.get_dispute(dispute_id, user)
        evidence = DisputeEvidence(
            file_path=file_path,
            file_name=file_name,
            file_type=file_type,
            uploaded_by_id=user.id,
        )
        dispute.evidence.append(evidence)
        commit_session(self.db, dispute, evidence)
        logger.info(f"📎 Evidence added to dispute {dispute.id} by user {user.id}")
        return evidence

    def get_stats(self) -> dict:
        return self.repo.get_stats(self.db)
