"""Dispute repository - Database operations for disputes"""

from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, joinedload

from ...models_dispute import ACTIVE_DISPUTE_STATUSES, PRIORITY_RANK, Dispute
from ...shared.persistence import commit as commit_session

_priority_order = case(PRIORITY_RANK, value=Dispute.priority, else_=len(PRIORITY_RANK))


class DisputeRepository:
    """Repository for dispute database operations"""

    @staticmethod
    def get_dispute(db: Session, dispute_id: int) -> Optional[Dispute]:
        return (
            db.query(Dispute)
            .options(
                joinedload(Dispute.service_provider),
                joinedload(Dispute.service_seeker),
                joinedload(Dispute.reported_by),
            )
            .filter(Dispute.id == dispute_id)
            .first()
        )

    @staticmethod
    def get_active_for_booking(db: Session, booking_id: int) -> Optional[Dispute]:
        """The open or under_review dispute for a booking, if any"""
        return (
            db.query(Dispute)
            .filter(Dispute.booking_id == booking_id, Dispute.status.in_(ACTIVE_DISPUTE_STATUSES))
            .first()
        )

    @staticmethod
    def create_dispute(db: Session, commit: bool = True, **dispute_data) -> Dispute:
        dispute = Dispute(**dispute_data)
        db.add(dispute)
        if commit:
            commit_session(db, dispute)
        else:
            db.flush()
        return dispute

    @staticmethod
    def get_user_disputes(db: Session, user_id: int) -> list[Dispute]:
        """Disputes the user is a party to or reported, newest first"""
        return (
            db.query(Dispute)
            .filter(
                or_(
                    Dispute.service_provider_id == user_id,
                    Dispute.service_seeker_id == user_id,
                    Dispute.reported_by_id == user_id,
                )
            )
            .order_by(Dispute.created_at.desc(), Dispute.id.desc())
            .all()
        )

    @staticmethod
    def list_disputes(
        db: Session,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Dispute], int]:
        """Admin queue ordered by priority (urgent first), then newest"""
        query = db.query(Dispute)
        if status:
            query = query.filter(Dispute.status == status)
        if priority:
            query = query.filter(Dispute.priority == priority)
        if category:
            query = query.filter(Dispute.category == category)

        total = query.count()
        disputes = (
            query.options(joinedload(Dispute.service_provider), joinedload(Dispute.service_seeker))
            .order_by(_priority_order, Dispute.created_at.desc(), Dispute.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return disputes, total

    @staticmethod
    def get_stats(db: Session) -> dict:
        def _counts(column):
            return dict(db.query(column, func.count(Dispute.id)).group_by(column).all())

        by_status = _counts(Dispute.status)
        return {
            "total": db.query(func.count(Dispute.id)).scalar(),
            "open": by_status.get("open", 0),
            "underReview": by_status.get("under_review", 0),
            "resolved": by_status.get("resolved", 0),
            "closed": by_status.get("closed", 0),
            "byStatus": by_status,
            "byPriority": _counts(Dispute.priority),
            "byCategory": _counts(Dispute.category),
        }
