"""
Dispute workflow - append-only notes and messages, and resolution.

Resolution fields are always written together by resolve().
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidTransition, ValidationError
from ...models import check_range
from ...models_dispute import Dispute, DisputeAdminNote, DisputeMessage
from ...shared.persistence import commit as commit_session

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("resolved", "closed")


class DisputeWorkflow:
    """Rule methods for a dispute. Pass commit=False to join a larger transaction."""

    @staticmethod
    def add_admin_note(
        db: Session, dispute: Dispute, note: str, admin_id: int, commit: bool = True
    ) -> DisputeAdminNote:
        if not note or not note.strip():
            raise ValidationError("Admin note cannot be empty")

        entry = DisputeAdminNote(note=note.strip(), admin_id=admin_id, timestamp=datetime.utcnow())
        dispute.admin_notes.append(entry)
        if commit:
            commit_session(db, dispute)
        return entry

    @staticmethod
    def add_message(
        db: Session,
        dispute: Dispute,
        sender_id: int,
        message: str,
        is_admin: bool = False,
        commit: bool = True,
    ) -> DisputeMessage:
        if not message or not message.strip():
            raise ValidationError("Message cannot be empty")

        entry = DisputeMessage(
            sender_id=sender_id,
            message=message.strip(),
            timestamp=datetime.utcnow(),
            is_admin=is_admin,
        )
        dispute.messages.append(entry)
        if commit:
            commit_session(db, dispute)
        return entry

    @staticmethod
    def resolve(
        db: Session,
        dispute: Dispute,
        resolution: str,
        admin_id: int,
        outcome: Optional[str] = None,
        outcome_amount: Optional[float] = None,
        commit: bool = True,
    ) -> Dispute:
        """
        Mark the dispute resolved.

        outcome and outcome_amount are written only when an outcome is given.
        """
        if dispute.status in TERMINAL_STATUSES:
            raise InvalidTransition("dispute", dispute.status, "resolved")
        if not resolution or not resolution.strip():
            raise ValidationError("Resolution is required")

        check_range("outcome_amount", outcome_amount, minimum=0)

        if outcome is not None:
            dispute.outcome = outcome
            dispute.outcome_amount = outcome_amount
        dispute.resolution = resolution
        dispute.resolved_at = datetime.utcnow()
        dispute.resolved_by_id = admin_id
        dispute.status = "resolved"
        if commit:
            commit_session(db, dispute)
        logger.info(f"⚖️ Dispute {dispute.id} resolved by admin {admin_id} (outcome: {outcome or 'none'})")
        return dispute

    @staticmethod
    def update_status(
        db: Session,
        dispute: Dispute,
        new_status: str,
        admin_id: int,
        note: Optional[str] = None,
        commit: bool = True,
    ) -> Dispute:
        """
        Admin status change with an optional note.

        Resolution goes through resolve(). A closed dispute stays closed.
        The acting admin is assigned if nobody is yet.
        """
        if new_status == "resolved" or dispute.status == "closed":
            raise InvalidTransition("dispute", dispute.status, new_status)

        previous = dispute.status
        dispute.status = new_status
        if note:
            DisputeWorkflow.add_admin_note(db, dispute, note, admin_id, commit=False)
        if dispute.assigned_admin_id is None:
            dispute.assigned_admin_id = admin_id
        if commit:
            commit_session(db, dispute)
        logger.info(f"📋 Dispute {dispute.id} status {previous} -> {new_status} by admin {admin_id}")
        return dispute
