"""
Dispute models - issues raised against a booking and worked by an admin.

Admin notes, messages and evidence are append-only child rows ordered by id.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .models import check_choice, check_length, check_range

DISPUTE_CATEGORIES = (
    "payment_issue",
    "service_quality",
    "no_show",
    "cancellation",
    "communication",
    "safety_concern",
    "fraud",
    "other",
)
DISPUTE_PRIORITIES = ("low", "medium", "high", "urgent")
DISPUTE_STATUSES = ("open", "under_review", "resolved", "closed")
DISPUTE_OUTCOMES = ("refund", "partial_refund", "service_redo", "warning", "suspension", "no_action")
ACTIVE_DISPUTE_STATUSES = ("open", "under_review")

# Sort key for the admin queue, most urgent first
PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


class Dispute(Base):
    __tablename__ = "disputes"
    __table_args__ = (
        Index("ix_disputes_status_priority_created", "status", "priority", "created_at"),
        Index("ix_disputes_reported_by_created", "reported_by_id", "created_at"),
        Index("ix_disputes_parties", "service_provider_id", "service_seeker_id"),
        Index("ix_disputes_category_status", "category", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    service_provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_seeker_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reported_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    category = Column(String(50), nullable=False)
    priority = Column(String(20), default="medium", nullable=False)
    status = Column(String(20), default="open", nullable=False)
    assigned_admin_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # Resolution - set together by DisputeWorkflow.resolve
    resolution = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    escalated_at = Column(DateTime, nullable=True)
    escalation_reason = Column(Text, nullable=True)
    outcome = Column(String(50), nullable=True)
    outcome_amount = Column(Float, nullable=True)
    outcome_currency = Column(String(10), default="LKR")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="disputes")
    service_provider = relationship("User", foreign_keys=[service_provider_id])
    service_seeker = relationship("User", foreign_keys=[service_seeker_id])
    reported_by = relationship("User", foreign_keys=[reported_by_id])
    assigned_admin = relationship("User", foreign_keys=[assigned_admin_id])
    resolved_by = relationship("User", foreign_keys=[resolved_by_id])
    admin_notes = relationship(
        "DisputeAdminNote",
        back_populates="dispute",
        order_by="DisputeAdminNote.id",
        cascade="all, delete-orphan",
    )
    messages = relationship(
        "DisputeMessage",
        back_populates="dispute",
        order_by="DisputeMessage.id",
        cascade="all, delete-orphan",
    )
    evidence = relationship(
        "DisputeEvidence",
        back_populates="dispute",
        order_by="DisputeEvidence.id",
        cascade="all, delete-orphan",
    )

    @validates("title")
    def validate_title(self, key, value):
        return check_length(key, value.strip() if value else value, maximum=200)

    @validates("description")
    def validate_description(self, key, value):
        return check_length(key, value.strip() if value else value, maximum=2000)

    @validates("resolution")
    def validate_resolution(self, key, value):
        return check_length(key, value.strip() if value else value, maximum=1000)

    @validates("category")
    def validate_category(self, key, value):
        return check_choice(key, value, DISPUTE_CATEGORIES)

    @validates("priority")
    def validate_priority(self, key, value):
        return check_choice(key, value, DISPUTE_PRIORITIES)

    @validates("status")
    def validate_status(self, key, value):
        return check_choice(key, value, DISPUTE_STATUSES)

    @validates("outcome")
    def validate_outcome(self, key, value):
        return check_choice(key, value, DISPUTE_OUTCOMES)

    @validates("outcome_amount")
    def validate_outcome_amount(self, key, value):
        return check_range(key, value, minimum=0)

    def is_party(self, user_id: int) -> bool:
        return user_id in (self.service_provider_id, self.service_seeker_id)


class DisputeAdminNote(Base):
    __tablename__ = "dispute_admin_notes"

    id = Column(Integer, primary_key=True, index=True)
    dispute_id = Column(Integer, ForeignKey("disputes.id"), nullable=False, index=True)
    note = Column(Text, nullable=False)
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    dispute = relationship("Dispute", back_populates="admin_notes")


class DisputeMessage(Base):
    __tablename__ = "dispute_messages"

    id = Column(Integer, primary_key=True, index=True)
    dispute_id = Column(Integer, ForeignKey("disputes.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)

    dispute = relationship("Dispute", back_populates="messages")
    sender = relationship("User")


class DisputeEvidence(Base):
    __tablename__ = "dispute_evidence"

    id = Column(Integer, primary_key=True, index=True)
    dispute_id = Column(Integer, ForeignKey("disputes.id"), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    dispute = relationship("Dispute", back_populates="evidence")
