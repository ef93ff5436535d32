"""
Certification model for provider credentials reviewed by admins
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .models import check_choice, check_length, check_range

CERTIFICATION_CATEGORIES = ("technical", "safety", "professional", "trade", "other")
CERTIFICATION_STATUSES = ("pending", "approved", "rejected")
DEFAULT_CERTIFICATION_POINTS = 10


class Certification(Base):
    __tablename__ = "certifications"
    __table_args__ = (
        Index("ix_certifications_provider_status", "service_provider_id", "status"),
        Index("ix_certifications_status_created", "status", "created_at"),
        Index("ix_certifications_category_status", "category", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)
    issuing_organization = Column(String(255), nullable=False)
    certificate_number = Column(String(100), nullable=False)
    issue_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=True)
    category = Column(String(50), nullable=False)
    points = Column(Integer, default=DEFAULT_CERTIFICATION_POINTS, nullable=False)
    description = Column(Text, nullable=True)
    document_file = Column(String(500), nullable=False)  # Relative path under the uploads dir
    status = Column(String(20), default="pending", nullable=False)
    admin_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service_provider = relationship(
        "User", back_populates="certifications", foreign_keys=[service_provider_id]
    )
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])

    @validates("category")
    def validate_category(self, key, value):
        return check_choice(key, value, CERTIFICATION_CATEGORIES)

    @validates("status")
    def validate_status(self, key, value):
        return check_choice(key, value, CERTIFICATION_STATUSES)

    @validates("points")
    def validate_points(self, key, value):
        return check_range(key, value, minimum=1, maximum=100)

    @validates("title", "issuing_organization", "certificate_number")
    def validate_trimmed(self, key, value):
        return value.strip() if isinstance(value, str) else value

    @validates("description")
    def validate_description(self, key, value):
        return check_length(key, value, maximum=500)

    @validates("admin_notes")
    def validate_admin_notes(self, key, value):
        return check_length(key, value, maximum=1000)

    @validates("rejection_reason")
    def validate_rejection_reason(self, key, value):
        return check_length(key, value, maximum=500)

    @property
    def is_expired(self) -> bool:
        if not self.expiry_date:
            return False
        return datetime.utcnow() > self.expiry_date

    @property
    def is_active(self) -> bool:
        return self.status == "approved" and not self.is_expired
