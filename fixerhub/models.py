from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .errors import ValidationError

USER_ROLES = ("service_seeker", "service_provider", "admin")
CERTIFICATION_LEVELS = ("bronze", "silver", "gold", "platinum", "diamond")
PROVIDER_REQUIRED_FIELDS = ("service_category", "bank_name", "account_number", "branch_name")

BOOKING_STATUSES = (
    "pending",
    "quote_requested",
    "quote_sent",
    "quote_accepted",
    "accepted",
    "declined",
    "completed",
    "paid",
    "cancelled",
)
BOOKING_PAYMENT_STATUSES = (
    "unpaid",
    "processing",
    "paid",
    "failed",
    "refunded",
    "pending_verification",
    "disputed",
)
BOOKING_PAYMENT_METHODS = ("stripe", "bank_transfer", "cash")

REVIEW_RATING_FIELDS = (
    "rating_overall",
    "rating_quality",
    "rating_timeliness",
    "rating_communication",
    "rating_value_for_money",
    "rating_cleanliness",
)


def check_choice(field: str, value, choices):
    """Reject values outside an enumerated set (None passes, nullability is the column's job)"""
    if value is not None and value not in choices:
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {', '.join(choices)}")
    return value


def check_range(field: str, value, minimum=None, maximum=None):
    if value is None:
        return value
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return value


def check_length(field: str, value, minimum=None, maximum=None):
    if value is None:
        return value
    if minimum is not None and len(value) < minimum:
        raise ValidationError(f"{field} must be at least {minimum} characters")
    if maximum is not None and len(value) > maximum:
        raise ValidationError(f"{field} must be at most {maximum} characters")
    return value


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False)  # service_seeker, service_provider, admin
    location = Column(String(255), nullable=False)
    # Provider profile
    service_category = Column(String(100), nullable=True, index=True)
    hourly_rate = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)  # Relative path under the uploads dir
    bank_name = Column(String(255), nullable=True)
    account_number = Column(String(50), nullable=True)
    branch_name = Column(String(255), nullable=True)
    rating = Column(Float, default=0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
    # Email verification
    email_verified = Column(Boolean, default=False, nullable=False)
    # Certification scoring - written only through CertificationScoring
    certification_points = Column(Integer, default=0, nullable=False)
    total_certifications = Column(Integer, default=0, nullable=False)
    verified_certifications = Column(Integer, default=0, nullable=False)
    certification_level = Column(String(20), default="bronze", nullable=False)
    profile_picture_points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    certifications = relationship(
        "Certification",
        back_populates="service_provider",
        foreign_keys="Certification.service_provider_id",
        cascade="all, delete-orphan",
    )

    @validates("role")
    def validate_role(self, key, value):
        return check_choice(key, value, USER_ROLES)

    @validates("certification_level")
    def validate_certification_level(self, key, value):
        return check_choice(key, value, CERTIFICATION_LEVELS)

    @validates("hourly_rate")
    def validate_hourly_rate(self, key, value):
        return check_range(key, value, minimum=0)

    @validates("email")
    def validate_email(self, key, value):
        return value.strip().lower() if value else value

    @property
    def is_provider(self) -> bool:
        return self.role == "service_provider"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def calculated_certification_level(self) -> str:
        from .domain.certifications.scoring import calculated_level

        return calculated_level(self.certification_points or 0)


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _require_provider_fields(_mapper, _connection, target: User):
    if target.role != "service_provider":
        return
    missing = [field for field in PROVIDER_REQUIRED_FIELDS if not getattr(target, field)]
    if missing:
        raise ValidationError(f"Missing required fields for service provider: {', '.join(missing)}")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_provider_status_created", "service_provider_id", "status", "created_at"),
        Index("ix_bookings_seeker_status_created", "service_seeker_id", "status", "created_at"),
        Index("ix_bookings_payment_status_created", "payment_status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_seeker_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    time = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    image = Column(String(500), nullable=True)
    price = Column(Float, nullable=False)
    original_price = Column(Float, nullable=True)  # Price before quotation
    terms = Column(Text, nullable=True)
    status = Column(String(50), default="pending", nullable=False)
    payment_status = Column(String(50), default="unpaid", nullable=False)
    payment_method = Column(String(50), default="stripe", nullable=False)
    payment_id = Column(String(255), nullable=True)  # Gateway transaction id or bank reference
    payment_date = Column(DateTime, nullable=True)
    payment_intent_id = Column(String(255), nullable=True)
    refund_id = Column(String(255), nullable=True)
    refund_date = Column(DateTime, nullable=True)
    refund_reason = Column(Text, nullable=True)
    receipt_path = Column(String(500), nullable=True)
    receipt_upload_date = Column(DateTime, nullable=True)
    bank_transfer_details = Column(JSON, nullable=True)
    # Invoice
    invoice_number = Column(String(50), nullable=True, index=True)
    invoice_due_date = Column(DateTime, nullable=True)
    invoice_paid_date = Column(DateTime, nullable=True)
    invoice_subtotal = Column(Float, nullable=True)
    invoice_tax_amount = Column(Float, nullable=True)
    invoice_total_amount = Column(Float, nullable=True)
    invoice_currency = Column(String(10), default="LKR")
    # Quick rating left by the seeker
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service_seeker = relationship("User", foreign_keys=[service_seeker_id])
    service_provider = relationship("User", foreign_keys=[service_provider_id])
    payment_history = relationship(
        "BookingPaymentRecord",
        back_populates="booking",
        order_by="BookingPaymentRecord.id",
        cascade="all, delete-orphan",
    )
    disputes = relationship("Dispute", back_populates="booking", order_by="Dispute.id")
    review_record = relationship("Review", back_populates="booking", uselist=False)

    @validates("status")
    def validate_status(self, key, value):
        return check_choice(key, value, BOOKING_STATUSES)

    @validates("payment_status")
    def validate_payment_status(self, key, value):
        return check_choice(key, value, BOOKING_PAYMENT_STATUSES)

    @validates("payment_method")
    def validate_payment_method(self, key, value):
        return check_choice(key, value, BOOKING_PAYMENT_METHODS)

    @validates("rating")
    def validate_rating(self, key, value):
        return check_range(key, value, minimum=1, maximum=5)

    @validates("price", "original_price")
    def validate_price(self, key, value):
        return check_range(key, value, minimum=0)

    def is_party(self, user_id: int) -> bool:
        return user_id in (self.service_seeker_id, self.service_provider_id)


class BookingPaymentRecord(Base):
    """One entry of a booking's append-only payment history"""

    __tablename__ = "booking_payment_records"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    amount = Column(Float, nullable=True)
    method = Column(String(50), nullable=True)
    status = Column(String(50), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="payment_history")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        Index("ix_reviews_provider_created", "service_provider_id", "created_at"),
        Index("ix_reviews_seeker_created", "service_seeker_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # One review per booking
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    service_provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_seeker_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating_overall = Column(Integer, nullable=False)
    rating_quality = Column(Integer, nullable=False)
    rating_timeliness = Column(Integer, nullable=False)
    rating_communication = Column(Integer, nullable=False)
    rating_value_for_money = Column(Integer, nullable=False)
    rating_cleanliness = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    photos = Column(JSON, default=list)
    would_recommend = Column(Boolean, nullable=False)
    is_verified = Column(Boolean, default=True)  # Only the booking's seeker can review
    helpful = Column(JSON, default=list)  # User ids who found the review helpful
    provider_response = Column(Text, nullable=True)
    provider_response_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="review_record")
    service_provider = relationship("User", foreign_keys=[service_provider_id])
    service_seeker = relationship("User", foreign_keys=[service_seeker_id])

    @validates(*REVIEW_RATING_FIELDS)
    def validate_sub_rating(self, key, value):
        return check_range(key, value, minimum=1, maximum=5)

    @validates("comment")
    def validate_comment(self, key, value):
        return check_length(key, value, minimum=10, maximum=1000)
