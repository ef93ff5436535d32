"""
Payment model - canonical record of a payment event for a booking.

Bookings also carry inline payment facts (payment_status, payment_history).
Both are written together by the payment flows.
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from .database import Base
from .models import check_choice, check_range

PAYMENT_CURRENCIES = ("LKR", "USD")
PAYMENT_METHODS = ("stripe", "bank_transfer", "cash", "refund")
PAYMENT_STATUSES = (
    "created",
    "pending_customer_action",
    "pending_provider_confirmation",
    "confirmed",
    "failed",
    "cancelled",
    "refunded",
)


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_payee_status", "payee_id", "status"),
        Index("ix_payments_payer_created", "payer_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    payee_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    amount = Column(Float, nullable=False)
    currency = Column(String(10), default="LKR", nullable=False)
    payment_method = Column(String(50), nullable=False)
    status = Column(String(50), default="created", nullable=False)

    # Stripe references, recorded verbatim
    stripe_payment_intent_id = Column(String(255), nullable=True)
    stripe_charge_id = Column(String(255), nullable=True)

    # bankName, accountNumber, branchName, transferDate, referenceNumber, receiptPath
    bank_transfer_details = Column(JSON, nullable=True)

    # Invoice
    invoice_number = Column(String(50), nullable=True, index=True)
    invoice_due_date = Column(DateTime, nullable=True)
    invoice_paid_date = Column(DateTime, nullable=True)
    invoice_subtotal = Column(Float, nullable=True)
    invoice_tax_amount = Column(Float, nullable=True)
    invoice_total_amount = Column(Float, nullable=True)

    # description, serviceType, bookingDate
    payment_metadata = Column("metadata", JSON, nullable=True)
    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Refund details
    refund_id = Column(String(255), nullable=True)
    refund_amount = Column(Float, nullable=True)
    refund_reason = Column(Text, nullable=True)
    refund_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking")
    payer = relationship("User", foreign_keys=[payer_id])
    payee = relationship("User", foreign_keys=[payee_id])

    @validates("currency")
    def validate_currency(self, key, value):
        return check_choice(key, value.upper() if value else value, PAYMENT_CURRENCIES)

    @validates("payment_method")
    def validate_payment_method(self, key, value):
        return check_choice(key, value, PAYMENT_METHODS)

    @validates("status")
    def validate_status(self, key, value):
        return check_choice(key, value, PAYMENT_STATUSES)

    @validates("amount", "refund_amount")
    def validate_amount(self, key, value):
        return check_range(key, value, minimum=0)

    @property
    def bank_reference(self):
        return (self.bank_transfer_details or {}).get("referenceNumber")
