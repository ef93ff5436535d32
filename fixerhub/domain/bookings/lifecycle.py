"""
Booking lifecycle - invoice numbers, payment history and the paid transition.

status and payment_status move independently. mark_as_paid is the one rule
that couples them and it does not look at the current status.
"""

import logging
import random
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidTransition
from ...models import Booking, BookingPaymentRecord
from ...shared.persistence import commit as commit_session

logger = logging.getLogger(__name__)

PAYMENT_RECORD_FIELDS = ("date", "amount", "method", "status", "transaction_id", "notes")

# Manual status changes allowed through the bookings API
ALLOWED_TRANSITIONS = {
    "pending": {"quote_requested", "quote_sent", "accepted", "declined", "cancelled"},
    "quote_requested": {"quote_sent", "declined", "cancelled"},
    "quote_sent": {"quote_accepted", "declined", "cancelled"},
    "quote_accepted": {"accepted", "completed", "cancelled"},
    "accepted": {"completed", "cancelled"},
    "completed": {"paid"},
    "paid": set(),
    "declined": set(),
    "cancelled": set(),
}


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """
    INV-YYYYMMDD-RRR with a random three digit suffix.

    Two calls on the same day can collide; callers that need uniqueness
    must check for it.
    """
    now = now or datetime.utcnow()
    return f"INV-{now:%Y%m%d}-{random.randint(0, 999):03d}"


class BookingLifecycle:
    """Rule methods for a booking's status and payment facts"""

    @staticmethod
    def can_transition(current: str, requested: str) -> bool:
        return requested in ALLOWED_TRANSITIONS.get(current, set())

    @staticmethod
    def transition(db: Session, booking: Booking, new_status: str, commit: bool = True) -> Booking:
        """Move a booking to new_status if the transition table allows it"""
        if not BookingLifecycle.can_transition(booking.status, new_status):
            raise InvalidTransition("booking", booking.status, new_status)

        previous = booking.status
        booking.status = new_status
        if commit:
            commit_session(db, booking)
        logger.info(f"📋 Booking {booking.id} status {previous} -> {new_status}")
        return booking

    @staticmethod
    def add_payment_record(
        db: Session, booking: Booking, payment_data: dict, commit: bool = True
    ) -> BookingPaymentRecord:
        """Append an entry to the booking's payment history"""
        fields = {key: payment_data[key] for key in PAYMENT_RECORD_FIELDS if key in payment_data}
        record = BookingPaymentRecord(**fields)
        booking.payment_history.append(record)
        if commit:
            commit_session(db, booking)
        return record

    @staticmethod
    def mark_as_paid(
        db: Session,
        booking: Booking,
        payment_method: str,
        transaction_id: Optional[str],
        commit: bool = True,
    ) -> Booking:
        """Set payment status, date, method, id and status=paid in one write"""
        booking.payment_method = payment_method
        booking.payment_status = "paid"
        booking.payment_date = datetime.utcnow()
        booking.payment_id = transaction_id
        booking.status = "paid"
        if commit:
            commit_session(db, booking)
        logger.info(f"💰 Booking {booking.id} marked as paid via {payment_method} ({transaction_id})")
        return booking

    @staticmethod
    def assign_invoice(db: Session, booking: Booking, tax_amount: float = 0.0, commit: bool = True) -> Booking:
        """Fill the booking invoice sub-record the first time it is needed"""
        if booking.invoice_number:
            return booking

        booking.invoice_number = generate_invoice_number()
        booking.invoice_subtotal = booking.price
        booking.invoice_tax_amount = tax_amount
        booking.invoice_total_amount = booking.price + tax_amount
        if booking.payment_status == "paid":
            booking.invoice_paid_date = booking.payment_date
        if commit:
            commit_session(db, booking)
        return booking
