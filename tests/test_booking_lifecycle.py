import re
from datetime import datetime

import pytest

from fixerhub.domain.bookings.lifecycle import BookingLifecycle, generate_invoice_number
from fixerhub.errors import InvalidTransition, ValidationError

INVOICE_PATTERN = re.compile(r"^INV-\d{8}-\d{3}$")


def test_invoice_number_format():
    number = generate_invoice_number(datetime(2024, 3, 7))
    assert INVOICE_PATTERN.match(number)
    assert number.startswith("INV-20240307-")


def test_invoice_number_uses_today_by_default():
    number = generate_invoice_number()
    assert INVOICE_PATTERN.match(number)
    assert number[4:12] == datetime.utcnow().strftime("%Y%m%d")


def test_mark_as_paid_sets_all_payment_facts(db, booking):
    before = datetime.utcnow()
    BookingLifecycle.mark_as_paid(db, booking, "bank_transfer", "BT-1700000000000")

    assert booking.status == "paid"
    assert booking.payment_status == "paid"
    assert booking.payment_method == "bank_transfer"
    assert booking.payment_id == "BT-1700000000000"
    assert booking.payment_date >= before


def test_mark_as_paid_ignores_current_status(db, booking):
    assert booking.status == "pending"
    BookingLifecycle.mark_as_paid(db, booking, "stripe", "ch_123")
    assert booking.status == "paid"


def test_accepted_quote_paid_by_bank_transfer(db, booking):
    assert booking.status == "pending"
    assert booking.payment_status == "unpaid"

    BookingLifecycle.transition(db, booking, "quote_sent")
    BookingLifecycle.transition(db, booking, "quote_accepted")
    BookingLifecycle.mark_as_paid(db, booking, "bank_transfer", "REF-001")

    db.refresh(booking)
    assert booking.status == "paid"
    assert booking.payment_status == "paid"
    assert booking.payment_method == "bank_transfer"
    assert booking.payment_id == "REF-001"


def test_mark_as_paid_with_invalid_method_leaves_booking_untouched(db, booking):
    with pytest.raises(ValidationError):
        BookingLifecycle.mark_as_paid(db, booking, "cheque", "X-1")

    db.refresh(booking)
    assert booking.status == "pending"
    assert booking.payment_status == "unpaid"
    assert booking.payment_id is None


def test_payment_history_keeps_insertion_order(db, booking):
    BookingLifecycle.add_payment_record(
        db, booking, {"amount": 5000.0, "method": "bank_transfer", "status": "failed", "notes": "Receipt unreadable"}
    )
    BookingLifecycle.add_payment_record(
        db, booking, {"amount": 5000.0, "method": "bank_transfer", "status": "completed", "transaction_id": "BT-2"}
    )

    db.expire_all()
    statuses = [record.status for record in booking.payment_history]
    assert statuses == ["failed", "completed"]
    assert booking.payment_history[1].transaction_id == "BT-2"
    assert booking.payment_history[0].date is not None


def test_payment_record_ignores_unknown_keys(db, booking):
    record = BookingLifecycle.add_payment_record(db, booking, {"amount": 100.0, "gateway": "x"})
    assert record.amount == 100.0
    assert not hasattr(record, "gateway")


def test_transition_follows_table(db, booking):
    BookingLifecycle.transition(db, booking, "accepted")
    BookingLifecycle.transition(db, booking, "completed")
    assert booking.status == "completed"


@pytest.mark.parametrize(
    "start, target",
    [
        ("pending", "completed"),
        ("declined", "accepted"),
        ("paid", "pending"),
        ("cancelled", "accepted"),
    ],
)
def test_transition_rejects_moves_outside_table(db, make_booking, seeker, provider, start, target):
    booking = make_booking(seeker, provider, status=start)

    with pytest.raises(InvalidTransition):
        BookingLifecycle.transition(db, booking, target)
    assert booking.status == start


def test_assign_invoice_is_filled_once(db, booking):
    BookingLifecycle.assign_invoice(db, booking, tax_amount=250.0)
    number = booking.invoice_number

    assert INVOICE_PATTERN.match(number)
    assert booking.invoice_subtotal == 5000.0
    assert booking.invoice_total_amount == 5250.0
    assert booking.invoice_paid_date is None

    BookingLifecycle.assign_invoice(db, booking)
    assert booking.invoice_number == number
