import json
import re
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import stripe

from fixerhub.config import UPLOAD_DIR
from fixerhub.domain.payments.service import period_start
from fixerhub.domain.payments.stripe_service import StripeService
from fixerhub.models_payment import Payment

RECEIPT = {"file": ("receipt.png", b"\x89PNG\r\n\x1a\nfake", "image/png")}


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {"refunds": []}

    def create_payment_intent(self, amount, currency, metadata=None):
        calls["intent"] = {"amount": amount, "currency": currency, "metadata": metadata}
        return {"id": "pi_test_123", "client_secret": "pi_test_123_secret_abc"}

    def retrieve_payment_intent(self, payment_intent_id):
        return {"id": payment_intent_id, "status": calls.get("status", "succeeded"), "latest_charge": "ch_test_456"}

    def create_refund(self, charge_id, amount, currency="LKR", reason=None):
        calls["refunds"].append({"charge": charge_id, "amount": amount, "currency": currency})
        return {"id": "re_test_789"}

    monkeypatch.setattr(StripeService, "is_available", lambda self: True)
    monkeypatch.setattr(StripeService, "create_payment_intent", create_payment_intent)
    monkeypatch.setattr(StripeService, "retrieve_payment_intent", retrieve_payment_intent)
    monkeypatch.setattr(StripeService, "create_refund", create_refund)
    return calls


def create_intent(client, headers, booking_id):
    response = client.post("/payments/create-intent", json={"bookingId": booking_id}, headers=headers)
    assert response.status_code == 200
    return response.json()


def upload_receipt(client, headers, booking_id, bank_details=None):
    data = {"bookingId": str(booking_id)}
    if bank_details is not None:
        data["bankDetails"] = json.dumps(bank_details)
    return client.post("/payments/upload-receipt", data=data, files=RECEIPT, headers=headers)


# ============================================================================
# STRIPE
# ============================================================================


def test_create_intent_without_stripe_configured(client, auth_headers, seeker, booking):
    response = client.post("/payments/create-intent", json={"bookingId": booking.id}, headers=auth_headers(seeker))
    assert response.status_code == 500


def test_stripe_payment_marks_booking_paid(client, auth_headers, db, fake_stripe, seeker, booking):
    headers = auth_headers(seeker)
    intent = create_intent(client, headers, booking.id)
    assert intent["clientSecret"] == "pi_test_123_secret_abc"
    assert fake_stripe["intent"]["amount"] == 5000.0

    response = client.post(
        f"/payments/{intent['paymentId']}/confirm", json={"paymentIntentId": "pi_test_123"}, headers=headers
    )

    assert response.status_code == 200
    payment = response.json()
    assert payment["status"] == "confirmed"
    assert payment["stripeChargeId"] == "ch_test_456"
    assert re.match(r"^INV-\d{8}-\d{3}$", payment["invoiceNumber"])

    db.refresh(booking)
    assert booking.status == "paid"
    assert booking.payment_status == "paid"
    assert booking.payment_method == "stripe"
    assert booking.payment_id == "ch_test_456"
    assert booking.invoice_number == payment["invoiceNumber"]
    assert [r.status for r in booking.payment_history] == ["completed"]


def test_confirm_is_idempotent(client, auth_headers, db, fake_stripe, seeker, booking):
    headers = auth_headers(seeker)
    intent = create_intent(client, headers, booking.id)
    url = f"/payments/{intent['paymentId']}/confirm"
    client.post(url, json={"paymentIntentId": "pi_test_123"}, headers=headers)

    response = client.post(url, json={"paymentIntentId": "pi_test_123"}, headers=headers)

    assert response.status_code == 200
    db.refresh(booking)
    assert len(booking.payment_history) == 1


def test_failed_intent_marks_payment_failed(client, auth_headers, db, fake_stripe, seeker, booking):
    fake_stripe["status"] = "requires_payment_method"
    headers = auth_headers(seeker)
    intent = create_intent(client, headers, booking.id)

    response = client.post(
        f"/payments/{intent['paymentId']}/confirm", json={"paymentIntentId": "pi_test_123"}, headers=headers
    )

    assert response.status_code == 400
    assert db.get(Payment, intent["paymentId"]).status == "failed"
    db.refresh(booking)
    assert booking.payment_status == "failed"
    assert booking.status == "pending"


def test_confirm_rejects_mismatched_intent(client, auth_headers, fake_stripe, seeker, booking):
    headers = auth_headers(seeker)
    intent = create_intent(client, headers, booking.id)

    response = client.post(
        f"/payments/{intent['paymentId']}/confirm", json={"paymentIntentId": "pi_other"}, headers=headers
    )
    assert response.status_code == 400


def test_stripe_error_becomes_bad_gateway(client, auth_headers, monkeypatch, fake_stripe, seeker, booking):
    def failing_intent(self, amount, currency, metadata=None):
        raise stripe.StripeError("card network unavailable")

    monkeypatch.setattr(StripeService, "create_payment_intent", failing_intent)

    response = client.post("/payments/create-intent", json={"bookingId": booking.id}, headers=auth_headers(seeker))
    assert response.status_code == 502


def test_only_seeker_can_pay(client, auth_headers, fake_stripe, provider, booking):
    response = client.post("/payments/create-intent", json={"bookingId": booking.id}, headers=auth_headers(provider))
    assert response.status_code == 403


# ============================================================================
# BANK TRANSFER
# ============================================================================


def test_receipt_upload_awaits_provider(client, auth_headers, db, seeker, provider, booking):
    response = upload_receipt(client, auth_headers(seeker), booking.id, {"bankName": "HNB"})

    assert response.status_code == 200
    payment = response.json()["payment"]
    assert payment["status"] == "pending_provider_confirmation"
    details = payment["bankTransferDetails"]
    assert details["bankName"] == "HNB"
    assert details["accountNumber"] == provider.account_number
    assert details["referenceNumber"].startswith("BT-")

    db.refresh(booking)
    assert booking.payment_status == "processing"
    assert booking.payment_method == "bank_transfer"
    assert booking.receipt_path.startswith("receipts/receipt-")

    pending = client.get("/payments/pending", headers=auth_headers(provider))
    assert [p["id"] for p in pending.json()] == [payment["id"]]


def test_provider_confirms_receipt(client, auth_headers, db, seeker, provider, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]

    response = client.post(
        f"/payments/{payment['id']}/confirm-receipt", json={"confirmed": True}, headers=auth_headers(provider)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    db.refresh(booking)
    assert booking.status == "paid"
    assert booking.payment_id == payment["bankTransferDetails"]["referenceNumber"]
    assert booking.payment_history[-1].method == "bank_transfer"


def test_provider_rejects_receipt_then_seeker_reuploads(client, auth_headers, db, seeker, provider, booking):
    first = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]
    client.post(
        f"/payments/{first['id']}/confirm-receipt",
        json={"confirmed": False, "notes": "Amount does not match"},
        headers=auth_headers(provider),
    )
    db.refresh(booking)
    assert booking.payment_status == "failed"

    second = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]

    assert second["id"] == first["id"]
    assert second["status"] == "pending_provider_confirmation"
    assert second["bankTransferDetails"]["referenceNumber"] == first["bankTransferDetails"]["referenceNumber"]


def test_other_user_cannot_confirm_receipt(client, auth_headers, seeker, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]
    response = client.post(
        f"/payments/{payment['id']}/confirm-receipt", json={"confirmed": True}, headers=auth_headers(seeker)
    )
    assert response.status_code == 403


def test_admin_verifies_bank_transfer(client, auth_headers, db, admin, seeker, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]

    response = client.post(
        f"/payments/{payment['id']}/verify-bank-transfer",
        json={"verified": True, "adminNotes": "Matched bank statement"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["adminNotes"] == "Matched bank statement"
    db.refresh(booking)
    assert booking.payment_status == "paid"


# ============================================================================
# REFUNDS, HISTORY, INVOICE, DISPUTES
# ============================================================================


def paid_bank_transfer(client, auth_headers, seeker, provider, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]
    client.post(f"/payments/{payment['id']}/confirm-receipt", json={"confirmed": True}, headers=auth_headers(provider))
    return payment


def test_manual_refund(client, auth_headers, db, admin, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)

    response = client.post(
        f"/payments/{payment['id']}/refund", json={"reason": "Job cancelled by provider"}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "refunded"
    assert body["refundDetails"]["amount"] == 5000.0
    assert body["refundDetails"]["refundId"] is None

    db.refresh(booking)
    assert booking.payment_status == "refunded"
    assert [r.method for r in booking.payment_history] == ["bank_transfer", "refund"]


def test_stripe_refund_goes_through_stripe(client, auth_headers, db, fake_stripe, admin, seeker, booking):
    headers = auth_headers(seeker)
    intent = create_intent(client, headers, booking.id)
    client.post(f"/payments/{intent['paymentId']}/confirm", json={"paymentIntentId": "pi_test_123"}, headers=headers)

    response = client.post(
        f"/payments/{intent['paymentId']}/refund",
        json={"reason": "requested_by_customer", "amount": 2000},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["refundDetails"]["refundId"] == "re_test_789"
    assert fake_stripe["refunds"] == [{"charge": "ch_test_456", "amount": 2000.0, "currency": "LKR"}]


def test_refund_cannot_exceed_payment(client, auth_headers, admin, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)
    response = client.post(
        f"/payments/{payment['id']}/refund", json={"reason": "Overcharged", "amount": 9000}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_refund_requires_confirmed_payment(client, auth_headers, admin, seeker, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]
    response = client.post(
        f"/payments/{payment['id']}/refund", json={"reason": "Not yet paid"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_seeker_cannot_refund(client, auth_headers, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)
    response = client.post(
        f"/payments/{payment['id']}/refund", json={"reason": "I want my money"}, headers=auth_headers(seeker)
    )
    assert response.status_code == 403


def test_receipt_rejected_once_booking_is_paid(client, auth_headers, db, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)

    response = upload_receipt(client, auth_headers(seeker), booking.id)

    assert response.status_code == 400
    assert db.get(Payment, payment["id"]).status == "confirmed"
    db.refresh(booking)
    assert booking.status == "paid"
    assert booking.payment_status == "paid"
    assert len(booking.payment_history) == 1


def test_refunded_transfer_cannot_be_verified_again(client, auth_headers, db, admin, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)
    client.post(f"/payments/{payment['id']}/refund", json={"reason": "Job cancelled"}, headers=auth_headers(admin))

    response = client.post(
        f"/payments/{payment['id']}/verify-bank-transfer", json={"verified": True}, headers=auth_headers(admin)
    )

    assert response.status_code == 400
    assert db.get(Payment, payment["id"]).status == "refunded"
    db.refresh(booking)
    assert booking.payment_status == "refunded"
    assert len(booking.payment_history) == 2


def test_rejected_receipt_upload_leaves_no_file(client, auth_headers, make_user, booking):
    receipts = Path(UPLOAD_DIR) / "receipts"
    before = set(receipts.iterdir()) if receipts.exists() else set()

    response = upload_receipt(client, auth_headers(make_user()), booking.id)

    assert response.status_code == 403
    after = set(receipts.iterdir()) if receipts.exists() else set()
    assert after == before


def test_history_is_private_and_paginated(client, auth_headers, seeker, provider, make_user, booking):
    paid_bank_transfer(client, auth_headers, seeker, provider, booking)

    response = client.get(f"/payments/history/{seeker.id}", headers=auth_headers(seeker))
    assert response.status_code == 200
    body = response.json()
    assert len(body["payments"]) == 1
    assert body["pagination"]["total"] == 1

    stranger = make_user()
    assert client.get(f"/payments/history/{seeker.id}", headers=auth_headers(stranger)).status_code == 403


def test_stats_period_validation(client, auth_headers, seeker):
    assert client.get(f"/payments/stats/{seeker.id}", params={"period": "decade"}, headers=auth_headers(seeker)).status_code == 400
    response = client.get(f"/payments/stats/{seeker.id}", params={"period": "year"}, headers=auth_headers(seeker))
    assert response.status_code == 200
    assert response.json()["period"] == "year"


def test_period_start_week_begins_seven_days_back():
    now = datetime(2024, 5, 20, 12, 0)
    assert period_start("week", now) == now - timedelta(days=7)


def test_invoice_pdf_download(client, auth_headers, db, seeker, provider, booking):
    payment = paid_bank_transfer(client, auth_headers, seeker, provider, booking)

    response = client.get(f"/payments/{payment['id']}/invoice", headers=auth_headers(seeker))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    db.refresh(booking)
    assert f"invoice-{booking.invoice_number}.pdf" in response.headers["content-disposition"]


def test_provider_disputes_payment(client, auth_headers, db, seeker, provider, booking):
    payment = upload_receipt(client, auth_headers(seeker), booking.id).json()["payment"]
    payload = {"title": "Receipt looks edited", "description": "The transfer never reached my account."}

    response = client.post(f"/payments/{payment['id']}/dispute", json=payload, headers=auth_headers(provider))

    assert response.status_code == 201
    dispute = response.json()["dispute"]
    assert dispute["category"] == "payment_issue"
    assert dispute["status"] == "open"
    db.refresh(booking)
    assert booking.payment_status == "disputed"

    again = client.post(f"/payments/{payment['id']}/dispute", json=payload, headers=auth_headers(provider))
    assert again.status_code == 400
