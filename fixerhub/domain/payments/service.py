"""
Payment service - Business logic for card and bank transfer payments.

Every flow that settles a booking writes the Payment row and the booking's
inline payment facts in one transaction.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, User
from ...models_payment import Payment
from ...shared.formatting import pagination_data
from ...shared.persistence import commit as commit_session
from ..bookings.lifecycle import BookingLifecycle
from ..bookings.repository import BookingRepository
from ..disputes.repository import DisputeRepository
from .invoice_pdf import InvoicePDFGenerator
from .repository import PaymentRepository
from .schemas import PaymentDisputeCreate, RefundRequest
from .stripe_service import StripeService

logger = logging.getLogger(__name__)

PENDING_CONFIRMATION = "pending_provider_confirmation"
STATS_PERIODS = ("week", "month", "year")


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of a stats window: last 7 days, this calendar month or this calendar year"""
    now = now or datetime.utcnow()
    if period == "week":
        return now - timedelta(days=7)
    if period == "year":
        return datetime(now.year, 1, 1)
    return datetime(now.year, now.month, 1)


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, stripe_service: Optional[StripeService] = None):
        self.db = db
        self.repo = PaymentRepository()
        self.booking_repo = BookingRepository()
        self.stripe = stripe_service or StripeService()

    # ============================================
    # Lookups
    # ============================================

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_payment(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    def get_payment_for_party(self, payment_id: int, user: User) -> Payment:
        payment = self.get_payment(payment_id)
        if not user.is_admin and user.id not in (payment.payer_id, payment.payee_id):
            raise HTTPException(status_code=403, detail="Not authorized to access this payment")
        return payment

    @staticmethod
    def _require_self_or_admin(user_id: int, user: User):
        if not user.is_admin and user.id != user_id:
            raise HTTPException(status_code=403, detail="Not authorized to view these payments")

    # ============================================
    # Settlement
    # ============================================

    def _settle(self, payment: Payment, booking: Booking, method: str, transaction_id: str, notes: str):
        """Confirm a payment and mark its booking paid in one commit"""
        now = datetime.utcnow()
        payment.status = "confirmed"
        payment.invoice_paid_date = now

        BookingLifecycle.mark_as_paid(self.db, booking, method, transaction_id, commit=False)
        BookingLifecycle.add_payment_record(
            self.db,
            booking,
            {
                "date": now,
                "amount": payment.amount,
                "method": method,
                "status": "completed",
                "transaction_id": transaction_id,
                "notes": notes,
            },
            commit=False,
        )
        BookingLifecycle.assign_invoice(self.db, booking, commit=False)
        payment.invoice_number = payment.invoice_number or booking.invoice_number
        payment.invoice_subtotal = booking.invoice_subtotal
        payment.invoice_tax_amount = booking.invoice_tax_amount
        payment.invoice_total_amount = booking.invoice_total_amount
        commit_session(self.db, payment, booking)
        logger.info(f"✅ Payment {payment.id} confirmed for booking {booking.id} via {method}")

    # ============================================
    # Stripe
    # ============================================

    def create_payment_intent(self, booking_id: int, currency: str, user: User) -> tuple[Payment, str]:
        """Create a Stripe intent for the booking price. Returns (payment, client_secret)."""
        booking = self._get_booking(booking_id)
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to pay for this booking")
        if booking.payment_status == "paid":
            raise HTTPException(status_code=400, detail="Booking is already paid")
        if not self.stripe.is_available():
            raise HTTPException(status_code=500, detail="Stripe is not configured. Please check environment variables.")

        try:
            intent = self.stripe.create_payment_intent(
                booking.price,
                currency,
                metadata={
                    "bookingId": booking.id,
                    "serviceType": booking.description,
                    "serviceDate": booking.date.isoformat(),
                    "originalCurrency": currency,
                    "originalAmount": booking.price,
                },
            )
        except stripe.StripeError as e:
            raise HTTPException(status_code=502, detail=f"Error creating payment intent: {e}") from e

        payment = self.repo.create_payment(
            self.db,
            booking_id=booking.id,
            payer_id=user.id,
            payee_id=booking.service_provider_id,
            amount=booking.price,
            currency=currency,
            payment_method="stripe",
            status="pending_customer_action",
            stripe_payment_intent_id=intent["id"],
            payment_metadata={
                "description": booking.description,
                "serviceType": "service_booking",
                "bookingDate": booking.date.isoformat(),
            },
        )
        booking.payment_intent_id = intent["id"]
        commit_session(self.db, booking)
        return payment, intent.get("client_secret")

    def confirm_stripe_payment(self, payment_id: int, payment_intent_id: str, user: User) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.payer_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to confirm this payment")
        if payment.stripe_payment_intent_id != payment_intent_id:
            raise HTTPException(status_code=400, detail="Payment intent does not match this payment")
        if payment.status == "confirmed":
            return payment

        try:
            intent = self.stripe.retrieve_payment_intent(payment_intent_id)
        except stripe.StripeError as e:
            raise HTTPException(status_code=502, detail=f"Error confirming payment: {e}") from e

        if intent["status"] != "succeeded":
            payment.status = "failed"
            payment.notes = f"Payment intent not succeeded ({intent['status']})"
            booking = self._get_booking(payment.booking_id)
            booking.payment_status = "failed"
            commit_session(self.db, payment, booking)
            logger.warning(f"⚠️ Stripe payment {payment.id} failed with intent status {intent['status']}")
            raise HTTPException(status_code=400, detail=f"Payment failed with status {intent['status']}")

        charge_id = intent.get("latest_charge")
        payment.stripe_charge_id = charge_id
        booking = self._get_booking(payment.booking_id)
        self._settle(payment, booking, "stripe", charge_id or payment_intent_id, "Card payment via Stripe")
        return payment

    # ============================================
    # Bank transfer
    # ============================================

    def record_bank_transfer_receipt(
        self, booking_id: int, receipt_path: str, bank_details: dict, user: User
    ) -> tuple[Payment, Booking]:
        """Create or update the bank transfer Payment once the seeker uploads a receipt"""
        booking = self._get_booking(booking_id)
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to upload receipt for this booking")

        provider = booking.service_provider
        existing = self.repo.get_latest_for_booking(self.db, booking.id, "bank_transfer")
        if booking.payment_status == "paid" or (existing and existing.status in ("confirmed", "refunded")):
            raise HTTPException(status_code=400, detail="Booking has already been paid")
        previous_details = (existing.bank_transfer_details or {}) if existing else {}
        details = {
            **previous_details,
            "bankName": bank_details.get("bankName") or provider.bank_name or "N/A",
            "accountNumber": bank_details.get("accountNumber") or provider.account_number or "N/A",
            "branchName": bank_details.get("branchName") or provider.branch_name or "N/A",
            "transferDate": datetime.utcnow().isoformat(),
            "referenceNumber": previous_details.get("referenceNumber") or f"BT-{int(time.time() * 1000)}",
            "receiptPath": receipt_path,
        }

        if existing:
            payment = existing
            payment.status = PENDING_CONFIRMATION
            payment.bank_transfer_details = details
        else:
            payment = self.repo.create_payment(
                self.db,
                commit=False,
                booking_id=booking.id,
                payer_id=user.id,
                payee_id=booking.service_provider_id,
                amount=booking.price,
                currency="LKR",
                payment_method="bank_transfer",
                status=PENDING_CONFIRMATION,
                bank_transfer_details=details,
                payment_metadata={
                    "description": booking.description,
                    "serviceType": "service_booking",
                    "bookingDate": booking.date.isoformat(),
                },
            )

        booking.payment_status = "processing"
        booking.payment_method = "bank_transfer"
        booking.receipt_path = receipt_path
        booking.receipt_upload_date = datetime.utcnow()
        booking.bank_transfer_details = details
        commit_session(self.db, payment, booking)
        logger.info(f"🧾 Receipt uploaded for booking {booking.id}, reference {details['referenceNumber']}")
        return payment, booking

    def _reject_bank_transfer(self, payment: Payment, booking: Booking, notes: str):
        payment.status = "failed"
        payment.notes = notes
        booking.payment_status = "failed"
        commit_session(self.db, payment, booking)
        logger.info(f"❌ Bank transfer payment {payment.id} rejected for booking {booking.id}")

    def confirm_receipt(self, payment_id: int, confirmed: bool, notes: Optional[str], user: User) -> Payment:
        """Provider confirms or rejects a bank transfer they were sent"""
        payment = self.get_payment(payment_id)
        if payment.payee_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to confirm this payment")
        if payment.status != PENDING_CONFIRMATION:
            raise HTTPException(status_code=400, detail="Payment is not awaiting confirmation")

        booking = self._get_booking(payment.booking_id)
        if confirmed:
            payment.notes = notes or "Payment confirmed by service provider"
            self._settle(payment, booking, "bank_transfer", payment.bank_reference, payment.notes)
        else:
            self._reject_bank_transfer(payment, booking, notes or "Payment rejected by service provider")
        return payment

    def verify_bank_transfer(self, payment_id: int, verified: bool, admin_notes: Optional[str]) -> Payment:
        """Admin verification of a bank transfer"""
        payment = self.get_payment(payment_id)
        if payment.payment_method != "bank_transfer":
            raise HTTPException(status_code=400, detail="Only bank transfer payments can be verified")
        if payment.status not in (PENDING_CONFIRMATION, "pending_customer_action"):
            raise HTTPException(status_code=400, detail="Payment is not awaiting verification")

        booking = self._get_booking(payment.booking_id)
        payment.admin_notes = admin_notes
        if verified:
            self._settle(payment, booking, "bank_transfer", payment.bank_reference, "Bank transfer verified by admin")
        else:
            self._reject_bank_transfer(payment, booking, "Bank transfer verification failed")
        return payment

    # ============================================
    # Refunds
    # ============================================

    def refund_payment(self, payment_id: int, data: RefundRequest, user: User) -> Payment:
        payment = self.get_payment(payment_id)
        if not user.is_admin and payment.payee_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to refund this payment")
        if payment.status != "confirmed":
            raise HTTPException(status_code=400, detail="Payment must be confirmed to process refund")

        amount = data.amount if data.amount is not None else payment.amount
        if amount > payment.amount:
            raise HTTPException(status_code=400, detail="Refund amount exceeds the payment amount")

        refund_id = None
        if payment.payment_method == "stripe" and payment.stripe_charge_id:
            if not self.stripe.is_available():
                raise HTTPException(status_code=500, detail="Stripe is not configured. Please check environment variables.")
            try:
                refund = self.stripe.create_refund(payment.stripe_charge_id, amount, payment.currency, data.reason)
            except stripe.StripeError as e:
                raise HTTPException(status_code=502, detail=f"Error processing refund: {e}") from e
            refund_id = refund["id"]
        else:
            logger.info(f"💸 Manual refund recorded for payment {payment.id}")

        now = datetime.utcnow()
        payment.status = "refunded"
        payment.refund_id = refund_id
        payment.refund_amount = amount
        payment.refund_reason = data.reason
        payment.refund_date = now

        booking = self._get_booking(payment.booking_id)
        booking.payment_status = "refunded"
        booking.refund_id = refund_id
        booking.refund_date = now
        booking.refund_reason = data.reason
        BookingLifecycle.add_payment_record(
            self.db,
            booking,
            {
                "date": now,
                "amount": amount,
                "method": "refund",
                "status": "refunded",
                "transaction_id": refund_id,
                "notes": data.reason,
            },
            commit=False,
        )
        commit_session(self.db, payment, booking)
        logger.info(f"💸 Payment {payment.id} refunded ({amount} {payment.currency})")
        return payment

    # ============================================
    # Listings and stats
    # ============================================

    def get_history(
        self,
        user_id: int,
        user: User,
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Payment], dict]:
        self._require_self_or_admin(user_id, user)
        payments, total = self.repo.get_user_payments(self.db, user_id, status, payment_method, page, limit)
        return payments, pagination_data(page, limit, total)

    def get_pending_confirmations(self, user: User) -> list[Payment]:
        return self.repo.get_payee_payments(self.db, user.id, (PENDING_CONFIRMATION,))

    def get_received_payments(self, user: User, status: Optional[str] = None) -> list[Payment]:
        statuses = (status,) if status else ("confirmed", "refunded")
        return self.repo.get_payee_payments(self.db, user.id, statuses)

    def acknowledge_payment(self, payment_id: int, note: Optional[str], user: User) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.payee_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to acknowledge this payment")
        payment.admin_notes = note or "Payment acknowledged by service provider"
        commit_session(self.db, payment)
        return payment

    def get_stats(self, user_id: int, user: User, period: str = "month") -> dict:
        self._require_self_or_admin(user_id, user)
        if period not in STATS_PERIODS:
            raise HTTPException(status_code=400, detail=f"Invalid period. Expected one of: {', '.join(STATS_PERIODS)}")

        now = datetime.utcnow()
        start = period_start(period, now)
        stats = self.repo.get_stats(self.db, user_id, start)
        return {**stats, "period": period, "startDate": start, "endDate": now}

    # ============================================
    # Invoice and disputes
    # ============================================

    def generate_invoice(self, payment_id: int, user: User) -> tuple[str, bytes]:
        """Assign an invoice number on first request and render the PDF"""
        payment = self.get_payment_for_party(payment_id, user)
        booking = self._get_booking(payment.booking_id)

        if not booking.invoice_number or not payment.invoice_number:
            BookingLifecycle.assign_invoice(self.db, booking, commit=False)
            payment.invoice_number = booking.invoice_number
            payment.invoice_subtotal = booking.invoice_subtotal
            payment.invoice_tax_amount = booking.invoice_tax_amount
            payment.invoice_total_amount = booking.invoice_total_amount
            commit_session(self.db, payment, booking)

        pdf_bytes = InvoicePDFGenerator(booking).generate()
        return booking.invoice_number, pdf_bytes

    def create_payment_dispute(self, payment_id: int, data: PaymentDisputeCreate, user: User):
        """Payee reports a problem with a payment"""
        payment = self.get_payment(payment_id)
        if payment.payee_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to dispute this payment")

        dispute_repo = DisputeRepository()
        if dispute_repo.get_active_for_booking(self.db, payment.booking_id):
            raise HTTPException(status_code=400, detail="An active dispute already exists for this booking")

        booking = self._get_booking(payment.booking_id)
        dispute = dispute_repo.create_dispute(
            self.db,
            commit=False,
            title=data.title,
            description=data.description,
            booking_id=booking.id,
            service_provider_id=booking.service_provider_id,
            service_seeker_id=booking.service_seeker_id,
            reported_by_id=user.id,
            category="payment_issue",
            priority=data.priority,
            status="open",
        )
        payment.notes = f"Payment disputed: {data.title}"
        booking.payment_status = "disputed"
        commit_session(self.db, dispute, payment, booking)
        logger.info(f"⚠️ Payment {payment.id} disputed by provider {user.id} (dispute {dispute.id})")
        return dispute
