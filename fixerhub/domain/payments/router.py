"""Payment router - FastAPI endpoints for payments, receipts, refunds and invoices"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...email_service import notify, send_payment_confirmed_email
from ...models import User
from ...shared.formatting import format_currency
from ...storage import RECEIPT_TYPES, delete_upload, save_upload
from ..bookings.schemas import serialize_booking
from ..disputes.schemas import serialize_dispute
from .schemas import (
    BankTransferVerification,
    PaymentAcknowledge,
    PaymentConfirm,
    PaymentDisputeCreate,
    PaymentIntentCreate,
    PaymentResponse,
    ReceiptDecision,
    RefundRequest,
    serialize_payment,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


async def _notify_payment_confirmed(payment) -> bool:
    payer = payment.payer
    if not payer:
        return False
    return await notify(
        send_payment_confirmed_email(
            payer.email,
            payer.name,
            format_currency(payment.amount, payment.currency),
            payment.booking_id,
            payment.payment_method,
            payment.stripe_charge_id or payment.bank_reference,
        )
    )


# ============================================================================
# STRIPE
# ============================================================================


@router.post("/create-intent")
async def create_payment_intent(
    data: PaymentIntentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment, client_secret = service.create_payment_intent(data.bookingId, data.currency, current_user)
    return {"clientSecret": client_secret, "paymentId": payment.id}


@router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_stripe_payment(
    payment_id: int,
    data: PaymentConfirm,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.confirm_stripe_payment(payment_id, data.paymentIntentId, current_user)
    await _notify_payment_confirmed(payment)
    return serialize_payment(payment)


# ============================================================================
# BANK TRANSFER
# ============================================================================


@router.post("/upload-receipt")
async def upload_bank_transfer_receipt(
    bookingId: int = Form(...),
    bankDetails: Optional[str] = Form(None),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Seeker uploads a bank transfer receipt, the provider confirms it later"""
    try:
        parsed_details = json.loads(bankDetails) if bankDetails else {}
    except ValueError:
        logger.warning(f"⚠️ Ignoring malformed bankDetails for booking {bookingId}")
        parsed_details = {}
    if not isinstance(parsed_details, dict):
        parsed_details = {}

    receipt_path = await save_upload(file, "receipts", "receipt", RECEIPT_TYPES)
    try:
        payment, booking = service.record_bank_transfer_receipt(
            bookingId, receipt_path, parsed_details, current_user
        )
    except Exception:
        delete_upload(receipt_path)
        raise
    return {
        "message": "Receipt uploaded successfully. Payment is awaiting confirmation by the service provider.",
        "payment": serialize_payment(payment),
        "booking": serialize_booking(booking),
    }


@router.post("/{payment_id}/confirm-receipt", response_model=PaymentResponse)
async def confirm_payment_receipt(
    payment_id: int,
    data: ReceiptDecision,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.confirm_receipt(payment_id, data.confirmed, data.notes, current_user)
    if data.confirmed:
        await _notify_payment_confirmed(payment)
    return serialize_payment(payment)


@router.post("/{payment_id}/verify-bank-transfer", response_model=PaymentResponse)
async def verify_bank_transfer(
    payment_id: int,
    data: BankTransferVerification,
    _admin: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.verify_bank_transfer(payment_id, data.verified, data.adminNotes)
    if data.verified:
        await _notify_payment_confirmed(payment)
    return serialize_payment(payment)


# ============================================================================
# PROVIDER VIEWS
# ============================================================================


@router.get("/pending", response_model=list[PaymentResponse])
async def get_pending_payments(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Bank transfers waiting for the current provider to confirm"""
    return [serialize_payment(p) for p in service.get_pending_confirmations(current_user)]


@router.get("/received", response_model=list[PaymentResponse])
async def get_received_payments(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return [serialize_payment(p) for p in service.get_received_payments(current_user, status)]


@router.post("/{payment_id}/acknowledge", response_model=PaymentResponse)
async def acknowledge_payment(
    payment_id: int,
    data: PaymentAcknowledge,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return serialize_payment(service.acknowledge_payment(payment_id, data.note, current_user))


# ============================================================================
# HISTORY & STATS
# ============================================================================


@router.get("/history/{user_id}")
async def get_payment_history(
    user_id: int,
    status: Optional[str] = Query(None),
    paymentMethod: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payments, pagination = service.get_history(user_id, current_user, status, paymentMethod, page, limit)
    return {"payments": [serialize_payment(p) for p in payments], "pagination": pagination}


@router.get("/stats/{user_id}")
async def get_payment_stats(
    user_id: int,
    period: str = Query("month"),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_stats(user_id, current_user, period)


# ============================================================================
# REFUNDS, INVOICES, DISPUTES
# ============================================================================


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    data: RefundRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return serialize_payment(service.refund_payment(payment_id, data, current_user))


@router.get("/{payment_id}/invoice")
async def download_invoice(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    invoice_number, pdf_bytes = service.generate_invoice(payment_id, current_user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{invoice_number}.pdf"'},
    )


@router.post("/{payment_id}/dispute", status_code=201)
async def create_payment_dispute(
    payment_id: int,
    data: PaymentDisputeCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    dispute = service.create_payment_dispute(payment_id, data, current_user)
    return {"message": "Dispute created successfully", "dispute": serialize_dispute(dispute)}


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return serialize_payment(service.get_payment_for_party(payment_id, current_user))


__all__ = ["router"]
