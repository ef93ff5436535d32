"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...models_payment import PAYMENT_CURRENCIES


class PaymentIntentCreate(BaseModel):
    bookingId: int
    currency: str = "LKR"

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v):
        v = v.upper()
        if v not in PAYMENT_CURRENCIES:
            raise ValueError(f"Unsupported currency. Expected one of: {', '.join(PAYMENT_CURRENCIES)}")
        return v


class PaymentConfirm(BaseModel):
    paymentIntentId: str


class ReceiptDecision(BaseModel):
    """Provider decision on an uploaded bank transfer receipt"""

    confirmed: bool
    notes: Optional[str] = None


class BankTransferVerification(BaseModel):
    """Admin verification of a bank transfer"""

    verified: bool
    adminNotes: Optional[str] = None


class PaymentAcknowledge(BaseModel):
    note: Optional[str] = None


class RefundRequest(BaseModel):
    reason: str
    amount: Optional[float] = None

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        if not v or not v.strip():
            raise ValueError("Refund reason is required")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Refund amount must be greater than zero")
        return v


class PaymentDisputeCreate(BaseModel):
    """Payee reporting a problem with a payment"""

    title: str
    description: str
    priority: str = "medium"

    @field_validator("title", "description")
    @classmethod
    def check_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class RefundDetails(BaseModel):
    refundId: Optional[str] = None
    amount: Optional[float] = None
    reason: Optional[str] = None
    date: Optional[datetime] = None


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: int
    bookingId: int
    payerId: int
    payerName: Optional[str] = None
    payeeId: int
    payeeName: Optional[str] = None
    amount: float
    currency: str
    paymentMethod: str
    status: str
    stripePaymentIntentId: Optional[str] = None
    stripeChargeId: Optional[str] = None
    bankTransferDetails: Optional[dict[str, Any]] = None
    invoiceNumber: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    notes: Optional[str] = None
    adminNotes: Optional[str] = None
    refundDetails: Optional[RefundDetails] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def serialize_payment(payment) -> PaymentResponse:
    refund = None
    if payment.refund_date or payment.refund_id:
        refund = RefundDetails(
            refundId=payment.refund_id,
            amount=payment.refund_amount,
            reason=payment.refund_reason,
            date=payment.refund_date,
        )
    return PaymentResponse(
        id=payment.id,
        bookingId=payment.booking_id,
        payerId=payment.payer_id,
        payerName=payment.payer.name if payment.payer else None,
        payeeId=payment.payee_id,
        payeeName=payment.payee.name if payment.payee else None,
        amount=payment.amount,
        currency=payment.currency,
        paymentMethod=payment.payment_method,
        status=payment.status,
        stripePaymentIntentId=payment.stripe_payment_intent_id,
        stripeChargeId=payment.stripe_charge_id,
        bankTransferDetails=payment.bank_transfer_details,
        invoiceNumber=payment.invoice_number,
        metadata=payment.payment_metadata,
        notes=payment.notes,
        adminNotes=payment.admin_notes,
        refundDetails=refund,
        created_at=payment.created_at,
        updated_at=payment.updated_at,
    )
