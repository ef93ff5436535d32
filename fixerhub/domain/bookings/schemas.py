"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import BOOKING_STATUSES
from ...shared.validators import validate_rating


class BookingCreate(BaseModel):
    """Schema for a seeker requesting a booking"""

    serviceProviderId: int
    date: datetime
    time: str
    description: str
    price: float
    image: Optional[str] = None

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("description", "time")
    @classmethod
    def check_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class BookingStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v not in BOOKING_STATUSES:
            raise ValueError(f"Invalid status. Expected one of: {', '.join(BOOKING_STATUSES)}")
        return v


class QuotationCreate(BaseModel):
    """Provider quotation for a booking"""

    quoteAmount: float
    terms: Optional[str] = None

    @field_validator("quoteAmount")
    @classmethod
    def check_amount(cls, v):
        if v <= 0:
            raise ValueError("Quote amount must be greater than zero")
        return v


class RatingCreate(BaseModel):
    rating: int
    review: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v):
        return validate_rating(v)


class PaymentRecordResponse(BaseModel):
    date: Optional[datetime] = None
    amount: Optional[float] = None
    method: Optional[str] = None
    status: Optional[str] = None
    transactionId: Optional[str] = None
    notes: Optional[str] = None


class InvoiceResponse(BaseModel):
    invoiceNumber: Optional[str] = None
    dueDate: Optional[datetime] = None
    paidDate: Optional[datetime] = None
    subtotal: Optional[float] = None
    taxAmount: Optional[float] = None
    totalAmount: Optional[float] = None
    currency: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    serviceSeekerId: int
    serviceSeekerName: Optional[str] = None
    serviceProviderId: int
    serviceProviderName: Optional[str] = None
    date: datetime
    time: str
    description: str
    image: Optional[str] = None
    price: float
    originalPrice: Optional[float] = None
    terms: Optional[str] = None
    status: str
    paymentStatus: str
    paymentMethod: str
    paymentId: Optional[str] = None
    paymentDate: Optional[datetime] = None
    receiptPath: Optional[str] = None
    refundId: Optional[str] = None
    refundDate: Optional[datetime] = None
    refundReason: Optional[str] = None
    invoice: InvoiceResponse
    paymentHistory: list[PaymentRecordResponse] = []
    rating: Optional[int] = None
    review: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def serialize_booking(booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        serviceSeekerId=booking.service_seeker_id,
        serviceSeekerName=booking.service_seeker.name if booking.service_seeker else None,
        serviceProviderId=booking.service_provider_id,
        serviceProviderName=booking.service_provider.name if booking.service_provider else None,
        date=booking.date,
        time=booking.time,
        description=booking.description,
        image=booking.image,
        price=booking.price,
        originalPrice=booking.original_price,
        terms=booking.terms,
        status=booking.status,
        paymentStatus=booking.payment_status,
        paymentMethod=booking.payment_method,
        paymentId=booking.payment_id,
        paymentDate=booking.payment_date,
        receiptPath=booking.receipt_path,
        refundId=booking.refund_id,
        refundDate=booking.refund_date,
        refundReason=booking.refund_reason,
        invoice=InvoiceResponse(
            invoiceNumber=booking.invoice_number,
            dueDate=booking.invoice_due_date,
            paidDate=booking.invoice_paid_date,
            subtotal=booking.invoice_subtotal,
            taxAmount=booking.invoice_tax_amount,
            totalAmount=booking.invoice_total_amount,
            currency=booking.invoice_currency,
        ),
        paymentHistory=[
            PaymentRecordResponse(
                date=r.date,
                amount=r.amount,
                method=r.method,
                status=r.status,
                transactionId=r.transaction_id,
                notes=r.notes,
            )
            for r in booking.payment_history
        ],
        rating=booking.rating,
        review=booking.review,
        created_at=booking.created_at,
    )
