"""Booking service - Business logic for the booking workflow"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...errors import InvalidTransition
from ...models import Booking, User
from ..users.repository import UserRepository
from .lifecycle import BookingLifecycle
from .repository import BookingRepository
from .schemas import BookingCreate, QuotationCreate, RatingCreate

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def get_booking(self, booking_id: int, user: User) -> Booking:
        """Fetch a booking visible to the user (either party or an admin)"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if not user.is_admin and not booking.is_party(user.id):
            raise HTTPException(status_code=403, detail="Not authorized to access this booking")
        return booking

    def create_booking(self, data: BookingCreate, user: User) -> Booking:
        if user.is_provider:
            raise HTTPException(status_code=403, detail="Only service seekers can create bookings")

        provider = UserRepository.get_provider(self.db, data.serviceProviderId)
        if not provider:
            raise HTTPException(status_code=404, detail="Service provider not found")

        booking = self.repo.create_booking(
            self.db,
            service_seeker_id=user.id,
            service_provider_id=provider.id,
            date=data.date,
            time=data.time,
            description=data.description,
            price=data.price,
            image=data.image,
            status="pending",
            payment_status="unpaid",
        )
        logger.info(f"📥 Booking {booking.id} created by seeker {user.id} for provider {provider.id}")
        return booking

    def get_provider_bookings(self, provider_id: int, user: User, status: Optional[str] = None) -> list[Booking]:
        if not user.is_admin and user.id != provider_id:
            raise HTTPException(status_code=403, detail="Not authorized to view these bookings")
        return self.repo.get_provider_bookings(self.db, provider_id, status)

    def get_seeker_bookings(self, seeker_id: int, user: User, status: Optional[str] = None) -> list[Booking]:
        if not user.is_admin and user.id != seeker_id:
            raise HTTPException(status_code=403, detail="Not authorized to view these bookings")
        return self.repo.get_seeker_bookings(self.db, seeker_id, status)

    def update_status(self, booking_id: int, new_status: str, user: User) -> Booking:
        """Manual status change, checked against the transition table"""
        booking = self.get_booking(booking_id, user)
        return BookingLifecycle.transition(self.db, booking, new_status)

    def request_quotation(self, booking_id: int, user: User) -> Booking:
        booking = self.get_booking(booking_id, user)
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Only the service seeker can request a quotation")
        return BookingLifecycle.transition(self.db, booking, "quote_requested")

    def send_quotation(self, booking_id: int, data: QuotationCreate, user: User) -> Booking:
        """Provider prices the job. The pre-negotiation price is kept the first time it changes."""
        booking = self.get_booking(booking_id, user)
        if booking.service_provider_id != user.id:
            raise HTTPException(status_code=403, detail="Only the service provider can send a quotation")
        if not BookingLifecycle.can_transition(booking.status, "quote_sent"):
            raise InvalidTransition("booking", booking.status, "quote_sent")

        if booking.original_price is None and data.quoteAmount != booking.price:
            booking.original_price = booking.price
        booking.price = data.quoteAmount
        booking.terms = data.terms
        BookingLifecycle.transition(self.db, booking, "quote_sent")
        logger.info(f"📨 Quotation of {data.quoteAmount} sent for booking {booking.id}")
        return booking

    def accept_quotation(self, booking_id: int, user: User) -> Booking:
        booking = self.get_booking(booking_id, user)
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Only the service seeker can accept a quotation")
        return BookingLifecycle.transition(self.db, booking, "quote_accepted")

    def add_rating(self, booking_id: int, data: RatingCreate, user: User) -> Booking:
        booking = self.get_booking(booking_id, user)
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Only the service seeker can rate this booking")
        if booking.status != "completed":
            raise HTTPException(status_code=400, detail="Can only rate completed bookings")

        return self.repo.update_booking(self.db, booking, rating=data.rating, review=data.review)

    def get_payment_summary(self, booking_id: int, user: User) -> dict:
        booking = self.get_booking(booking_id, user)
        return {
            "bookingId": booking.id,
            "status": booking.status,
            "paymentStatus": booking.payment_status,
            "paymentMethod": booking.payment_method,
            "paymentId": booking.payment_id,
            "paymentDate": booking.payment_date,
            "invoiceNumber": booking.invoice_number,
            "historyCount": len(booking.payment_history),
        }
