"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking
from ...shared.persistence import commit as commit_session


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service_provider), joinedload(Booking.service_seeker))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_provider_bookings(db: Session, provider_id: int, status: Optional[str] = None) -> list[Booking]:
        """Bookings received by a provider, newest first"""
        query = db.query(Booking).filter(Booking.service_provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def get_seeker_bookings(db: Session, seeker_id: int, status: Optional[str] = None) -> list[Booking]:
        """Bookings made by a seeker, newest first"""
        query = db.query(Booking).filter(Booking.service_seeker_id == seeker_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Create a new booking"""
        booking = Booking(**booking_data)
        db.add(booking)
        commit_session(db, booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, commit: bool = True, **updates) -> Booking:
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)

        if commit:
            commit_session(db, booking)
        return booking
