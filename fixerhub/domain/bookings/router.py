"""Booking router - FastAPI endpoints for bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    QuotationCreate,
    RatingCreate,
    serialize_booking,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Request a booking with a provider"""
    return serialize_booking(service.create_booking(data, current_user))


@router.get("/provider/{provider_id}", response_model=list[BookingResponse])
async def get_provider_bookings(
    provider_id: int,
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [serialize_booking(b) for b in service.get_provider_bookings(provider_id, current_user, status)]


@router.get("/seeker/{seeker_id}", response_model=list[BookingResponse])
async def get_seeker_bookings(
    seeker_id: int,
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [serialize_booking(b) for b in service.get_seeker_bookings(seeker_id, current_user, status)]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return serialize_booking(service.get_booking(booking_id, current_user))


@router.get("/{booking_id}/payment-status")
async def get_payment_status(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_payment_summary(booking_id, current_user)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Change status along the allowed transitions"""
    return serialize_booking(service.update_status(booking_id, data.status, current_user))


@router.post("/{booking_id}/request-quote", response_model=BookingResponse)
async def request_quotation(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return serialize_booking(service.request_quotation(booking_id, current_user))


@router.post("/{booking_id}/quotation", response_model=BookingResponse)
async def send_quotation(
    booking_id: int,
    data: QuotationCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return serialize_booking(service.send_quotation(booking_id, data, current_user))


@router.post("/{booking_id}/accept-quote", response_model=BookingResponse)
async def accept_quotation(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return serialize_booking(service.accept_quotation(booking_id, current_user))


@router.post("/{booking_id}/rating", response_model=BookingResponse)
async def add_rating(
    booking_id: int,
    data: RatingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return serialize_booking(service.add_rating(booking_id, data, current_user))


__all__ = ["router"]
