"""Review service - Business logic for booking reviews"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...errors import ConstraintViolation
from ...models import Review, User
from ...shared.persistence import commit as commit_session
from ..bookings.repository import BookingRepository
from ..users.repository import UserRepository
from .repository import ReviewRepository
from .schemas import ReviewCreate

logger = logging.getLogger(__name__)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def get_review(self, review_id: int) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        return review

    def add_review(self, data: ReviewCreate, user: User) -> Review:
        booking = BookingRepository.get_booking(self.db, data.bookingId)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.service_seeker_id != user.id:
            raise HTTPException(status_code=403, detail="Only the service seeker can review this booking")
        if booking.status != "completed":
            raise HTTPException(status_code=400, detail="Booking not completed yet")
        if self.repo.get_by_booking(self.db, booking.id):
            raise ConstraintViolation(f"Booking {booking.id} has already been reviewed")

        ratings = data.ratings
        review = self.repo.add_review(
            self.db,
            booking_id=booking.id,
            service_provider_id=booking.service_provider_id,
            service_seeker_id=booking.service_seeker_id,
            rating_overall=ratings.overall,
            rating_quality=ratings.quality,
            rating_timeliness=ratings.timeliness,
            rating_communication=ratings.communication,
            rating_value_for_money=ratings.valueForMoney,
            rating_cleanliness=ratings.cleanliness,
            comment=data.comment,
            photos=list(data.photos),
            would_recommend=data.wouldRecommend,
            is_verified=True,
            helpful=[],
        )
        self._refresh_provider_rating(booking.service_provider_id)
        logger.info(f"⭐ Review {review.id} added for booking {booking.id} ({ratings.overall}/5)")
        return review

    def _refresh_provider_rating(self, provider_id: int):
        """Recompute the provider's average from their reviews"""
        provider = UserRepository.get_by_id(self.db, provider_id)
        if not provider:
            return
        average, count = self.repo.get_provider_rating(self.db, provider_id)
        provider.rating = average
        provider.total_ratings = count
        commit_session(self.db, provider)

    def get_provider_reviews(self, provider_id: int) -> list[Review]:
        return self.repo.get_provider_reviews(self.db, provider_id)

    def get_seeker_reviews(self, seeker_id: int) -> list[Review]:
        return self.repo.get_seeker_reviews(self.db, seeker_id)

    def respond(self, review_id: int, response: str, user: User) -> Review:
        review = self.get_review(review_id)
        if review.service_provider_id != user.id:
            raise HTTPException(status_code=403, detail="Only the reviewed provider can respond")

        review.provider_response = response
        review.provider_response_date = datetime.utcnow()
        commit_session(self.db, review)
        return review

    def mark_helpful(self, review_id: int, user: User) -> Review:
        """Record that a user found the review helpful. Repeat calls change nothing."""
        review = self.get_review(review_id)
        helpful = list(review.helpful or [])
        if user.id not in helpful:
            # Reassign so the JSON column is flagged as changed
            review.helpful = helpful + [user.id]
            commit_session(self.db, review)
        return review
