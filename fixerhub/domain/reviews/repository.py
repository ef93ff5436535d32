"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Review
from ...shared.persistence import commit as commit_session


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def get_by_booking(db: Session, booking_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def add_review(db: Session, **review_data) -> Review:
        """Insert a review. A second review for the same booking raises ConstraintViolation."""
        review = Review(**review_data)
        db.add(review)
        commit_session(db, review)
        return review

    @staticmethod
    def get_provider_reviews(db: Session, provider_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.service_seeker))
            .filter(Review.service_provider_id == provider_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def get_seeker_reviews(db: Session, seeker_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.service_provider))
            .filter(Review.service_seeker_id == seeker_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def get_provider_rating(db: Session, provider_id: int) -> tuple[float, int]:
        """(average overall rating, review count) for a provider"""
        average, count = (
            db.query(func.avg(Review.rating_overall), func.count(Review.id))
            .filter(Review.service_provider_id == provider_id)
            .one()
        )
        return round(float(average or 0), 2), count
