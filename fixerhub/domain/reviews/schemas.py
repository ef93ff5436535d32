"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_rating


class ReviewRatings(BaseModel):
    overall: int
    quality: int
    timeliness: int
    communication: int
    valueForMoney: int
    cleanliness: int

    @field_validator("*")
    @classmethod
    def check_rating(cls, v):
        return validate_rating(v)


class ReviewCreate(BaseModel):
    """Schema for a seeker reviewing a completed booking"""

    bookingId: int
    ratings: ReviewRatings
    comment: str
    photos: list[str] = []
    wouldRecommend: bool

    @field_validator("comment")
    @classmethod
    def check_comment(cls, v):
        v = v.strip()
        if len(v) < 10 or len(v) > 1000:
            raise ValueError("Comment must be between 10 and 1000 characters")
        return v


class ReviewResponseCreate(BaseModel):
    """Provider reply to a review"""

    response: str

    @field_validator("response")
    @classmethod
    def check_response(cls, v):
        if not v or not v.strip():
            raise ValueError("Response cannot be empty")
        if len(v) > 500:
            raise ValueError("Response must be at most 500 characters")
        return v.strip()


class ReviewResponse(BaseModel):
    """Schema for review response"""

    id: int
    bookingId: int
    serviceProviderId: int
    serviceProviderName: Optional[str] = None
    serviceSeekerId: int
    serviceSeekerName: Optional[str] = None
    ratings: ReviewRatings
    comment: str
    photos: list[str] = []
    wouldRecommend: bool
    isVerified: bool
    helpfulCount: int
    providerResponse: Optional[str] = None
    providerResponseDate: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def serialize_review(review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        bookingId=review.booking_id,
        serviceProviderId=review.service_provider_id,
        serviceProviderName=review.service_provider.name if review.service_provider else None,
        serviceSeekerId=review.service_seeker_id,
        serviceSeekerName=review.service_seeker.name if review.service_seeker else None,
        ratings=ReviewRatings(
            overall=review.rating_overall,
            quality=review.rating_quality,
            timeliness=review.rating_timeliness,
            communication=review.rating_communication,
            valueForMoney=review.rating_value_for_money,
            cleanliness=review.rating_cleanliness,
        ),
        comment=review.comment,
        photos=review.photos or [],
        wouldRecommend=review.would_recommend,
        isVerified=bool(review.is_verified),
        helpfulCount=len(review.helpful or []),
        providerResponse=review.provider_response,
        providerResponseDate=review.provider_response_date,
        created_at=review.created_at,
    )
