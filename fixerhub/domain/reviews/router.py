"""Review router - FastAPI endpoints for reviews"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ReviewCreate, ReviewResponse, ReviewResponseCreate, serialize_review
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("", response_model=ReviewResponse, status_code=201)
async def add_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Review a completed booking, once"""
    return serialize_review(service.add_review(data, current_user))


@router.get("/provider/{provider_id}", response_model=list[ReviewResponse])
async def get_provider_reviews(provider_id: int, service: ReviewService = Depends(get_review_service)):
    return [serialize_review(r) for r in service.get_provider_reviews(provider_id)]


@router.get("/seeker/{seeker_id}", response_model=list[ReviewResponse])
async def get_seeker_reviews(seeker_id: int, service: ReviewService = Depends(get_review_service)):
    return [serialize_review(r) for r in service.get_seeker_reviews(seeker_id)]


@router.post("/{review_id}/response", response_model=ReviewResponse)
async def respond_to_review(
    review_id: int,
    data: ReviewResponseCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return serialize_review(service.respond(review_id, data.response, current_user))


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
async def mark_review_helpful(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return serialize_review(service.mark_helpful(review_id, current_user))


__all__ = ["router"]
