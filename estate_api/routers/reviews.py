"""
Review API endpoints.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Response
from typing import Optional
from decimal import Decimal
from uuid import UUID
import math

from estate_api.models.user import User
from estate_api.services.review import ReviewService
from estate_api.schemas.review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewListResponse,
    ReviewSearchParams
)
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_review_service
)


router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get(
    "",
    response_model=ReviewListResponse,
    summary="List reviews",
    responses=error_responses(422)
)
async def list_reviews(
    property_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None),
    min_rating: Optional[Decimal] = Query(None, ge=1, le=5),
    max_rating: Optional[Decimal] = Query(None, ge=1, le=5),
    verified: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewListResponse:
    params = ReviewSearchParams(
        property_id=property_id,
        user_id=user_id,
        min_rating=min_rating,
        max_rating=max_rating,
        verified=verified,
        page=page,
        page_size=page_size
    )

    reviews, total_count = await review_service.list_reviews(params)

    total_pages = math.ceil(total_count / page_size) if total_count > 0 else 1

    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(review.to_dict()) for review in reviews],
        total=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Get review",
    responses=error_responses(404)
)
async def get_review(
    review_id: UUID = Path(..., description="Review unique identifier"),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.get_review(review_id)
    return ReviewResponse.model_validate(review.to_dict())


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a property",
    description="Only guests with a completed stay may review, once per property.",
    responses=error_responses(401, 404, 422)
)
async def create_review(
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.create_review(review_data, current_user)
    return ReviewResponse.model_validate(review.to_dict())


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    summary="Update own review",
    responses=error_responses(401, 403, 404, 422)
)
async def update_review(
    update_data: ReviewUpdate,
    review_id: UUID = Path(..., description="Review unique identifier"),
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.update_review(review_id, update_data, current_user)
    return ReviewResponse.model_validate(review.to_dict())


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own review",
    responses=error_responses(401, 403, 404, 422)
)
async def delete_review(
    review_id: UUID = Path(..., description="Review unique identifier"),
    current_user: User = Depends(get_current_active_user),
    review_service: ReviewService = Depends(get_review_service)
) -> Response:
    await review_service.delete_review(review_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{review_id}/verify",
    response_model=ReviewResponse,
    summary="Verify review",
    description="Mark a review as verified. Admin only.",
    responses=error_responses(401, 403, 404)
)
async def verify_review(
    review_id: UUID = Path(..., description="Review unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.verify_review(review_id, current_user)
    return ReviewResponse.model_validate(review.to_dict())
