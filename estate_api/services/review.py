"""
Review service: guests review properties they stayed at, and each change
recomputes the property's average rating.
"""

from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from estate_api.config import settings
from estate_api.repositories.property import PropertyRepository
from estate_api.repositories.reservation import ReservationRepository
from estate_api.repositories.review import ReviewRepository, ReviewSearchFilters
from estate_api.models.review import Review
from estate_api.models.user import User
from estate_api.schemas.review import ReviewCreate, ReviewUpdate, ReviewSearchParams
from estate_api.utils.exceptions import (
    InsufficientPermissionsError,
    PropertyNotFoundError,
    ReviewNotFoundError,
    ValidationError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewService:

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.reservation_repo = ReservationRepository(db_session)

    async def list_reviews(self, params: ReviewSearchParams) -> Tuple[List[Review], int]:
        filters = ReviewSearchFilters(
            property_id=params.property_id,
            user_id=params.user_id,
            min_rating=params.min_rating,
            max_rating=params.max_rating,
            is_verified=params.verified
        )
        skip = (params.page - 1) * params.page_size
        return await self.review_repo.search_reviews(filters, skip=skip, limit=params.page_size)

    async def get_review(self, review_id: uuid.UUID) -> Review:
        review = await self.review_repo.get_by_id(review_id)
        if not review:
            raise ReviewNotFoundError(str(review_id))
        return review

    async def create_review(self, review_data: ReviewCreate, current_user: User) -> Review:
        """
        Review a property after a completed stay.

        A user has at most one review per property. If their earlier review was
        deleted, it is replaced by the new one.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            ValidationError: If the user already reviewed the property or never completed a stay there
        """
        property_id = review_data.property_id

        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))

        existing = await self.review_repo.get_user_review_for_property(
            current_user.id, property_id, include_deleted=True
        )
        if existing is not None and not existing.is_deleted:
            raise ValidationError("You have already reviewed this property")

        if not await self.reservation_repo.has_completed_stay(current_user.id, property_id):
            raise ValidationError("You can only review properties where you have completed a stay")

        if existing is not None:
            existing.deleted_at = None
            existing.is_verified = False
            existing.created_at = datetime.now(timezone.utc)
            review = await self.review_repo.update(
                existing, {"rating": review_data.rating, "comment": review_data.comment}, commit=False
            )
        else:
            review = await self.review_repo.create({
                "property_id": property_id,
                "user_id": current_user.id,
                "rating": review_data.rating,
                "comment": review_data.comment,
            }, commit=False)

        await self.property_repo.refresh_rating(property_id, commit=False)
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(f"Review {review.id} created for property {property_id} by user {current_user.id}")
        return review

    def _check_modifiable(self, review: Review, current_user: User, action: str) -> None:
        if review.user_id != current_user.id:
            raise InsufficientPermissionsError(f"{action} this review")

        window = settings.review_edit_window_hours
        if not review.can_be_modified(datetime.now(timezone.utc), window):
            raise ValidationError(f"Reviews can only be {action}d within {window} hours of creation")

    async def update_review(self, review_id: uuid.UUID, update_data: ReviewUpdate, current_user: User) -> Review:
        """
        Raises:
            InsufficientPermissionsError: If the user is not the author
            ValidationError: If the edit window has passed or nothing changes
        """
        review = await self.get_review(review_id)
        self._check_modifiable(review, current_user, "update")

        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No valid fields provided for update")

        review = await self.review_repo.update(review, changes, commit=False)
        if "rating" in changes:
            await self.property_repo.refresh_rating(review.property_id, commit=False)
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(f"Review {review_id} updated")
        return review

    async def delete_review(self, review_id: uuid.UUID, current_user: User) -> None:
        """
        Raises:
            InsufficientPermissionsError: If the user is not the author
            ValidationError: If the edit window has passed
        """
        review = await self.get_review(review_id)
        self._check_modifiable(review, current_user, "delete")

        property_id = review.property_id
        await self.review_repo.soft_delete(review, commit=False)
        await self.property_repo.refresh_rating(property_id, commit=False)
        await self.db.commit()

        logger.info(f"Review {review_id} deleted")

    async def verify_review(self, review_id: uuid.UUID, current_user: User) -> Review:
        if not current_user.is_admin:
            raise InsufficientPermissionsError("verify reviews")

        review = await self.get_review(review_id)
        review = await self.review_repo.update(review, {"is_verified": True})
        logger.info(f"Review {review_id} verified by admin {current_user.id}")
        return review
