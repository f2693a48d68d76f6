"""
Pydantic schemas for property reviews.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    property_id: uuid.UUID
    rating: Decimal = Field(..., ge=1, le=5, max_digits=2, decimal_places=1, description="Rating from 1 to 5")
    comment: str = Field(..., min_length=10, max_length=1000)

    @field_validator('comment')
    @classmethod
    def validate_comment(cls, v):
        if len(v.strip()) < 10:
            raise ValueError("Comment must be at least 10 characters long")
        return v.strip()


class ReviewUpdate(BaseModel):
    """Schema for editing a review."""

    rating: Optional[Decimal] = Field(None, ge=1, le=5, max_digits=2, decimal_places=1)
    comment: Optional[str] = Field(None, min_length=10, max_length=1000)

    @field_validator('comment')
    @classmethod
    def validate_comment(cls, v):
        if v is not None and len(v.strip()) < 10:
            raise ValueError("Comment must be at least 10 characters long")
        return v.strip() if v is not None else v


class ReviewResponse(BaseModel):
    id: str
    property_id: str
    user_id: str
    rating: Decimal
    comment: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class ReviewSearchParams(BaseModel):
    """Schema for review list filters."""

    property_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    min_rating: Optional[Decimal] = Field(None, ge=1, le=5)
    max_rating: Optional[Decimal] = Field(None, ge=1, le=5)
    verified: Optional[bool] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)

    @model_validator(mode='after')
    def validate_rating_range(self):
        if self.min_rating is not None and self.max_rating is not None:
            if self.min_rating > self.max_rating:
                raise ValueError("Minimum rating cannot be greater than maximum rating")
        return self
