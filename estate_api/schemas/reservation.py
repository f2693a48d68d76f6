"""
Pydantic schemas for reservation requests and responses.
Date ordering, future check-in and guest count are enforced before any database work.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
import uuid
from estate_api.models.reservation import ReservationStatus, utc_today


def _validate_date_range(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise ValueError("Check-out date must be after check-in date")


class ReservationCreate(BaseModel):
    """Schema for creating a reservation."""

    property_id: uuid.UUID = Field(..., description="Property to reserve")
    check_in_date: date = Field(..., description="First night of the stay", examples=["2030-06-01"])
    check_out_date: date = Field(..., description="Departure day; not a night of the stay", examples=["2030-06-04"])
    guests: int = Field(1, ge=1, le=50, description="Number of guests")
    special_requests: Optional[str] = Field(None, max_length=500)

    @field_validator('check_in_date')
    @classmethod
    def validate_check_in(cls, v):
        """Check-in must be after today (UTC)."""
        if v <= utc_today():
            raise ValueError("Check-in date must be after today")
        return v

    @model_validator(mode='after')
    def validate_dates(self):
        _validate_date_range(self.check_in_date, self.check_out_date)
        return self


class ReservationUpdate(BaseModel):
    """
    Schema for editing a pending reservation.

    Either date may be sent alone; the other keeps its stored value and the
    merged range is checked by the service. A new check-in must still be
    after today.
    """

    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    guests: Optional[int] = Field(None, ge=1, le=50)
    special_requests: Optional[str] = Field(None, max_length=500)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.check_in_date is not None and self.check_in_date <= utc_today():
            raise ValueError("Check-in date must be after today")

        if self.check_in_date is not None and self.check_out_date is not None:
            _validate_date_range(self.check_in_date, self.check_out_date)

        return self

    @property
    def changes_dates(self) -> bool:
        return self.check_in_date is not None or self.check_out_date is not None


class ReservationStatusUpdate(BaseModel):
    """Schema for moving a reservation to another status."""

    status: ReservationStatus = Field(..., description="Target status")
    cancellation_reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode='after')
    def validate_reason(self):
        if self.cancellation_reason is not None and self.status != ReservationStatus.CANCELLED:
            raise ValueError("A cancellation reason can only be given when cancelling")
        return self


class ReservationResponse(BaseModel):
    """Schema for reservation responses."""

    id: str
    property_id: str
    user_id: str
    check_in_date: date
    check_out_date: date
    nights: int = Field(..., description="Number of nights covered")
    guests: int
    special_requests: Optional[str] = None
    status: ReservationStatus
    total_price: Decimal = Field(..., description="Nightly price multiplied by the number of nights")
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationListResponse(BaseModel):
    """Schema for paginated reservation list response."""

    reservations: List[ReservationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class ReservationSearchParams(BaseModel):
    """Schema for reservation list filters."""

    status: Optional[ReservationStatus] = None
    property_id: Optional[uuid.UUID] = None
    check_in_from: Optional[date] = Field(None, description="Only stays starting on or after this date")
    check_out_to: Optional[date] = Field(None, description="Only stays ending on or before this date")
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=100)


class CompleteFinishedResponse(BaseModel):
    """Result of completing reservations whose stay has ended."""

    completed: int = Field(..., description="Number of reservations marked completed")
    as_of: date
