"""
Pydantic schemas for property requests and responses.
Handles property CRUD operations, search filters, availability quotes and validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from estate_api.models.property import PropertyType, PropertyStatus


def _clean_text(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Property listing title",
        examples=["Sea view villa with private pool"]
    )

    description: str = Field(
        ...,
        min_length=10,
        max_length=5000,
        description="Detailed property description"
    )

    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=10,
        decimal_places=2,
        description="Nightly rate in local currency",
        examples=[150.00]
    )

    address: str = Field(..., min_length=1, max_length=255, description="Street address")
    city: str = Field(..., min_length=1, max_length=100, description="City")
    state: str = Field(..., min_length=1, max_length=100, description="State or region")
    zip_code: str = Field(..., min_length=1, max_length=20, description="Postal code")

    bedrooms: int = Field(0, ge=0, le=100, description="Number of bedrooms")
    bathrooms: int = Field(0, ge=0, le=100, description="Number of bathrooms")

    area: Decimal = Field(
        Decimal("0"),
        ge=0,
        max_digits=10,
        decimal_places=2,
        description="Property area in square feet"
    )

    property_type: PropertyType = Field(..., description="Kind of property", examples=["villa"])

    features: List[str] = Field(
        default_factory=list,
        description="Amenities such as pool or parking",
        examples=[["pool", "parking"]]
    )

    @field_validator('title', 'description', 'address', 'city', 'state', 'zip_code')
    @classmethod
    def validate_text(cls, v, info):
        """Strip surrounding whitespace and reject blank values."""
        return _clean_text(v, info.field_name.replace('_', ' ').capitalize())

    @field_validator('features')
    @classmethod
    def validate_features(cls, v):
        return [feature.strip() for feature in v if feature and feature.strip()]


class PropertyCreate(PropertyBase):
    """Schema for creating a new property."""

    status: PropertyStatus = Field(PropertyStatus.AVAILABLE, description="Listing status")
    is_featured: bool = Field(False, description="Whether the property is featured")

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Sea view villa with private pool",
                "description": "Four bedroom villa a short walk from the beach.",
                "price": 450.00,
                "address": "12 Coast Road",
                "city": "Miami",
                "state": "FL",
                "zip_code": "33139",
                "bedrooms": 4,
                "bathrooms": 3,
                "area": 2400,
                "property_type": "villa",
                "features": ["pool", "parking"]
            }
        }
    }


class PropertyUpdate(BaseModel):
    """Schema for updating an existing property. All fields optional."""

    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, min_length=10, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[int] = Field(None, ge=0, le=100)
    area: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    features: Optional[List[str]] = None
    is_featured: Optional[bool] = None

    @field_validator('title', 'description', 'address', 'city', 'state', 'zip_code')
    @classmethod
    def validate_text(cls, v, info):
        return _clean_text(v, info.field_name.replace('_', ' ').capitalize())


class PropertyResponse(PropertyBase):
    """Schema for property response with additional metadata."""

    id: str = Field(..., description="Property unique identifier")
    status: PropertyStatus
    is_featured: bool
    rating: Decimal = Field(..., description="Average review rating, 0 when unrated")
    reviews_count: int
    owner_id: str = Field(..., description="ID of the user who listed the property")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse] = Field(..., description="List of properties")
    total: int = Field(..., description="Total number of properties matching the criteria")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of properties per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


class PropertySearchParams(BaseModel):
    """Schema for property search filters with optional parameters."""

    search: Optional[str] = Field(
        None,
        min_length=1,
        max_length=255,
        description="Search query for title, description and address"
    )
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None

    min_price: Optional[Decimal] = Field(None, ge=0, description="Minimum nightly price")
    max_price: Optional[Decimal] = Field(None, ge=0, description="Maximum nightly price")

    bedrooms: Optional[int] = Field(None, ge=0, description="Minimum number of bedrooms")
    bathrooms: Optional[int] = Field(None, ge=0, description="Minimum number of bathrooms")

    min_area: Optional[Decimal] = Field(None, ge=0)
    max_area: Optional[Decimal] = Field(None, ge=0)

    min_rating: Optional[Decimal] = Field(None, ge=0, le=5)

    # Pagination
    page: int = Field(1, ge=1, description="Page number (starts from 1)")
    page_size: int = Field(10, ge=1, le=100, description="Number of properties per page (max 100)")

    # Sorting
    sort_by: str = Field(
        "created_at",
        description="Sort field (created_at, updated_at, price, rating, bedrooms, area, title)"
    )
    sort_order: str = Field("desc", description="Sort order (asc or desc)")

    @field_validator('sort_by')
    @classmethod
    def validate_sort_by(cls, v):
        """Validate sort field."""
        allowed_fields = ['created_at', 'updated_at', 'price', 'rating', 'bedrooms', 'area', 'title']
        if v not in allowed_fields:
            raise ValueError(f"Sort field must be one of: {', '.join(allowed_fields)}")
        return v

    @field_validator('sort_order')
    @classmethod
    def validate_sort_order(cls, v):
        """Validate sort order."""
        if v.lower() not in ['asc', 'desc']:
            raise ValueError("Sort order must be 'asc' or 'desc'")
        return v.lower()

    @model_validator(mode='after')
    def validate_ranges(self):
        """Validate price and area ranges."""
        if self.min_price is not None and self.max_price is not None:
            if self.min_price > self.max_price:
                raise ValueError("Minimum price cannot be greater than maximum price")

        if self.min_area is not None and self.max_area is not None:
            if self.min_area > self.max_area:
                raise ValueError("Minimum area cannot be greater than maximum area")

        return self


class AvailabilityQuoteResponse(BaseModel):
    """Availability and price for a date range at one property."""

    property_id: str
    check_in_date: date
    check_out_date: date
    available: bool = Field(..., description="Whether the dates are free")
    nights: int = Field(..., description="Number of nights in the range")
    nightly_price: Decimal
    total_price: Decimal = Field(..., description="Nightly price multiplied by the number of nights")
