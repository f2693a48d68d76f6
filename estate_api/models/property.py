"""
Property model for bookable real-estate listings.
Handles property data with location, nightly pricing, rating and ownership.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, JSON, Enum as SQLEnum, Index, ForeignKey, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base, SoftDeleteMixin
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estate_api.models.user import User


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    VILLA = "villa"
    CONDO = "condo"
    LAND = "land"
    COMMERCIAL = "commercial"


class PropertyStatus(str, enum.Enum):
    """Listing status; only available properties accept new reservations."""
    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"


class Property(SoftDeleteMixin, Base):
    """
    Property model for managing listings that guests can reserve.
    The price column is the nightly rate used for reservation totals.
    """

    __tablename__ = "properties"

    # Basic property information
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Nightly rate in local currency"
    )

    # Location information
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # Property specifications
    bedrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        index=True,
        comment="Number of bedrooms"
    )

    bathrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of bathrooms"
    )

    area: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0"),
        comment="Property area in square feet"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, values_callable=lambda e: [member.value for member in e]),
        nullable=False,
        index=True
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, values_callable=lambda e: [member.value for member in e]),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        index=True
    )

    features: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Amenities such as pool or parking"
    )

    is_featured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True
    )

    # Aggregated from non-deleted reviews
    rating: Mapped[Decimal] = mapped_column(
        Numeric(precision=2, scale=1),
        nullable=False,
        default=Decimal("0"),
        comment="Average review rating, 0 when unrated"
    )

    reviews_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the agent or admin who listed the property"
    )

    owner: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @property
    def is_bookable(self) -> bool:
        """Whether new reservations may be made for this property."""
        return self.status == PropertyStatus.AVAILABLE and not self.is_deleted

    def validate_price(self) -> None:
        """
        Validate the nightly price.

        Raises:
            ValueError: If price is invalid
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Property price must be greater than 0")

        if self.price > Decimal('99999999.99'):
            raise ValueError("Property price exceeds maximum allowed value")

    def validate_rooms(self) -> None:
        if self.bedrooms < 0:
            raise ValueError("Number of bedrooms cannot be negative")

        if self.bathrooms < 0:
            raise ValueError("Number of bathrooms cannot be negative")

    def validate_area(self) -> None:
        """
        Validate property area.

        Raises:
            ValueError: If area is negative
        """
        if self.area is not None and self.area < 0:
            raise ValueError("Property area cannot be negative")

    def validate_all(self) -> None:
        """
        Run all validation checks on the property.

        Raises:
            ValueError: If any validation fails
        """
        self.validate_price()
        self.validate_rooms()
        self.validate_area()

    def to_dict(self) -> dict:
        """
        Convert property to dictionary.

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "price": float(self.price),
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": float(self.area),
            "property_type": self.property_type.value,
            "status": self.status.value,
            "features": list(self.features or []),
            "is_featured": self.is_featured,
            "rating": float(self.rating),
            "reviews_count": self.reviews_count,
            "owner_id": str(self.owner_id),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        return result


# Composite index for city searches with price filtering
city_price_index = Index(
    'idx_properties_city_price',
    Property.city,
    Property.price,
    Property.status
)

# Composite index for type filtering, newest first
type_status_index = Index(
    'idx_properties_type_status',
    Property.property_type,
    Property.status,
    Property.created_at.desc()
)

# Composite index for an owner's listings
owner_index = Index(
    'idx_properties_owner_updated',
    Property.owner_id,
    Property.updated_at.desc()
)
