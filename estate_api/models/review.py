"""
Review model for guest feedback on properties.
"""

from sqlalchemy import Text, Numeric, Boolean, ForeignKey, UniqueConstraint, CheckConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base, SoftDeleteMixin, as_utc
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from estate_api.models.property import Property
    from estate_api.models.user import User


class Review(SoftDeleteMixin, Base):
    """
    Review left by a guest after a completed stay.
    One review per user and property.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_reviews_user_property"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    rating: Mapped[Decimal] = mapped_column(
        Numeric(precision=2, scale=1),
        nullable=False,
        comment="Rating from 1 to 5"
    )

    comment: Mapped[str] = mapped_column(Text, nullable=False)

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Set by an administrator"
    )

    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, property_id={self.property_id}, rating={self.rating})>"

    def can_be_modified(self, now: Optional[datetime] = None, window_hours: int = 24) -> bool:
        """Reviews may be edited or deleted only within ``window_hours`` of creation."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        return now - as_utc(self.created_at) <= timedelta(hours=window_hours)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "user_id": str(self.user_id),
            "rating": float(self.rating),
            "comment": self.comment,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
