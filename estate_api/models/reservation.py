"""
Reservation model and lifecycle rules.
A reservation occupies the half-open night range [check_in_date, check_out_date).
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Date, Enum as SQLEnum, ForeignKey, Index, Uuid,
    CheckConstraint, DDL, event, func, text
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estate_api.database import Base, SoftDeleteMixin
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from estate_api.models.property import Property
    from estate_api.models.user import User


def utc_today() -> date:
    """Current calendar date in UTC, the reference day for check-in rules."""
    return datetime.now(timezone.utc).date()


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        """Check whether moving from this status to ``target`` is allowed."""
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}

# Statuses that hold dates on the calendar
BLOCKING_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.COMPLETED,
)


class Reservation(SoftDeleteMixin, Base):
    """
    Reservation of a property by a user for a range of nights.
    Cancelled and soft-deleted reservations release their dates.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_reservations_date_order"),
        CheckConstraint("guests >= 1", name="ck_reservations_guests_positive"),
        CheckConstraint("total_price >= 0", name="ck_reservations_total_price_non_negative"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the reserved property"
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the guest who made the reservation"
    )

    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)

    guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    special_requests: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status: Mapped[ReservationStatus] = mapped_column(
        SQLEnum(ReservationStatus, values_callable=lambda e: [member.value for member in e]),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True
    )

    total_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Nightly price multiplied by the number of nights"
    )

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property_rel: Mapped["Property"] = relationship("Property", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, property_id={self.property_id}, "
            f"{self.check_in_date}..{self.check_out_date}, status={self.status})>"
        )

    @property
    def nights(self) -> int:
        """Number of nights covered by the reservation."""
        return (self.check_out_date - self.check_in_date).days

    def can_be_cancelled(self, now: Optional[datetime] = None, lead_hours: int = 24) -> bool:
        """
        Check whether the reservation may still be cancelled.

        Pending reservations can always be cancelled. Confirmed ones only while
        check-in (start of day, UTC) is more than ``lead_hours`` away.

        Args:
            now: Reference time, defaults to the current UTC time
            lead_hours: Minimum notice required for confirmed reservations

        Returns:
            True if cancellation is allowed
        """
        if self.status == ReservationStatus.PENDING:
            return True

        if self.status != ReservationStatus.CONFIRMED:
            return False

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        check_in_start = datetime.combine(self.check_in_date, time.min, tzinfo=timezone.utc)
        return check_in_start - now > timedelta(hours=lead_hours)

    def to_dict(self) -> dict:
        """Convert reservation to dictionary."""
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "user_id": str(self.user_id),
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "nights": self.nights,
            "guests": self.guests,
            "special_requests": self.special_requests,
            "status": self.status.value,
            "total_price": float(self.total_price),
            "cancellation_reason": self.cancellation_reason,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


# Availability lookups scan one property's reservations by date
property_dates_index = Index(
    'idx_reservations_property_dates',
    Reservation.property_id,
    Reservation.check_in_date,
    Reservation.check_out_date
)

user_status_index = Index(
    'idx_reservations_user_status',
    Reservation.user_id,
    Reservation.status,
    Reservation.created_at.desc()
)

# PostgreSQL refuses overlapping live reservations for the same property
Reservation.__table__.append_constraint(
    ExcludeConstraint(
        (Reservation.__table__.c.property_id, "="),
        (
            func.daterange(
                Reservation.__table__.c.check_in_date,
                Reservation.__table__.c.check_out_date,
                text("'[)'"),
            ),
            "&&",
        ),
        where=text("status <> 'cancelled' AND deleted_at IS NULL"),
        using="gist",
        name="ex_reservations_no_overlap",
    ).ddl_if(dialect="postgresql")
)

event.listen(
    Reservation.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
