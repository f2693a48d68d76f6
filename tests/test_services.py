"""
Tests for service classes.
Tests business logic, authorization, the reservation lifecycle and reviews.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from estate_api.models.user import UserRole
from estate_api.models.property import PropertyType, PropertyStatus
from estate_api.models.reservation import ReservationStatus, utc_today
from estate_api.schemas.user import UserCreate, UserUpdate, PasswordChangeRequest
from estate_api.schemas.property import PropertyCreate, PropertyUpdate
from estate_api.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationSearchParams
)
from estate_api.schemas.review import ReviewCreate, ReviewUpdate
from estate_api.utils.auth import create_access_token, create_refresh_token
from estate_api.utils.exceptions import (
    BusinessRuleViolationError,
    DuplicateResourceError,
    ForbiddenError,
    InactiveUserError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    PropertyNotAvailableError,
    PropertyNotFoundError,
    ReservationStateError,
    ValidationError
)
from tests.conftest import (
    DEFAULT_PASSWORD,
    UserFactory,
    ReservationFactory,
    ReviewFactory,
    future
)


def booking(property_id, check_in_days: int, check_out_days: int, guests: int = 2) -> ReservationCreate:
    return ReservationCreate(
        property_id=property_id,
        check_in_date=future(check_in_days),
        check_out_date=future(check_out_days),
        guests=guests
    )


class TestAuthService:

    @pytest.mark.asyncio
    async def test_register(self, auth_service):
        user = await auth_service.register(UserCreate(
            email="newbie@test.com",
            full_name="New Guest",
            password="password123"
        ))

        assert user.role == UserRole.USER
        assert user.verify_password("password123")

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service, test_user):
        with pytest.raises(DuplicateResourceError):
            await auth_service.register(UserCreate(
                email="guest@test.com",
                full_name="Copy Cat",
                password="password123"
            ))

    @pytest.mark.asyncio
    async def test_authenticate_user(self, auth_service, test_user):
        user = await auth_service.authenticate_user("guest@test.com", DEFAULT_PASSWORD)

        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(self, auth_service, test_user):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.authenticate_user("guest@test.com", "wrongpassword")

    @pytest.mark.asyncio
    async def test_authenticate_inactive_user(self, auth_service, test_inactive_user):
        with pytest.raises(InactiveUserError):
            await auth_service.authenticate_user("inactive@test.com", DEFAULT_PASSWORD)

    @pytest.mark.asyncio
    async def test_login_and_resolve_token(self, auth_service, test_user):
        user, access_token, refresh_token = await auth_service.login("guest@test.com", DEFAULT_PASSWORD)

        current = await auth_service.get_current_user(access_token)
        assert current.id == test_user.id

        new_access = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(new_access)).id == test_user.id

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, auth_service, test_user):
        refresh_token = create_refresh_token(test_user.id, test_user.email)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(refresh_token)

    @pytest.mark.asyncio
    async def test_expired_token(self, auth_service, test_user):
        token = create_access_token(
            test_user.id, test_user.email, test_user.role, expires_delta=timedelta(seconds=-10)
        )

        with pytest.raises(TokenExpiredError):
            await auth_service.get_current_user(token)

    @pytest.mark.asyncio
    async def test_garbage_token(self, auth_service):
        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user("not-a-token")


class TestPropertyService:

    def _create_data(self, **overrides) -> PropertyCreate:
        data = {
            "title": "Sea view villa",
            "description": "Four bedroom villa close to the beach.",
            "price": Decimal("250.00"),
            "address": "12 Coast Road",
            "city": "Miami",
            "state": "FL",
            "zip_code": "33139",
            "bedrooms": 4,
            "bathrooms": 3,
            "property_type": PropertyType.VILLA,
        }
        data.update(overrides)
        return PropertyCreate(**data)

    @pytest.mark.asyncio
    async def test_agent_creates_property(self, property_service, test_agent):
        property_obj = await property_service.create_property(self._create_data(), test_agent)

        assert property_obj.owner_id == test_agent.id
        assert property_obj.status == PropertyStatus.AVAILABLE
        assert property_obj.rating == Decimal("0")

    @pytest.mark.asyncio
    async def test_guest_cannot_create_property(self, property_service, test_user):
        with pytest.raises(InsufficientPermissionsError):
            await property_service.create_property(self._create_data(), test_user)

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_updates(
        self, property_service, user_repository, test_property, test_admin
    ):
        other_agent = await UserFactory.create_user(user_repository, role=UserRole.AGENT)

        with pytest.raises(InsufficientPermissionsError):
            await property_service.update_property(test_property.id, PropertyUpdate(price=Decimal("90")), other_agent)

        updated = await property_service.update_property(
            test_property.id, PropertyUpdate(price=Decimal("90")), test_admin
        )
        assert updated.price == Decimal("90")

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, property_service, test_property, test_agent):
        with pytest.raises(ValidationError):
            await property_service.update_property(test_property.id, PropertyUpdate(), test_agent)

    @pytest.mark.asyncio
    async def test_delete_blocked_by_upcoming_reservations(
        self, property_service, reservation_repository, test_property, test_agent, test_user
    ):
        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(5), future(8),
            status=ReservationStatus.CONFIRMED
        )

        with pytest.raises(BusinessRuleViolationError):
            await property_service.delete_property(test_property.id, test_agent)

    @pytest.mark.asyncio
    async def test_delete_property(self, property_service, test_property, test_agent):
        property_id = test_property.id

        await property_service.delete_property(property_id, test_agent)

        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property(property_id)

    @pytest.mark.asyncio
    async def test_quote_stay(self, property_service, test_property):
        quote = await property_service.quote_stay(test_property.id, future(3), future(6))

        assert quote["available"] is True
        assert quote["total_price"] == Decimal("300.00")


class TestReservationCreation:

    @pytest.mark.asyncio
    async def test_create_reservation_computes_total(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 13), test_user)

        assert reservation.status == ReservationStatus.PENDING
        assert reservation.total_price == Decimal("300.00")
        assert reservation.nights == 3
        assert reservation.user_id == test_user.id

    @pytest.mark.asyncio
    async def test_overlapping_booking_rejected(
        self, db_session, reservation_service, test_property, test_user, other_user
    ):
        property_id = test_property.id
        other_user_id = other_user.id
        await reservation_service.create_reservation(booking(property_id, 10, 15), test_user)

        with pytest.raises(PropertyNotAvailableError):
            await reservation_service.create_reservation(booking(property_id, 12, 14), other_user)

        await db_session.refresh(other_user)
        assert other_user.id == other_user_id

    @pytest.mark.asyncio
    async def test_back_to_back_bookings_allowed(self, reservation_service, test_property, test_user, other_user):
        await reservation_service.create_reservation(booking(test_property.id, 10, 15), test_user)

        second = await reservation_service.create_reservation(booking(test_property.id, 15, 18), other_user)

        assert second.check_in_date == future(15)

    @pytest.mark.asyncio
    async def test_cancelled_dates_can_be_rebooked(
        self, reservation_service, test_property, test_user, other_user
    ):
        first = await reservation_service.create_reservation(booking(test_property.id, 10, 15), test_user)
        await reservation_service.change_status(
            first.id, ReservationStatusUpdate(status=ReservationStatus.CANCELLED), test_user
        )

        second = await reservation_service.create_reservation(booking(test_property.id, 10, 15), other_user)

        assert second.status == ReservationStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_property(self, reservation_service, test_user):
        with pytest.raises(PropertyNotFoundError):
            await reservation_service.create_reservation(booking(uuid.uuid4(), 10, 12), test_user)

    @pytest.mark.asyncio
    async def test_unavailable_listing_cannot_be_booked(
        self, reservation_service, property_repository, test_property, test_user
    ):
        property_id = test_property.id
        await property_repository.update(test_property, {"status": PropertyStatus.SOLD})

        with pytest.raises(PropertyNotAvailableError):
            await reservation_service.create_reservation(booking(property_id, 10, 12), test_user)

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_book(self, reservation_service, test_property, test_inactive_user):
        with pytest.raises(ForbiddenError):
            await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_inactive_user)

    @pytest.mark.asyncio
    async def test_check_in_must_be_after_utc_today(self, reservation_service, test_property, test_user):
        with pytest.raises(PydanticValidationError):
            ReservationCreate(property_id=test_property.id, check_in_date=utc_today(), check_out_date=future(2))

        with pytest.raises(PydanticValidationError):
            ReservationUpdate(check_in_date=utc_today())

        unchecked = ReservationCreate.model_construct(
            property_id=test_property.id,
            check_in_date=utc_today(),
            check_out_date=future(2),
            guests=1,
            special_requests=None
        )
        with pytest.raises(ValidationError):
            await reservation_service.create_reservation(unchecked, test_user)


class TestReservationLifecycle:

    @pytest.mark.asyncio
    async def test_guest_cancels_pending(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        cancelled = await reservation_service.change_status(
            reservation.id,
            ReservationStatusUpdate(status=ReservationStatus.CANCELLED, cancellation_reason="Plans changed"),
            test_user
        )

        assert cancelled.status == ReservationStatus.CANCELLED
        assert cancelled.cancellation_reason == "Plans changed"

    @pytest.mark.asyncio
    async def test_guest_cannot_confirm(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        with pytest.raises(InsufficientPermissionsError):
            await reservation_service.change_status(
                reservation.id, ReservationStatusUpdate(status=ReservationStatus.CONFIRMED), test_user
            )

    @pytest.mark.asyncio
    async def test_owner_confirms_then_completes(self, reservation_service, test_property, test_user, test_agent):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        confirmed = await reservation_service.change_status(
            reservation.id, ReservationStatusUpdate(status=ReservationStatus.CONFIRMED), test_agent
        )
        assert confirmed.status == ReservationStatus.CONFIRMED

        completed = await reservation_service.change_status(
            reservation.id, ReservationStatusUpdate(status=ReservationStatus.COMPLETED), test_agent
        )
        assert completed.status == ReservationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_pending_cannot_jump_to_completed(self, reservation_service, test_property, test_user, test_admin):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        with pytest.raises(ReservationStateError):
            await reservation_service.change_status(
                reservation.id, ReservationStatusUpdate(status=ReservationStatus.COMPLETED), test_admin
            )

    @pytest.mark.asyncio
    async def test_completed_cannot_be_cancelled(
        self, reservation_service, reservation_repository, test_property, test_user
    ):
        reservation = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(-5), future(-2),
            status=ReservationStatus.COMPLETED
        )

        with pytest.raises(ReservationStateError):
            await reservation_service.change_status(
                reservation.id, ReservationStatusUpdate(status=ReservationStatus.CANCELLED), test_user
            )

    @pytest.mark.asyncio
    async def test_confirmed_too_close_to_check_in(
        self, reservation_service, reservation_repository, test_property, test_user
    ):
        reservation = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, utc_today(), future(2),
            status=ReservationStatus.CONFIRMED
        )

        with pytest.raises(ReservationStateError, match="hours before check-in"):
            await reservation_service.change_status(
                reservation.id, ReservationStatusUpdate(status=ReservationStatus.CANCELLED), test_user
            )

    @pytest.mark.asyncio
    async def test_confirmed_far_ahead_can_be_cancelled(
        self, reservation_service, reservation_repository, test_property, test_user
    ):
        reservation = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(10), future(12),
            status=ReservationStatus.CONFIRMED
        )

        cancelled = await reservation_service.change_status(
            reservation.id, ReservationStatusUpdate(status=ReservationStatus.CANCELLED), test_user
        )

        assert cancelled.status == ReservationStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_stranger_cannot_touch_reservation(
        self, reservation_service, test_property, test_user, other_user
    ):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        with pytest.raises(InsufficientPermissionsError):
            await reservation_service.get_reservation(reservation.id, other_user)
        with pytest.raises(InsufficientPermissionsError):
            await reservation_service.change_status(
                reservation.id, ReservationStatusUpdate(status=ReservationStatus.CANCELLED), other_user
            )

    @pytest.mark.asyncio
    async def test_owner_can_view_reservation(self, reservation_service, test_property, test_user, test_agent):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        viewed = await reservation_service.get_reservation(reservation.id, test_agent)

        assert viewed.id == reservation.id

    @pytest.mark.asyncio
    async def test_list_reservations_scoped_to_user(
        self, reservation_service, test_property, test_user, other_user, test_admin
    ):
        await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)
        await reservation_service.create_reservation(booking(test_property.id, 20, 22), other_user)

        mine, total = await reservation_service.list_reservations(ReservationSearchParams(), test_user)
        assert total == 1
        assert mine[0].user_id == test_user.id

        everything, total = await reservation_service.list_reservations(ReservationSearchParams(), test_admin)
        assert total == 2

    @pytest.mark.asyncio
    async def test_owner_lists_bookings_of_their_property(
        self, reservation_service, test_property, test_user, test_agent
    ):
        await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        listed, total = await reservation_service.list_reservations(ReservationSearchParams(), test_agent)

        assert total == 1
        assert listed[0].property_id == test_property.id

    @pytest.mark.asyncio
    async def test_complete_finished_requires_admin(self, reservation_service, test_user):
        with pytest.raises(InsufficientPermissionsError):
            await reservation_service.complete_finished_reservations(utc_today(), test_user)

    @pytest.mark.asyncio
    async def test_complete_finished(
        self, reservation_service, reservation_repository, test_property, test_user, test_admin
    ):
        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(-5), future(-2),
            status=ReservationStatus.CONFIRMED
        )

        assert await reservation_service.complete_finished_reservations(None, test_admin) == 1


class TestReservationUpdate:

    @pytest.mark.asyncio
    async def test_move_dates_recomputes_price(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        moved = await reservation_service.update_reservation(
            reservation.id,
            ReservationUpdate(check_in_date=future(11), check_out_date=future(16)),
            test_user
        )

        assert moved.check_in_date == future(11)
        assert moved.total_price == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_move_into_other_booking_rejected(
        self, db_session, reservation_service, test_property, test_user, other_user
    ):
        property_id = test_property.id
        await reservation_service.create_reservation(booking(property_id, 20, 25), other_user)
        reservation = await reservation_service.create_reservation(booking(property_id, 10, 12), test_user)
        reservation_id = reservation.id

        with pytest.raises(PropertyNotAvailableError):
            await reservation_service.update_reservation(
                reservation_id,
                ReservationUpdate(check_in_date=future(18), check_out_date=future(21)),
                test_user
            )

        await db_session.refresh(reservation)
        assert reservation.check_in_date == future(10)
        assert reservation.total_price == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_details_only_update(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        updated = await reservation_service.update_reservation(
            reservation.id, ReservationUpdate(guests=4, special_requests="Late arrival"), test_user
        )

        assert updated.guests == 4
        assert updated.total_price == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_extend_by_check_out_only(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        extended = await reservation_service.update_reservation(
            reservation.id, ReservationUpdate(check_out_date=future(14)), test_user
        )

        assert extended.check_in_date == future(10)
        assert extended.check_out_date == future(14)
        assert extended.total_price == Decimal("400.00")

    @pytest.mark.asyncio
    async def test_move_check_in_only(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        shortened = await reservation_service.update_reservation(
            reservation.id, ReservationUpdate(check_in_date=future(11)), test_user
        )

        assert shortened.check_in_date == future(11)
        assert shortened.check_out_date == future(12)
        assert shortened.total_price == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_single_date_change_checks_merged_range(
        self, db_session, reservation_service, test_property, test_user, other_user
    ):
        property_id = test_property.id
        await reservation_service.create_reservation(booking(property_id, 13, 16), other_user)
        reservation = await reservation_service.create_reservation(booking(property_id, 10, 12), test_user)
        reservation_id = reservation.id

        with pytest.raises(ValidationError):
            await reservation_service.update_reservation(
                reservation_id, ReservationUpdate(check_out_date=future(10)), test_user
            )

        with pytest.raises(PropertyNotAvailableError):
            await reservation_service.update_reservation(
                reservation_id, ReservationUpdate(check_out_date=future(14)), test_user
            )

        await db_session.refresh(reservation)
        assert reservation.check_out_date == future(12)
        assert reservation.total_price == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_special_requests_can_be_cleared(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(
            ReservationCreate(
                property_id=test_property.id,
                check_in_date=future(10),
                check_out_date=future(12),
                special_requests="Late arrival"
            ),
            test_user
        )

        updated = await reservation_service.update_reservation(
            reservation.id, ReservationUpdate(special_requests=None), test_user
        )

        assert updated.special_requests is None
        assert updated.check_in_date == future(10)

    @pytest.mark.asyncio
    async def test_null_guests_is_not_a_change(self, reservation_service, test_property, test_user):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        with pytest.raises(ValidationError, match="No valid fields"):
            await reservation_service.update_reservation(
                reservation.id, ReservationUpdate(guests=None), test_user
            )

    @pytest.mark.asyncio
    async def test_confirmed_reservation_cannot_be_edited(
        self, reservation_service, reservation_repository, test_property, test_user
    ):
        reservation = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(10), future(12),
            status=ReservationStatus.CONFIRMED
        )

        with pytest.raises(ReservationStateError):
            await reservation_service.update_reservation(reservation.id, ReservationUpdate(guests=3), test_user)

    @pytest.mark.asyncio
    async def test_delete_pending_releases_dates(
        self, reservation_service, test_property, test_user, other_user
    ):
        reservation = await reservation_service.create_reservation(booking(test_property.id, 10, 12), test_user)

        await reservation_service.delete_reservation(reservation.id, test_user)

        rebooked = await reservation_service.create_reservation(booking(test_property.id, 10, 12), other_user)
        assert rebooked.status == ReservationStatus.PENDING


class TestReviewService:

    async def _completed_stay(self, reservation_repository, property_obj, user):
        return await ReservationFactory.create_reservation(
            reservation_repository, property_obj, user.id, future(-10), future(-7),
            status=ReservationStatus.COMPLETED
        )

    @pytest.mark.asyncio
    async def test_review_requires_completed_stay(self, review_service, test_property, test_user):
        with pytest.raises(ValidationError, match="completed a stay"):
            await review_service.create_review(
                ReviewCreate(property_id=test_property.id, rating=Decimal("5"), comment="Fantastic place to stay"),
                test_user
            )

    @pytest.mark.asyncio
    async def test_review_updates_property_rating(
        self, db_session, review_service, reservation_repository, test_property, test_user
    ):
        await self._completed_stay(reservation_repository, test_property, test_user)

        review = await review_service.create_review(
            ReviewCreate(property_id=test_property.id, rating=Decimal("4.5"), comment="Fantastic place to stay"),
            test_user
        )

        await db_session.refresh(test_property)
        assert review.is_verified is False
        assert test_property.rating == Decimal("4.5")
        assert test_property.reviews_count == 1

    @pytest.mark.asyncio
    async def test_one_review_per_property(
        self, review_service, reservation_repository, test_property, test_user
    ):
        await self._completed_stay(reservation_repository, test_property, test_user)
        data = ReviewCreate(property_id=test_property.id, rating=Decimal("4"), comment="Fantastic place to stay")
        await review_service.create_review(data, test_user)

        with pytest.raises(ValidationError, match="already reviewed"):
            await review_service.create_review(data, test_user)

    @pytest.mark.asyncio
    async def test_deleted_review_can_be_written_again(
        self, db_session, review_service, reservation_repository, test_property, test_user
    ):
        await self._completed_stay(reservation_repository, test_property, test_user)
        first = await review_service.create_review(
            ReviewCreate(property_id=test_property.id, rating=Decimal("2"), comment="Noisy street at night"),
            test_user
        )
        await review_service.delete_review(first.id, test_user)

        second = await review_service.create_review(
            ReviewCreate(property_id=test_property.id, rating=Decimal("4"), comment="Better the second time"),
            test_user
        )

        await db_session.refresh(test_property)
        assert second.rating == Decimal("4")
        assert test_property.reviews_count == 1

    @pytest.mark.asyncio
    async def test_only_author_updates_within_window(
        self, db_session, review_service, review_repository, test_property, test_user, other_user
    ):
        review = await ReviewFactory.create_review(review_repository, test_property.id, test_user.id)

        with pytest.raises(InsufficientPermissionsError):
            await review_service.update_review(review.id, ReviewUpdate(rating=Decimal("3")), other_user)

        updated = await review_service.update_review(review.id, ReviewUpdate(rating=Decimal("3")), test_user)
        assert updated.rating == Decimal("3")

        await review_repository.update(review, {"created_at": datetime.now(timezone.utc) - timedelta(hours=48)})
        with pytest.raises(ValidationError, match="within 24 hours"):
            await review_service.update_review(review.id, ReviewUpdate(rating=Decimal("1")), test_user)

    @pytest.mark.asyncio
    async def test_verify_review_requires_admin(
        self, review_service, review_repository, test_property, test_user, test_admin
    ):
        review = await ReviewFactory.create_review(review_repository, test_property.id, test_user.id)

        with pytest.raises(InsufficientPermissionsError):
            await review_service.verify_review(review.id, test_user)

        verified = await review_service.verify_review(review.id, test_admin)
        assert verified.is_verified is True


class TestUserService:

    @pytest.mark.asyncio
    async def test_update_profile(self, user_service, test_user):
        updated = await user_service.update_profile(UserUpdate(full_name="Renamed Guest", city="Tampa"), test_user)

        assert updated.full_name == "Renamed Guest"
        assert updated.city == "Tampa"

    @pytest.mark.asyncio
    async def test_update_profile_email_taken(self, user_service, test_user, other_user):
        with pytest.raises(DuplicateResourceError):
            await user_service.update_profile(UserUpdate(email="other@test.com"), test_user)

    @pytest.mark.asyncio
    async def test_change_password(self, user_service, auth_service, test_user):
        await user_service.change_password(PasswordChangeRequest(
            current_password=DEFAULT_PASSWORD,
            new_password="newpassword456",
            confirm_password="newpassword456"
        ), test_user)

        user = await auth_service.authenticate_user("guest@test.com", "newpassword456")
        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, user_service, test_user):
        with pytest.raises(InvalidCredentialsError):
            await user_service.change_password(PasswordChangeRequest(
                current_password="notmypassword1",
                new_password="newpassword456",
                confirm_password="newpassword456"
            ), test_user)

    @pytest.mark.asyncio
    async def test_favorites(self, user_service, test_property, test_user):
        await user_service.add_favorite(test_property.id, test_user)

        with pytest.raises(ValidationError, match="already in favorites"):
            await user_service.add_favorite(test_property.id, test_user)

        properties, total = await user_service.list_favorites(test_user)
        assert total == 1
        assert properties[0].id == test_property.id

        await user_service.remove_favorite(test_property.id, test_user)
        with pytest.raises(ValidationError, match="not in favorites"):
            await user_service.remove_favorite(test_property.id, test_user)
