"""
Tests for repository classes.
Tests database operations, search, overlap queries and rating aggregation.
"""

import pytest
import uuid
from decimal import Decimal

from estate_api.models.user import UserRole
from estate_api.models.property import PropertyType, PropertyStatus
from estate_api.models.reservation import ReservationStatus, utc_today
from estate_api.repositories.property import PropertySearchFilters
from estate_api.repositories.reservation import ReservationSearchFilters
from estate_api.repositories.favorite import FavoriteRepository
from tests.conftest import (
    UserFactory,
    PropertyFactory,
    ReservationFactory,
    ReviewFactory,
    future
)


class TestUserRepository:

    @pytest.mark.asyncio
    async def test_create_user_hashes_password_and_defaults_role(self, user_repository):
        user = await user_repository.create_user({
            "email": "New.Guest@Example.com",
            "password": "strongpass1",
            "full_name": "New Guest"
        })

        assert user.email == "new.guest@example.com"
        assert user.role == UserRole.USER
        assert user.is_active is True
        assert user.verify_password("strongpass1")

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, user_repository, test_user):
        with pytest.raises(ValueError, match="already exists"):
            await UserFactory.create_user(user_repository, email="GUEST@test.com")

    @pytest.mark.asyncio
    async def test_authenticate_user(self, user_repository, test_user):
        assert (await user_repository.authenticate_user("guest@test.com", "testpassword123")).id == test_user.id
        assert await user_repository.authenticate_user("guest@test.com", "wrongpassword") is None
        assert await user_repository.authenticate_user("nobody@test.com", "testpassword123") is None

    @pytest.mark.asyncio
    async def test_check_email_availability(self, user_repository, test_user):
        assert not await user_repository.check_email_availability("guest@test.com")
        assert await user_repository.check_email_availability("guest@test.com", exclude_user_id=test_user.id)
        assert await user_repository.check_email_availability("free@test.com")


class TestPropertyRepository:

    @pytest.mark.asyncio
    async def test_create_property_validates(self, property_repository, test_agent):
        with pytest.raises(ValueError):
            await PropertyFactory.create_property(property_repository, owner_id=test_agent.id, price=Decimal("0"))

    @pytest.mark.asyncio
    async def test_search_filters(self, property_repository, test_agent):
        await PropertyFactory.create_property(
            property_repository, owner_id=test_agent.id, title="Cheap Studio",
            price=Decimal("50.00"), bedrooms=1, city="Miami"
        )
        await PropertyFactory.create_property(
            property_repository, owner_id=test_agent.id, title="Family Villa",
            price=Decimal("400.00"), bedrooms=4, city="Orlando", property_type=PropertyType.VILLA
        )
        await PropertyFactory.create_property(
            property_repository, owner_id=test_agent.id, title="Sold House",
            price=Decimal("200.00"), bedrooms=3, city="Miami", status=PropertyStatus.SOLD
        )

        results, total = await property_repository.search_properties(PropertySearchFilters(city="miami"))
        assert total == 2

        results, total = await property_repository.search_properties(
            PropertySearchFilters(min_price=Decimal("100"), max_price=Decimal("300"))
        )
        assert [p.title for p in results] == ["Sold House"]

        results, total = await property_repository.search_properties(PropertySearchFilters(bedrooms=3))
        assert {p.title for p in results} == {"Family Villa", "Sold House"}

        results, total = await property_repository.search_properties(
            PropertySearchFilters(property_type=PropertyType.VILLA)
        )
        assert total == 1

        results, total = await property_repository.search_properties(PropertySearchFilters(search="studio"))
        assert [p.title for p in results] == ["Cheap Studio"]

    @pytest.mark.asyncio
    async def test_search_sorting_and_pagination(self, property_repository, test_agent):
        for price in ("300.00", "100.00", "200.00"):
            await PropertyFactory.create_property(
                property_repository, owner_id=test_agent.id, title=f"Flat {price}", price=Decimal(price)
            )

        results, total = await property_repository.search_properties(
            PropertySearchFilters(), skip=0, limit=2, order_by="price", order_direction="asc"
        )

        assert total == 3
        assert [p.price for p in results] == [Decimal("100.00"), Decimal("200.00")]

    @pytest.mark.asyncio
    async def test_soft_deleted_properties_are_hidden(self, property_repository, test_property):
        property_id = test_property.id
        await property_repository.soft_delete(test_property)

        assert await property_repository.get_by_id(property_id) is None
        assert await property_repository.get_by_id(property_id, include_deleted=True) is not None
        results, total = await property_repository.search_properties(PropertySearchFilters())
        assert total == 0

    @pytest.mark.asyncio
    async def test_lock_for_booking(self, property_repository, test_property):
        locked = await property_repository.lock_for_booking(test_property.id)

        assert locked is not None
        assert locked.id == test_property.id
        assert await property_repository.lock_for_booking(uuid.uuid4()) is None
        await property_repository.db.rollback()

    @pytest.mark.asyncio
    async def test_lock_for_booking_skips_deleted_unless_asked(self, property_repository, test_property):
        property_id = test_property.id
        await property_repository.soft_delete(test_property)

        assert await property_repository.lock_for_booking(property_id) is None
        assert await property_repository.lock_for_booking(property_id, include_deleted=True) is not None
        await property_repository.db.rollback()

    @pytest.mark.asyncio
    async def test_has_active_reservations(
        self, property_repository, reservation_repository, test_property, test_user
    ):
        assert not await property_repository.has_active_reservations(test_property.id, utc_today())

        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(5), future(8),
            status=ReservationStatus.CANCELLED
        )
        assert not await property_repository.has_active_reservations(test_property.id, utc_today())

        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(5), future(8),
            status=ReservationStatus.CONFIRMED
        )
        assert await property_repository.has_active_reservations(test_property.id, utc_today())

    @pytest.mark.asyncio
    async def test_refresh_rating(self, property_repository, review_repository, user_repository, test_property):
        first = await UserFactory.create_user(user_repository)
        second = await UserFactory.create_user(user_repository)
        await ReviewFactory.create_review(review_repository, test_property.id, first.id, rating=Decimal("4.0"))
        review = await ReviewFactory.create_review(
            review_repository, test_property.id, second.id, rating=Decimal("5.0")
        )

        updated = await property_repository.refresh_rating(test_property.id)
        assert updated.rating == Decimal("4.5")
        assert updated.reviews_count == 2

        await review_repository.soft_delete(review)
        updated = await property_repository.refresh_rating(test_property.id)
        assert updated.rating == Decimal("4.0")
        assert updated.reviews_count == 1

    @pytest.mark.asyncio
    async def test_featured_properties(self, property_repository, test_agent):
        await PropertyFactory.create_property(property_repository, owner_id=test_agent.id, is_featured=True)
        await PropertyFactory.create_property(property_repository, owner_id=test_agent.id)
        await PropertyFactory.create_property(
            property_repository, owner_id=test_agent.id, is_featured=True, status=PropertyStatus.RENTED
        )

        featured = await property_repository.get_featured_properties()

        assert len(featured) == 1


class TestReservationRepository:

    @pytest.mark.asyncio
    async def test_has_overlap(self, reservation_repository, test_property, test_user):
        booked = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(10), future(15)
        )
        property_id = test_property.id

        assert await reservation_repository.has_overlap(property_id, future(12), future(15))
        assert await reservation_repository.has_overlap(property_id, future(14), future(16))
        assert not await reservation_repository.has_overlap(property_id, future(15), future(18))
        assert not await reservation_repository.has_overlap(property_id, future(8), future(10))
        assert not await reservation_repository.has_overlap(
            property_id, future(12), future(13), exclude_reservation_id=booked.id
        )

    @pytest.mark.asyncio
    async def test_search_visible_to_user(self, reservation_repository, test_property, test_user, other_user):
        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(10), future(12)
        )
        await ReservationFactory.create_reservation(
            reservation_repository, test_property, other_user.id, future(20), future(22),
            status=ReservationStatus.CONFIRMED
        )

        mine, total = await reservation_repository.search_reservations(
            ReservationSearchFilters(), visible_to_user_id=test_user.id
        )
        assert total == 1
        assert mine[0].user_id == test_user.id

        confirmed, total = await reservation_repository.search_reservations(
            ReservationSearchFilters(status=ReservationStatus.CONFIRMED)
        )
        assert total == 1
        assert confirmed[0].user_id == other_user.id

    @pytest.mark.asyncio
    async def test_has_completed_stay(self, reservation_repository, test_property, test_user):
        assert not await reservation_repository.has_completed_stay(test_user.id, test_property.id)

        await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(-10), future(-7),
            status=ReservationStatus.COMPLETED
        )

        assert await reservation_repository.has_completed_stay(test_user.id, test_property.id)

    @pytest.mark.asyncio
    async def test_complete_finished(self, reservation_repository, test_property, test_user):
        finished = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(-10), future(-7),
            status=ReservationStatus.CONFIRMED
        )
        upcoming = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(5), future(7),
            status=ReservationStatus.CONFIRMED
        )
        pending_past = await ReservationFactory.create_reservation(
            reservation_repository, test_property, test_user.id, future(-20), future(-18)
        )

        completed = await reservation_repository.complete_finished(utc_today())

        assert completed == 1
        assert (await reservation_repository.get_fresh(finished.id)).status == ReservationStatus.COMPLETED
        assert (await reservation_repository.get_fresh(upcoming.id)).status == ReservationStatus.CONFIRMED
        assert (await reservation_repository.get_fresh(pending_past.id)).status == ReservationStatus.PENDING


class TestFavoriteRepository:

    @pytest.mark.asyncio
    async def test_favorites_exclude_deleted_properties(
        self, db_session, property_repository, test_property, test_agent, test_user
    ):
        favorite_repo = FavoriteRepository(db_session)
        other = await PropertyFactory.create_property(property_repository, owner_id=test_agent.id, title="Gone Flat")
        await favorite_repo.create({"user_id": test_user.id, "property_id": test_property.id})
        await favorite_repo.create({"user_id": test_user.id, "property_id": other.id})
        await property_repository.soft_delete(other)

        properties, total = await favorite_repo.get_favorite_properties(test_user.id)

        assert total == 1
        assert properties[0].id == test_property.id

    @pytest.mark.asyncio
    async def test_remove_favorite(self, db_session, test_property, test_user):
        favorite_repo = FavoriteRepository(db_session)
        await favorite_repo.create({"user_id": test_user.id, "property_id": test_property.id})

        assert await favorite_repo.remove_favorite(test_user.id, test_property.id) is True
        assert await favorite_repo.remove_favorite(test_user.id, test_property.id) is False
