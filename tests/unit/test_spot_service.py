"""Unit tests for the Spot Directory use cases."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sl_common.errors import (
    AccountClosedError,
    NotAuthorizedError,
    SpotNotFoundError,
    ValidationError,
)
from src.sl_ledger.engine.engine import LedgerEngine
from src.sl_spot.application import service
from src.sl_spot.application.schemas import CreateSpotRequest, UpdateSpotRequest
from src.sl_spot.domain.models import Spot
from tests.unit.fakes import (
    FakeBalanceRepository,
    FakeBookingRepository,
    FakeSession,
    FakeSpotRepository,
    FakeStore,
)


def _make_db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def _make_spot(spot_id: str = "spot-1", lat: float = 37.7749, lng: float = -122.4194) -> Spot:
    return Spot(
        id=spot_id, owner_id="owner", address="1 Main St", price=30,
        latitude=lat, longitude=lng,
    )


class TestCreateSpot:
    async def test_default_description(self) -> None:
        repo = AsyncMock()
        repo.create_spot.side_effect = lambda db, spot: spot
        db = _make_db()
        req = CreateSpotRequest(address="1 Main St", latitude=1.0, longitude=2.0, price=30)

        balances = AsyncMock()

        resp = await service.create_spot(req, "owner", db, repo=repo, balances=balances)

        assert resp.description == "No description provided"
        assert resp.owner_id == "owner"
        assert resp.bookable is True
        balances.open_balance.assert_awaited_once_with(db, "owner", 100)
        db.commit.assert_awaited_once()

    async def test_new_owner_is_bookable_right_away(self) -> None:
        store = FakeStore()
        store.add_user("booker", 100)
        db = FakeSession(store)
        req = CreateSpotRequest(address="9 Elm St", latitude=1.0, longitude=2.0, price=25)

        created = await service.create_spot(
            req, "fresh-owner", db,
            repo=FakeSpotRepository(store), balances=FakeBalanceRepository(store),
        )
        assert store.balances["fresh-owner"] == 100

        engine = LedgerEngine(
            balances=FakeBalanceRepository(store),
            spots=FakeSpotRepository(store),
            bookings=FakeBookingRepository(store),
            retry_backoff_ms=0,
        )
        await engine.reserve(db, "booker", created.id)
        assert store.balances == {"booker": 75, "fresh-owner": 125}

    async def test_purged_owner_cannot_list(self) -> None:
        store = FakeStore()
        store.add_user("gone", 100)
        del store.balances["gone"]
        db = _make_db()
        req = CreateSpotRequest(address="9 Elm St", latitude=1.0, longitude=2.0, price=25)

        with pytest.raises(AccountClosedError):
            await service.create_spot(
                req, "gone", db,
                repo=FakeSpotRepository(store), balances=FakeBalanceRepository(store),
            )
        assert store.spots == {}
        db.rollback.assert_awaited_once()

    def test_price_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            CreateSpotRequest(address="x", latitude=0, longitude=0, price=0)


class TestUpdateSpot:
    async def test_owner_updates_price(self) -> None:
        store = FakeStore()
        store.spots["spot-1"] = _make_spot()
        db = _make_db()

        resp = await service.update_spot(
            "spot-1", UpdateSpotRequest(price=45), "owner", db, repo=FakeSpotRepository(store)
        )

        assert resp.price == 45
        assert store.spots["spot-1"].address == "1 Main St"

    async def test_non_owner_rejected(self) -> None:
        store = FakeStore()
        store.spots["spot-1"] = _make_spot()
        db = _make_db()

        with pytest.raises(NotAuthorizedError):
            await service.update_spot(
                "spot-1", UpdateSpotRequest(price=45), "booker", db,
                repo=FakeSpotRepository(store),
            )
        db.rollback.assert_awaited_once()
        assert store.spots["spot-1"].price == 30

    async def test_missing_spot(self) -> None:
        with pytest.raises(SpotNotFoundError):
            await service.update_spot(
                "nope", UpdateSpotRequest(price=45), "owner", _make_db(),
                repo=FakeSpotRepository(FakeStore()),
            )

    async def test_empty_update(self) -> None:
        with pytest.raises(ValidationError):
            await service.update_spot(
                "spot-1", UpdateSpotRequest(), "owner", _make_db(),
                repo=FakeSpotRepository(FakeStore()),
            )

    def test_coordinates_travel_together(self) -> None:
        with pytest.raises(ValueError):
            UpdateSpotRequest(latitude=1.0)


class TestListNearby:
    async def test_filters_by_distance_and_sorts(self) -> None:
        store = FakeStore()
        # ~0 m, ~550 m and ~5.5 km north of the query point
        store.spots["here"] = _make_spot("here", 37.7749, -122.4194)
        store.spots["near"] = _make_spot("near", 37.7799, -122.4194)
        store.spots["far"] = _make_spot("far", 37.8249, -122.4194)
        store.spots["taken"] = _make_spot("taken", 37.7750, -122.4194)
        store.spots["taken"].bookable = False

        resp = await service.list_nearby(
            37.7749, -122.4194, 1000, MagicMock(), repo=FakeSpotRepository(store)
        )

        assert [s.id for s in resp.spots] == ["here", "near"]
        assert resp.spots[0].distance_m == 0.0
        assert 500 < resp.spots[1].distance_m < 600

    async def test_radius_cap(self) -> None:
        with pytest.raises(ValidationError):
            await service.list_nearby(
                0.0, 0.0, 10_000_000, MagicMock(), repo=FakeSpotRepository(FakeStore())
            )


class TestLists:
    async def test_available_and_owned(self) -> None:
        store = FakeStore()
        store.spots["a"] = _make_spot("a")
        store.spots["b"] = _make_spot("b")
        store.spots["b"].bookable = False
        repo = FakeSpotRepository(store)

        available = await service.list_available(MagicMock(), repo=repo)
        owned = await service.list_owned("owner", MagicMock(), repo=repo)

        assert [s.id for s in available.spots] == ["a"]
        assert {s.id for s in owned.spots} == {"a", "b"}
