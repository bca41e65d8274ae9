"""PurgeAccount: owned spots retired, held bookings released, balance dropped."""

import logging

import pytest

from src.sl_common.enums import BookingStatus, PointEntryType
from src.sl_common.errors import AccountClosedError
from src.sl_ledger.engine.engine import LedgerEngine
from src.sl_points.application.service import PointsApplicationService
from tests.unit.fakes import (
    FakeBalanceRepository,
    FakeBookingRepository,
    FakeSession,
    FakeSpotRepository,
    FakeStore,
)


def _make_engine(store: FakeStore) -> LedgerEngine:
    return LedgerEngine(
        balances=FakeBalanceRepository(store),
        spots=FakeSpotRepository(store),
        bookings=FakeBookingRepository(store),
        retry_backoff_ms=0,
    )


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_user("alice", 100)
    s.add_user("bob", 100)
    s.add_user("carol", 100)
    s.add_spot("spot-a", owner_id="alice", price=30)
    s.add_spot("spot-c", owner_id="carol", price=20)
    return s


@pytest.fixture
async def booked(store: FakeStore) -> dict[str, int]:
    """bob holds alice's spot, alice holds carol's spot."""
    engine = _make_engine(store)
    db = FakeSession(store)
    on_alice = await engine.reserve(db, "bob", "spot-a")
    on_carol = await engine.reserve(db, "alice", "spot-c")
    return {"on_alice": on_alice.id, "on_carol": on_carol.id}


class TestPurgeAccount:
    async def test_full_purge(self, store, booked) -> None:
        assert store.balances == {"alice": 110, "bob": 70, "carol": 120}

        result = await _make_engine(store).purge_account(FakeSession(store), "alice")

        assert result.user_id == "alice"
        assert result.spots_deleted == 1
        assert result.bookings_refunded == 1
        assert result.bookings_released == 1
        assert result.balance_deleted is True

        assert "spot-a" not in store.spots
        assert store.spots["spot-c"].bookable is True
        assert store.balances == {"bob": 100, "carol": 100}
        assert store.active_bookings() == []
        for booking_id in booked.values():
            assert store.bookings[booking_id].status == BookingStatus.CANCELED.value

    async def test_journal_survives_purge(self, store, booked) -> None:
        await _make_engine(store).purge_account(FakeSession(store), "alice")
        assert any(e.user_id == "alice" for e in store.entries)

    async def test_purge_is_idempotent(self, store, booked) -> None:
        engine = _make_engine(store)
        await engine.purge_account(FakeSession(store), "alice")
        snapshot = (dict(store.balances), len(store.entries), dict(store.spots))

        again = await engine.purge_account(FakeSession(store), "alice")

        assert again.spots_deleted == 0
        assert again.bookings_refunded == 0
        assert again.bookings_released == 0
        assert again.balance_deleted is False
        assert (dict(store.balances), len(store.entries), dict(store.spots)) == snapshot

    async def test_user_with_nothing(self, store) -> None:
        result = await _make_engine(store).purge_account(FakeSession(store), "bob")
        assert (result.spots_deleted, result.bookings_refunded, result.bookings_released) == (
            0, 0, 0,
        )
        assert result.balance_deleted is True
        assert "bob" not in store.balances

    async def test_owner_shortfall_takes_what_is_left(self, store, booked, caplog) -> None:
        store.balances["carol"] = 5
        with caplog.at_level(logging.WARNING, logger="src.sl_ledger.engine.engine"):
            result = await _make_engine(store).purge_account(FakeSession(store), "alice")

        assert result.bookings_released == 1
        assert store.balances["carol"] == 0
        assert "can only return 5 of 20" in caplog.text
        clawbacks = [
            e for e in store.entries
            if e.user_id == "carol" and e.entry_type == PointEntryType.REFUND_DEBIT.value
        ]
        assert [e.amount for e in clawbacks] == [-5]

    async def test_booker_without_balance_is_skipped(self, store, booked) -> None:
        del store.balances["bob"]
        result = await _make_engine(store).purge_account(FakeSession(store), "alice")
        assert result.bookings_refunded == 1
        assert "bob" not in store.balances
        assert store.bookings[booked["on_alice"]].status == BookingStatus.CANCELED.value

    async def test_resumes_after_partial_run(self, store, booked) -> None:
        engine = _make_engine(store)
        # First run got as far as retiring alice's spot before crashing
        await engine.withdraw_spot(FakeSession(store), "spot-a", "alice")

        result = await engine.purge_account(FakeSession(store), "alice")

        assert result.spots_deleted == 0
        assert result.bookings_released == 1
        assert result.balance_deleted is True
        assert store.active_bookings() == []

    async def test_purged_account_gets_no_second_grant(self, store, booked) -> None:
        engine = _make_engine(store)
        await engine.purge_account(FakeSession(store), "alice")
        total = store.total_points()

        points = PointsApplicationService(repo=FakeBalanceRepository(store))
        with pytest.raises(AccountClosedError):
            await points.get_balance(FakeSession(store), "alice")
        with pytest.raises(AccountClosedError):
            await engine.reserve(FakeSession(store), "alice", "spot-c")

        assert "alice" not in store.balances
        assert store.total_points() == total
