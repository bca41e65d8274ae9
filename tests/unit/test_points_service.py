"""Unit tests for PointsApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sl_common.errors import AccountClosedError
from src.sl_common.pagination import cursor_decode, cursor_encode
from src.sl_points.application.service import PointsApplicationService
from src.sl_points.domain.models import Balance, PointEntry


def _make_entry(entry_id: int, amount: int = 30) -> PointEntry:
    return PointEntry(
        id=entry_id,
        user_id="user-1",
        entry_type="BOOKING_CREDIT",
        amount=amount,
        balance_after=100 + amount,
        booking_id=entry_id,
        created_at=datetime.now(UTC),
    )


def _make_db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestGetBalance:
    async def test_existing_balance(self) -> None:
        repo = AsyncMock()
        repo.get_balance.return_value = Balance(user_id="user-1", points=42)
        db = _make_db()

        result = await PointsApplicationService(repo=repo).get_balance(db, "user-1")

        assert result.points == 42
        repo.open_balance.assert_not_called()
        db.commit.assert_awaited_once()

    async def test_first_access_opens_with_signup_grant(self) -> None:
        repo = AsyncMock()
        repo.get_balance.return_value = None
        repo.open_balance.return_value = Balance(user_id="user-1", points=100)
        db = _make_db()

        result = await PointsApplicationService(repo=repo).get_balance(db, "user-1")

        assert result.points == 100
        repo.open_balance.assert_awaited_once_with(db, "user-1", 100)

    async def test_purged_account_is_refused(self) -> None:
        repo = AsyncMock()
        repo.get_balance.return_value = None
        repo.open_balance.side_effect = AccountClosedError()
        db = _make_db()

        with pytest.raises(AccountClosedError):
            await PointsApplicationService(repo=repo).get_balance(db, "user-1")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_called()

    async def test_rolls_back_on_failure(self) -> None:
        repo = AsyncMock()
        repo.get_balance.side_effect = RuntimeError("db down")
        db = _make_db()

        with pytest.raises(RuntimeError):
            await PointsApplicationService(repo=repo).get_balance(db, "user-1")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_called()


class TestListEntries:
    async def test_has_more_and_cursor(self) -> None:
        repo = AsyncMock()
        repo.list_entries.return_value = [_make_entry(i) for i in (5, 4, 3)]

        page = await PointsApplicationService(repo=repo).list_entries(
            MagicMock(), "user-1", None, 2, None
        )

        assert [item.id for item in page.items] == [5, 4]
        assert page.has_more is True
        assert cursor_decode(page.next_cursor) == 4
        repo.list_entries.assert_awaited_once()
        assert repo.list_entries.call_args[0][3] == 3  # limit + 1

    async def test_last_page(self) -> None:
        repo = AsyncMock()
        repo.list_entries.return_value = [_make_entry(2)]

        page = await PointsApplicationService(repo=repo).list_entries(
            MagicMock(), "user-1", cursor_encode(3), 20, "BOOKING_CREDIT"
        )

        assert page.has_more is False
        assert page.next_cursor is None
        assert repo.list_entries.call_args[0][2] == 3


class TestCursor:
    def test_garbage_cursor_means_first_page(self) -> None:
        assert cursor_decode("not-base64!!") is None
        assert cursor_decode(None) is None
