# tests/unit/test_points_persistence.py
"""Unit tests for BalanceRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sl_common.errors import (
    AccountClosedError,
    BalanceNotFoundError,
    InsufficientPointsError,
)
from src.sl_points.infrastructure.persistence import BalanceRepository


def _make_balance_row(user_id: str = "user-1", points: int = 100):
    row = MagicMock()
    row.user_id = user_id
    row.points = points
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _make_entry_row(entry_id: int = 1, amount: int = 100, balance_after: int = 100):
    row = MagicMock()
    row.id = entry_id
    row.user_id = "user-1"
    row.entry_type = "GRANT"
    row.amount = amount
    row.balance_after = balance_after
    row.booking_id = None
    row.created_at = datetime.now(UTC)
    return row


def _result(row=None, rows=None):
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestGetBalance:
    async def test_found(self, db):
        db.execute = AsyncMock(return_value=_result(_make_balance_row(points=42)))
        balance = await BalanceRepository().get_balance(db, "user-1")
        assert balance is not None
        assert balance.points == 42

    async def test_missing(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        assert await BalanceRepository().get_balance(db, "user-1") is None

    async def test_for_update_uses_locking_select(self, db):
        db.execute = AsyncMock(return_value=_result(_make_balance_row()))
        await BalanceRepository().get_balance(db, "user-1", for_update=True)
        sql = str(db.execute.call_args[0][0])
        assert "FOR UPDATE" in sql


class TestOpenBalance:
    async def test_new_balance_gets_grant_entry(self, db):
        db.execute = AsyncMock(
            side_effect=[_result(_make_balance_row(points=100)), _result(_make_entry_row())]
        )
        balance = await BalanceRepository().open_balance(db, "user-1", 100)

        assert balance.points == 100
        assert db.execute.call_count == 2
        entry_params = db.execute.call_args_list[1][0][1]
        assert entry_params["entry_type"] == "GRANT"
        assert entry_params["amount"] == 100

    async def test_existing_balance_is_not_granted_twice(self, db):
        db.execute = AsyncMock(
            side_effect=[_result(None), _result(_make_balance_row(points=7))]
        )
        balance = await BalanceRepository().open_balance(db, "user-1", 100)

        assert balance.points == 7
        assert db.execute.call_count == 2  # insert + re-read, no journal entry

    async def test_purged_user_is_not_reopened(self, db):
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        with pytest.raises(AccountClosedError):
            await BalanceRepository().open_balance(db, "user-1", 100)

        insert_sql = str(db.execute.call_args_list[0][0][0])
        assert "NOT EXISTS" in insert_sql
        assert "'GRANT'" in insert_sql
        assert db.execute.call_count == 2


class TestCredit:
    async def test_appends_positive_entry(self, db):
        db.execute = AsyncMock(
            side_effect=[_result(_make_balance_row(points=130)), _result(_make_entry_row())]
        )
        balance = await BalanceRepository().credit(db, "user-1", 30, "BOOKING_CREDIT", 5)

        assert balance.points == 130
        entry_params = db.execute.call_args_list[1][0][1]
        assert entry_params == {
            "user_id": "user-1",
            "entry_type": "BOOKING_CREDIT",
            "amount": 30,
            "balance_after": 130,
            "booking_id": 5,
        }

    async def test_missing_balance(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(BalanceNotFoundError):
            await BalanceRepository().credit(db, "ghost", 30, "REFUND_CREDIT", 5)


class TestDebit:
    async def test_appends_negative_entry(self, db):
        db.execute = AsyncMock(
            side_effect=[_result(_make_balance_row(points=70)), _result(_make_entry_row())]
        )
        balance = await BalanceRepository().debit(db, "user-1", 30, "BOOKING_DEBIT", 5)

        assert balance.points == 70
        entry_params = db.execute.call_args_list[1][0][1]
        assert entry_params["amount"] == -30
        assert entry_params["balance_after"] == 70

    async def test_insufficient_points(self, db):
        db.execute = AsyncMock(
            side_effect=[_result(None), _result(_make_balance_row(points=10))]
        )
        with pytest.raises(InsufficientPointsError, match="required 30, available 10"):
            await BalanceRepository().debit(db, "user-1", 30, "BOOKING_DEBIT", 5)

    async def test_missing_balance(self, db):
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        with pytest.raises(BalanceNotFoundError):
            await BalanceRepository().debit(db, "ghost", 30, "BOOKING_DEBIT", 5)


class TestDeleteAndList:
    async def test_delete_reports_whether_a_row_went(self, db):
        db.execute = AsyncMock(return_value=_result(MagicMock()))
        assert await BalanceRepository().delete_balance(db, "user-1") is True
        db.execute = AsyncMock(return_value=_result(None))
        assert await BalanceRepository().delete_balance(db, "user-1") is False

    async def test_list_entries_passes_filters(self, db):
        rows = [_make_entry_row(entry_id=i) for i in (3, 2)]
        db.execute = AsyncMock(return_value=_result(rows=rows))

        entries = await BalanceRepository().list_entries(db, "user-1", 4, 2, "GRANT")

        assert [e.id for e in entries] == [3, 2]
        params = db.execute.call_args[0][1]
        assert params == {"user_id": "user-1", "cursor_id": 4, "entry_type": "GRANT", "limit": 2}
