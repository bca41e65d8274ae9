"""LedgerEngine — the only writer of point balances, spot availability and booking status.

Every atomic unit runs under three layers of protection:
  1. in-process asyncio locks keyed by `spot:<id>` / `user:<id>`, taken in sorted order;
  2. one DB transaction with SELECT ... FOR UPDATE on the rows it reads;
  3. conditional writes whose 0-row result is treated as a conflict.
Conflicts and store failures are retried up to LEDGER_MAX_RETRIES attempts.
"""
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sl_booking.domain.models import Booking, BookingSnapshot
from src.sl_booking.domain.repository import BookingRepositoryProtocol
from src.sl_booking.infrastructure.persistence import BookingRepository
from src.sl_common.datetime_utils import utc_now
from src.sl_common.enums import PointEntryType
from src.sl_common.errors import (
    AlreadyCanceledError,
    BalanceNotFoundError,
    BookingNotFoundError,
    DuplicateBookingError,
    InsufficientPointsError,
    NotAuthorizedError,
    RefundUnavailableError,
    SelfBookingError,
    SpotNotFoundError,
    SpotUnavailableError,
    TransientStoreError,
)
from src.sl_ledger.domain.models import PurgeResult, WithdrawResult
from src.sl_points.domain.repository import BalanceRepositoryProtocol
from src.sl_points.infrastructure.persistence import BalanceRepository
from src.sl_spot.domain.repository import SpotRepositoryProtocol
from src.sl_spot.infrastructure.persistence import SpotRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _spot_key(spot_id: str) -> str:
    return f"spot:{spot_id}"


def _user_key(user_id: str) -> str:
    return f"user:{user_id}"


class LedgerEngine:
    def __init__(
        self,
        balances: BalanceRepositoryProtocol | None = None,
        spots: SpotRepositoryProtocol | None = None,
        bookings: BookingRepositoryProtocol | None = None,
        max_retries: int | None = None,
        retry_backoff_ms: int | None = None,
    ) -> None:
        self._balances: BalanceRepositoryProtocol = balances or BalanceRepository()
        self._spots: SpotRepositoryProtocol = spots or SpotRepository()
        self._bookings: BookingRepositoryProtocol = bookings or BookingRepository()
        self._max_retries = max(
            1, max_retries if max_retries is not None else settings.LEDGER_MAX_RETRIES
        )
        backoff_ms = (
            retry_backoff_ms if retry_backoff_ms is not None else settings.LEDGER_RETRY_BACKOFF_MS
        )
        self._backoff_s = backoff_ms / 1000
        # A key's lock lives only while someone holds or waits for it
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Concurrency plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _hold(self, *keys: str) -> AsyncIterator[None]:
        ordered = sorted(set(keys))
        for key in ordered:
            self._locks.setdefault(key, asyncio.Lock())
            self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with AsyncExitStack() as stack:
                for key in ordered:
                    await stack.enter_async_context(self._locks[key])
                yield
        finally:
            for key in ordered:
                self._lock_users[key] -= 1
                if self._lock_users[key] == 0:
                    del self._lock_users[key]
                    del self._locks[key]

    async def _with_retries(self, op: str, attempt: Callable[[], Awaitable[T]]) -> T:
        """Run one atomic unit, retrying conflicts. Validation errors pass straight through."""
        last_error: Exception | None = None
        for n in range(1, self._max_retries + 1):
            try:
                return await attempt()
            except TransientStoreError as exc:
                last_error = exc
            except ProgrammingError:
                raise
            except DBAPIError as exc:
                last_error = exc
            logger.warning(
                "%s: transient failure on attempt %d/%d: %s",
                op, n, self._max_retries, last_error,
            )
            if n < self._max_retries and self._backoff_s:
                await asyncio.sleep(self._backoff_s * n)
        raise TransientStoreError(
            f"{op} failed after {self._max_retries} attempts, retry later"
        ) from last_error

    # ------------------------------------------------------------------
    # Reserve
    # ------------------------------------------------------------------

    async def reserve(self, db: AsyncSession, user_id: str, spot_id: str) -> Booking:
        """Book spot_id for user_id, paying the spot's price to its owner."""

        async def attempt() -> Booking:
            async with db.begin():
                peek = await self._spots.get_spot(db, spot_id)
            if peek is None:
                raise SpotNotFoundError(spot_id)
            async with self._hold(
                _spot_key(spot_id), _user_key(user_id), _user_key(peek.owner_id)
            ):
                async with db.begin():
                    return await self._reserve_locked(db, user_id, spot_id, peek.owner_id)

        booking = await self._with_retries("reserve", attempt)
        logger.info(
            "Reserved: booking=%s user=%s spot=%s price=%d owner=%s",
            booking.id, user_id, spot_id, booking.snapshot.price, booking.snapshot.owner_id,
        )
        return booking

    async def _reserve_locked(
        self, db: AsyncSession, user_id: str, spot_id: str, locked_owner_id: str
    ) -> Booking:
        spot = await self._spots.get_spot(db, spot_id, for_update=True)
        if spot is None:
            raise SpotNotFoundError(spot_id)
        if spot.owner_id != locked_owner_id:
            raise TransientStoreError(f"Owner of spot {spot_id} changed while locking")
        if spot.owner_id == user_id:
            raise SelfBookingError()
        if not spot.bookable:
            raise SpotUnavailableError(spot_id)
        if await self._bookings.find_active(db, user_id, spot_id) is not None:
            raise DuplicateBookingError(spot_id)
        # Either side may never have opened a balance; a purged one stays closed
        for party in (user_id, spot.owner_id):
            await self._balances.open_balance(db, party, settings.SIGNUP_GRANT_POINTS)
        balance = await self._balances.get_balance(db, user_id, for_update=True)
        if balance is None:
            raise BalanceNotFoundError(user_id)
        if balance.points < spot.price:
            raise InsufficientPointsError(user_id, spot.price, balance.points)

        if await self._spots.set_bookable(db, spot_id, False, expected=True) is None:
            raise TransientStoreError(f"Spot {spot_id} was taken concurrently")
        booking = await self._bookings.insert(
            db,
            user_id,
            spot_id,
            BookingSnapshot(price=spot.price, owner_id=spot.owner_id, address=spot.address),
            utc_now(),
        )
        await self._balances.debit(
            db, user_id, spot.price, PointEntryType.BOOKING_DEBIT.value, booking.id
        )
        await self._balances.credit(
            db, spot.owner_id, spot.price, PointEntryType.BOOKING_CREDIT.value, booking.id
        )
        return booking

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    async def cancel(self, db: AsyncSession, booking_id: int, user_id: str) -> Booking:
        """Cancel a booking held by user_id and reverse its payment at snapshot terms.

        Only the holder may cancel; the spot owner may not.
        """

        async def attempt() -> Booking:
            async with db.begin():
                peek = await self._bookings.get_by_id(db, booking_id)
            if peek is None:
                raise BookingNotFoundError(booking_id)
            async with self._hold(
                _spot_key(peek.spot_id),
                _user_key(peek.user_id),
                _user_key(peek.snapshot.owner_id),
            ):
                async with db.begin():
                    return await self._cancel_locked(db, booking_id, user_id)

        booking = await self._with_retries("cancel", attempt)
        logger.info(
            "Canceled: booking=%s user=%s spot=%s refund=%d",
            booking.id, user_id, booking.spot_id, booking.snapshot.price,
        )
        return booking

    async def _cancel_locked(
        self, db: AsyncSession, booking_id: int, user_id: str
    ) -> Booking:
        booking = await self._bookings.get_by_id(db, booking_id, for_update=True)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.user_id != user_id:
            raise NotAuthorizedError("You are not authorized to cancel this booking")
        if not booking.is_active:
            raise AlreadyCanceledError(booking_id, booking.status)

        price = booking.snapshot.price
        owner_id = booking.snapshot.owner_id
        owner_balance = await self._balances.get_balance(db, owner_id, for_update=True)
        if owner_balance is not None and owner_balance.points < price:
            raise RefundUnavailableError()

        canceled = await self._bookings.mark_canceled(db, booking_id, utc_now())
        if canceled is None:
            raise TransientStoreError(f"Booking {booking_id} changed concurrently")
        await self._balances.credit(
            db, booking.user_id, price, PointEntryType.REFUND_CREDIT.value, booking_id
        )
        if owner_balance is not None:
            await self._balances.debit(
                db, owner_id, price, PointEntryType.REFUND_DEBIT.value, booking_id
            )
        else:
            logger.warning(
                "Booking %s: owner %s has no balance, refund issued without clawback",
                booking_id, owner_id,
            )
        if await self._spots.set_bookable(db, booking.spot_id, True) is None:
            logger.info(
                "Booking %s: spot %s no longer exists, nothing to release",
                booking_id, booking.spot_id,
            )
        return canceled

    # ------------------------------------------------------------------
    # Spot retirement (owner withdraw + purge step 1)
    # ------------------------------------------------------------------

    async def withdraw_spot(
        self, db: AsyncSession, spot_id: str, user_id: str
    ) -> WithdrawResult:
        """Owner deletes a listed spot. An active booking on it is canceled and
        reversed exactly like a Cancel, then the spot is removed."""
        outcome = await self._with_retries(
            "withdraw_spot",
            partial(self._retire_spot, db, spot_id, user_id, True),
        )
        if outcome is None:
            raise SpotNotFoundError(spot_id)
        logger.info(
            "Spot withdrawn: spot=%s owner=%s refunded=%d", spot_id, user_id, outcome
        )
        return WithdrawResult(spot_id=spot_id, bookings_refunded=outcome)

    async def _retire_spot(
        self, db: AsyncSession, spot_id: str, owner_id: str, claw_back: bool
    ) -> int | None:
        """Refund and cancel the spot's active bookings, then delete it.

        Returns the number of refunded bookings, or None if the spot is already gone.
        """
        async with db.begin():
            peek = await self._spots.get_spot(db, spot_id)
            if peek is None:
                return None
            if peek.owner_id != owner_id:
                raise NotAuthorizedError("You are not authorized to delete this spot")
            bookers = [b.user_id for b in await self._bookings.list_active_for_spot(db, spot_id)]

        locked_users = {owner_id, *bookers}
        async with self._hold(_spot_key(spot_id), *(_user_key(u) for u in locked_users)):
            async with db.begin():
                spot = await self._spots.get_spot(db, spot_id, for_update=True)
                if spot is None:
                    return None
                active = await self._bookings.list_active_for_spot(db, spot_id, for_update=True)
                if any(b.user_id not in locked_users for b in active):
                    raise TransientStoreError(f"Spot {spot_id} was booked while retiring it")
                for booking in active:
                    await self._refund_booker(db, booking, claw_back)
                await self._spots.delete_spot(db, spot_id)
                return len(active)

    async def _refund_booker(
        self, db: AsyncSession, booking: Booking, claw_back: bool
    ) -> None:
        price = booking.snapshot.price
        owner_balance = None
        if claw_back:
            owner_balance = await self._balances.get_balance(
                db, booking.snapshot.owner_id, for_update=True
            )
            if owner_balance is not None and owner_balance.points < price:
                raise InsufficientPointsError(
                    booking.snapshot.owner_id, price, owner_balance.points
                )
        if await self._bookings.mark_canceled(db, booking.id, utc_now()) is None:
            raise TransientStoreError(f"Booking {booking.id} changed concurrently")

        if await self._balances.get_balance(db, booking.user_id, for_update=True) is None:
            logger.warning(
                "Booking %s: booker %s has no balance, refund of %d skipped",
                booking.id, booking.user_id, price,
            )
        else:
            await self._balances.credit(
                db, booking.user_id, price, PointEntryType.REFUND_CREDIT.value, booking.id
            )
        if owner_balance is not None:
            await self._balances.debit(
                db, booking.snapshot.owner_id, price,
                PointEntryType.REFUND_DEBIT.value, booking.id,
            )

    # ------------------------------------------------------------------
    # PurgeAccount
    # ------------------------------------------------------------------

    async def purge_account(self, db: AsyncSession, user_id: str) -> PurgeResult:
        """Unwind everything a deleted account touches.

        Not atomic as a whole: each spot and each held booking is its own unit,
        and finished units are skipped on re-run, so a crashed purge can simply
        be repeated.
        """
        result = PurgeResult(user_id=user_id)

        # Step 1: spots the user owns. Bookers are refunded; the owner's
        # balance is not debited because it is deleted in step 3.
        async with db.begin():
            owned = await self._spots.list_by_owner(db, user_id)
        for spot in owned:
            refunded = await self._with_retries(
                "purge.retire_spot",
                partial(self._retire_spot, db, spot.id, user_id, False),
            )
            if refunded is not None:
                result.spots_deleted += 1
                result.bookings_refunded += refunded

        # Step 2: bookings the user holds. Owners give the points back.
        async with db.begin():
            held = await self._bookings.list_active_for_user(db, user_id)
        for booking in held:
            released = await self._with_retries(
                "purge.release_booking",
                partial(self._release_held_booking, db, booking, user_id),
            )
            if released:
                result.bookings_released += 1

        # Step 3: the balance row itself. The journal is kept.
        result.balance_deleted = await self._with_retries(
            "purge.delete_balance", partial(self._delete_balance, db, user_id)
        )

        logger.info(
            "Account purged: user=%s spots_deleted=%d refunded=%d released=%d balance_deleted=%s",
            user_id,
            result.spots_deleted,
            result.bookings_refunded,
            result.bookings_released,
            result.balance_deleted,
        )
        return result

    async def _release_held_booking(
        self, db: AsyncSession, peek: Booking, user_id: str
    ) -> bool:
        owner_id = peek.snapshot.owner_id
        async with self._hold(
            _spot_key(peek.spot_id), _user_key(user_id), _user_key(owner_id)
        ):
            async with db.begin():
                booking = await self._bookings.get_by_id(db, peek.id, for_update=True)
                if booking is None or not booking.is_active:
                    return False
                price = booking.snapshot.price
                owner_balance = await self._balances.get_balance(db, owner_id, for_update=True)
                if owner_balance is not None:
                    clawback = min(price, owner_balance.points)
                    if clawback < price:
                        logger.warning(
                            "Purge of %s: owner %s can only return %d of %d for booking %s",
                            user_id, owner_id, clawback, price, booking.id,
                        )
                    if clawback > 0:
                        await self._balances.debit(
                            db, owner_id, clawback,
                            PointEntryType.REFUND_DEBIT.value, booking.id,
                        )
                if await self._bookings.mark_canceled(db, booking.id, utc_now()) is None:
                    raise TransientStoreError(f"Booking {booking.id} changed concurrently")
                await self._spots.set_bookable(db, booking.spot_id, True)
                return True

    async def _delete_balance(self, db: AsyncSession, user_id: str) -> bool:
        async with self._hold(_user_key(user_id)):
            async with db.begin():
                return await self._balances.delete_balance(db, user_id)
