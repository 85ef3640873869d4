"""Settlement watcher: poll the ledger until a reference's payment is confirmed."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from ...domain.ledger.entities import Commitment
from ...domain.shared import LedgerClientFactory
from .settlement_validators import (
    ExpectedSettlement,
    Found,
    Invalid,
    NotFound,
    SettlementRecord,
    lookup_settlement,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class WatcherState(str, enum.Enum):
    POLLING = "polling"
    VALIDATING = "validating"
    SETTLED = "settled"
    INVALID = "invalid"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Settled:
    record: SettlementRecord


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class InvalidSettlement:
    reason: str


@dataclass(frozen=True)
class TimedOut:
    attempts: int


SettlementOutcome = Union[Settled, Cancelled, InvalidSettlement, TimedOut]

OnSettled = Callable[[SettlementRecord], Union[Awaitable[None], None]]


class SettlementWatcher:
    """Polls for a single reference until settled, invalid, cancelled or out of budget.

    One watcher belongs to one checkout attempt. Only one ledger query is in
    flight at a time and the next attempt is scheduled a fixed interval after
    the previous one finished, whatever its result. Errors other than "not
    found" are logged and retried; an invalid match is terminal.
    """

    def __init__(
        self,
        ledger_client_factory: LedgerClientFactory,
        reference: str,
        expected: ExpectedSettlement,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: Optional[int] = None,
        commitment: Commitment = "confirmed",
        on_settled: Optional[OnSettled] = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError("poll_interval cannot be negative")
        if max_attempts is not None and max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self.ledger_client_factory = ledger_client_factory
        self.reference = reference
        self.expected = expected
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.commitment = commitment
        self.on_settled = on_settled

        self.state = WatcherState.POLLING
        self.attempts = 0
        self._outcome: Optional[SettlementOutcome] = None
        self._cancel_event = asyncio.Event()

    @property
    def outcome(self) -> Optional[SettlementOutcome]:
        return self._outcome

    def cancel(self) -> None:
        """Stop polling; takes effect before the next query is issued."""
        self._cancel_event.set()

    async def run(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> SettlementOutcome:
        """Poll until a terminal outcome; re-running a finished watcher returns it again."""
        if self._outcome is not None:
            return self._outcome

        try:
            async with self.ledger_client_factory() as ledger:
                while True:
                    if self._is_cancelled(cancel_event):
                        return self._finish(WatcherState.CANCELLED, Cancelled())
                    if (
                        self.max_attempts is not None
                        and self.attempts >= self.max_attempts
                    ):
                        return self._finish(
                            WatcherState.TIMED_OUT, TimedOut(self.attempts)
                        )

                    self.attempts += 1
                    try:
                        result = await lookup_settlement(
                            ledger, self.reference, self.expected, self.commitment
                        )
                    except Exception:
                        logger.warning(
                            "Settlement lookup failed for reference %s (attempt %d)",
                            self.reference,
                            self.attempts,
                            exc_info=True,
                        )
                    else:
                        if isinstance(result, Found):
                            self.state = WatcherState.VALIDATING
                            return await self._settle(result.record)
                        if isinstance(result, Invalid):
                            logger.error(
                                "Transaction for reference %s is invalid: %s",
                                self.reference,
                                result.reason,
                            )
                            return self._finish(
                                WatcherState.INVALID, InvalidSettlement(result.reason)
                            )
                        assert isinstance(result, NotFound)

                    if await self._wait(cancel_event):
                        return self._finish(WatcherState.CANCELLED, Cancelled())
        except asyncio.CancelledError:
            self._finish(WatcherState.CANCELLED, Cancelled())
            raise

    def _is_cancelled(self, cancel_event: Optional[asyncio.Event]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return self._cancel_event.is_set()

    async def _wait(self, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep one interval; return True if cancellation arrived meanwhile."""
        events = [self._cancel_event]
        if cancel_event is not None:
            events.append(cancel_event)
        waiters = [asyncio.ensure_future(event.wait()) for event in events]
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self.poll_interval,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()
        return bool(done) or self._is_cancelled(cancel_event)

    async def _settle(self, record: SettlementRecord) -> SettlementOutcome:
        outcome = self._finish(WatcherState.SETTLED, Settled(record))
        logger.info(
            "Reference %s settled by transaction %s", self.reference, record.signature
        )
        if self.on_settled is not None:
            maybe_awaitable = self.on_settled(record)
            if asyncio.iscoroutine(maybe_awaitable):
                await maybe_awaitable
        return outcome

    def _finish(
        self, state: WatcherState, outcome: SettlementOutcome
    ) -> SettlementOutcome:
        if self._outcome is None:
            self.state = state
            self._outcome = outcome
        return self._outcome
