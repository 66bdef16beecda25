"""
Price Refresher

Drives the aggregator on a fixed timer and on demand, and publishes every
state transition to the event bus under topic 'prices'.

State machine:
    idle -> fetching                  start(), timer tick, refresh(), set_currency()
    fetching -> ready                 round completed (an empty snapshot is still ready)
    fetching -> failed                the round itself raised; last good snapshot is kept
    ready/failed -> fetching          any new trigger

Every round gets a generation number. Starting a round supersedes all
earlier ones: their network calls are left to finish, but a round only
publishes if its generation is still the latest when it completes. A
currency switch therefore never shows prices computed for the old currency.
"""

import asyncio
import contextlib
from typing import List, Optional, Sequence, Union

from core import aggregator
from core.config import settings
from core.logging import get_logger
from core.schemas import ASSETS, Asset, Currency, RefreshState, Snapshot, StateEvent
from core.source_interface import SourceAdapter
from services.event_bus import EventBus, bus


def to_currency(value: Union[Currency, str]) -> Currency:
    """Accept a Currency or a case-insensitive currency code."""
    if isinstance(value, Currency):
        return value
    return Currency(value.upper())


class PriceRefresher:
    """
    Background service keeping the latest price Snapshot.

    Example:
        >>> refresher = PriceRefresher(manager.adapters())
        >>> await refresher.start()
        >>> queue = await refresher.subscribe()
        >>> event = await queue.get()          # StateEvent
        >>> await refresher.set_currency("EUR")
        >>> await refresher.stop()
    """

    TOPIC = "prices"
    ERROR_MESSAGE = "Error fetching prices. Please try again later."

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        currency: Union[Currency, str, None] = None,
        interval: Optional[float] = None,
        assets: Optional[Sequence[Asset]] = None,
        event_bus: Optional[EventBus] = None
    ) -> None:
        self._logger = get_logger(__name__)
        self._sources: List[SourceAdapter] = list(sources)
        self._assets: List[Asset] = list(assets) if assets is not None else list(ASSETS)
        self._currency = to_currency(currency or settings.default_currency)
        self._interval = interval if interval is not None else settings.refresh_interval_seconds
        self._bus = event_bus if event_bus is not None else bus

        self._state = RefreshState.IDLE
        self._snapshot: Optional[Snapshot] = None
        self._error: Optional[str] = None
        self._generation = 0
        self._current_round: Optional[asyncio.Task] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._running = False

    # ============================================
    # Read-only State
    # ============================================

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def snapshot(self) -> Optional[Snapshot]:
        """Last published snapshot (None until the first round completes)."""
        return self._snapshot

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._running

    def current_event(self) -> StateEvent:
        return StateEvent(
            state=self._state,
            currency=self._currency,
            generation=self._generation,
            snapshot=self._snapshot,
            message=self._error
        )

    # ============================================
    # Lifecycle
    # ============================================

    async def start(self) -> None:
        """Run a first round immediately and start the refresh timer."""
        if self._running:
            return
        self._running = True
        self._logger.info(
            f"Starting price refresher ({self._currency.value}, every {self._interval}s)..."
        )
        await self._begin_round()
        self._restart_timer()

    async def stop(self) -> None:
        """Stop the timer and cancel the in-flight round, if any."""
        if not self._running:
            return
        self._logger.info("Stopping price refresher...")
        self._running = False
        for task in (self._timer_task, self._current_round):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._timer_task = None
        self._current_round = None

    # ============================================
    # Triggers
    # ============================================

    async def refresh(self, currency: Union[Currency, str, None] = None) -> Snapshot:
        """
        Manual refresh.

        Starts a new round and waits until the latest round has settled.
        Passing a currency different from the current one behaves like
        set_currency().

        Returns:
            Snapshot: The published snapshot, or the retained one if the round
                      failed (an empty snapshot if nothing was ever published)
        """
        if currency is not None and to_currency(currency) != self._currency:
            return await self.set_currency(currency)

        task = await self._begin_round()
        await self._wait_latest(task)
        return self._snapshot_or_empty()

    async def set_currency(self, currency: Union[Currency, str]) -> Snapshot:
        """
        Switch currency: supersede any in-flight round, start a new one
        immediately and restart the timer period.

        Returns:
            Snapshot: Result of the new round (see refresh())
        """
        currency = to_currency(currency)
        if currency != self._currency:
            self._logger.info(f"Currency changed {self._currency.value} -> {currency.value}")
        self._currency = currency

        task = await self._begin_round()
        if self._running:
            self._restart_timer()
        await self._wait_latest(task)
        return self._snapshot_or_empty()

    # ============================================
    # Subscription
    # ============================================

    async def subscribe(self) -> asyncio.Queue:
        """
        Subscribe to state events. The queue is primed with the current state.
        """
        queue = await self._bus.subscribe(self.TOPIC)
        queue.put_nowait(self.current_event())
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        await self._bus.unsubscribe(self.TOPIC, queue)

    # ============================================
    # Rounds
    # ============================================

    async def _begin_round(self) -> asyncio.Task:
        self._generation += 1
        generation = self._generation
        currency = self._currency

        self._state = RefreshState.FETCHING
        await self._publish()

        task = asyncio.create_task(
            self._run_round(generation, currency),
            name=f"price_round_{generation}"
        )
        self._current_round = task
        return task

    async def _run_round(self, generation: int, currency: Currency) -> Optional[Snapshot]:
        try:
            snapshot = await aggregator.run(self._assets, currency, self._sources)
        except Exception as e:
            if generation != self._generation:
                self._logger.info(f"Ignoring failure of superseded round {generation}: {e}")
                return None
            self._logger.error(f"Price refresh round {generation} ({currency.value}) failed: {e}")
            self._state = RefreshState.FAILED
            self._error = self.ERROR_MESSAGE
            await self._publish()
            return None

        if generation != self._generation:
            self._logger.info(
                f"Discarding stale round {generation} ({currency.value}); "
                f"latest is {self._generation} ({self._currency.value})"
            )
            return None

        self._snapshot = snapshot
        self._state = RefreshState.READY
        self._error = None
        await self._publish()
        return snapshot

    async def _wait_latest(self, task: asyncio.Task) -> None:
        # A newer round may start while we wait; follow it until it settles.
        # asyncio.wait does not raise when stop() cancels the round.
        while True:
            await asyncio.wait({task})
            latest = self._current_round
            if latest is None or latest is task:
                return
            task = latest

    async def _timer_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            self._logger.debug(f"Timer tick, starting round {self._generation + 1}")
            await self._begin_round()

    def _restart_timer(self) -> None:
        if self._timer_task and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = asyncio.create_task(self._timer_loop(), name="price_refresh_timer")

    async def _publish(self) -> None:
        await self._bus.publish(self.TOPIC, self.current_event())

    def _snapshot_or_empty(self) -> Snapshot:
        if self._snapshot is not None:
            return self._snapshot
        return Snapshot(currency=self._currency)
