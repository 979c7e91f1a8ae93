# backend/kabufolio/services/exchange_rate_state.py
"""
Exchange-rate state holder.

Holds the current best-known USD/JPY rate and refreshes it by polling and on
manual request. Valuations read the snapshot; they never wait on a fetch.

States:
    IDLE         - Nothing in flight
    REFRESHING   - A fetch is in flight
    JUST_UPDATED - A fetch succeeded moments ago (display affordance)

State Transitions:
    IDLE -> REFRESHING: start() with auto-update, poll timer, or manual trigger
    REFRESHING -> JUST_UPDATED: fetch succeeded, snapshot replaced
    REFRESHING -> IDLE: fetch failed, snapshot kept (last known good)
    JUST_UPDATED -> IDLE: after the display window (3 seconds)
    JUST_UPDATED -> REFRESHING: another refresh starts

A refresh requested while one is in flight is ignored. stop() abandons the
in-flight fetch: whatever it returns later is discarded.

Usage:
    from kabufolio.services.exchange_rate_state import ExchangeRateStateHolder

    holder = ExchangeRateStateHolder(fetcher=CachedRateProvider(YahooFinanceProvider()))
    holder.start()

    rate = holder.snapshot.rate       # always present, 150 until first fetch
    holder.manual_refresh()
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Protocol

from kabufolio.models import ExchangeRate
from kabufolio.services.constants import (
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    UPDATE_DISPLAY_WINDOW_SECONDS,
)

logger = logging.getLogger(__name__)


class RefreshState(Enum):
    """Exchange-rate refresh states."""
    IDLE = "idle"
    REFRESHING = "refreshing"
    JUST_UPDATED = "just_updated"


# =============================================================================
# INJECTABLE DEPENDENCIES
# =============================================================================

class RateFetcher(Protocol):
    """Anything that can fetch a rate; failures are raised, not returned."""

    def fetch_rate(self, manual: bool = False) -> ExchangeRate:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class ThreadingScheduler:
    """Scheduler backed by daemon threading.Timer instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.name = "exchange-rate-timer"
        timer.daemon = True
        timer.start()
        return timer


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# STATE HOLDER
# =============================================================================

@dataclass
class ExchangeRateStats:
    """
    Statistics for monitoring refresh behaviour.

    Attributes:
        refresh_requests: Refreshes requested (including ignored ones)
        successful_refreshes: Fetches that replaced the snapshot
        failed_refreshes: Fetches that raised
        ignored_requests: Requests dropped because a fetch was in flight
        discarded_results: Results of fetches abandoned by stop()
        last_success_at: Time of the last successful refresh
        last_failure_at: Time of the last failed refresh
        last_error: Message of the last failure
    """
    refresh_requests: int = 0
    successful_refreshes: int = 0
    failed_refreshes: int = 0
    ignored_requests: int = 0
    discarded_results: int = 0
    last_success_at: datetime | None = None
    last_failure_at: datetime | None = None
    last_error: str | None = None


@dataclass
class ExchangeRateStateHolder:
    """
    Thread-safe holder of the current USD/JPY rate.

    Attributes:
        fetcher: Rate provider called on every refresh
        refresh_interval: Polling interval in seconds (<= 0 disables polling)
        auto_update_on_load: Refresh once when start() is called
        update_display_window: Seconds JUST_UPDATED lasts before IDLE
        scheduler: Timer factory (replace with a fake in tests)
        clock: Source of "now" for the default snapshot and stats
        default_rate: Rate reported until the first successful fetch
    """

    fetcher: RateFetcher
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    auto_update_on_load: bool = True
    update_display_window: float = UPDATE_DISPLAY_WINDOW_SECONDS
    scheduler: Scheduler = field(default_factory=ThreadingScheduler)
    clock: Callable[[], datetime] = _utcnow
    default_rate: Decimal = DEFAULT_EXCHANGE_RATE

    # Internal state (not part of constructor)
    _state: RefreshState = field(default=RefreshState.IDLE, init=False)
    _snapshot: ExchangeRate = field(init=False)
    _running: bool = field(default=False, init=False)
    _generation: int = field(default=0, init=False)
    _update_seq: int = field(default=0, init=False)
    _poll_timer: TimerHandle | None = field(default=None, init=False)
    _reset_timer: TimerHandle | None = field(default=None, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _stats: ExchangeRateStats = field(default_factory=ExchangeRateStats, init=False)

    def __post_init__(self) -> None:
        """Validate configuration and seed the default snapshot."""
        if self.default_rate <= 0:
            raise ValueError("default_rate must be positive")
        if self.update_display_window < 0:
            raise ValueError("update_display_window cannot be negative")

        self._snapshot = ExchangeRate(rate=self.default_rate, last_updated=self.clock())

        logger.info(
            f"ExchangeRateStateHolder initialized: default_rate={self.default_rate}, "
            f"refresh_interval={self.refresh_interval}s, "
            f"auto_update_on_load={self.auto_update_on_load}"
        )

    # -------------------------------------------------------------------------
    # Read API
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> ExchangeRate:
        """Current rate; never absent."""
        with self._lock:
            return self._snapshot

    @property
    def state(self) -> RefreshState:
        with self._lock:
            return self._state

    @property
    def is_refreshing(self) -> bool:
        return self.state == RefreshState.REFRESHING

    @property
    def just_updated(self) -> bool:
        return self.state == RefreshState.JUST_UPDATED

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def stats(self) -> ExchangeRateStats:
        """Get a copy of current statistics."""
        with self._lock:
            return ExchangeRateStats(**vars(self._stats))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """
        Begin polling.

        The load-time refresh runs on the scheduler (delay 0) so start()
        returns without waiting on the network.
        """
        with self._lock:
            if self._running:
                return
            self._running = True
            generation = self._generation

            if self.auto_update_on_load:
                self.scheduler.call_later(0, lambda: self._on_load(generation))
            self._arm_poll(generation)

        logger.info("Exchange rate polling started")

    def stop(self) -> None:
        """
        Cancel timers and abandon any in-flight fetch.

        The state drops to IDLE at once, so a refresh requested right after
        stop() may run while the abandoned fetch is still out. Only the newer
        fetch can update the snapshot.
        """
        with self._lock:
            self._running = False
            self._generation += 1
            self._cancel_timers()
            if self._state != RefreshState.IDLE:
                self._transition_to(RefreshState.IDLE)

        logger.info("Exchange rate polling stopped")

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def manual_refresh(self) -> ExchangeRate | None:
        return self.refresh(manual=True)

    def refresh(self, manual: bool = False) -> ExchangeRate | None:
        """
        Fetch a new rate.

        Args:
            manual: Passed to the fetcher (a manual fetch bypasses its cache)

        Returns:
            The new snapshot, or None if the request was ignored, the fetch
            failed, or the result was abandoned. Never raises.
        """
        with self._lock:
            self._stats.refresh_requests += 1
            if self._state == RefreshState.REFRESHING:
                self._stats.ignored_requests += 1
                logger.debug("Exchange rate refresh already in flight; request ignored")
                return None

            generation = self._generation
            self._cancel_reset_timer()
            self._transition_to(RefreshState.REFRESHING)

        try:
            rate = self.fetcher.fetch_rate(manual=manual)
        except Exception as e:
            with self._lock:
                if generation != self._generation:
                    self._stats.discarded_results += 1
                    return None
                self._stats.failed_refreshes += 1
                self._stats.last_failure_at = self.clock()
                self._stats.last_error = str(e)
                self._transition_to(RefreshState.IDLE)
            logger.error(
                f"Exchange rate refresh failed, keeping {self.snapshot.rate}: {e}"
            )
            return None

        with self._lock:
            if generation != self._generation:
                self._stats.discarded_results += 1
                logger.debug(f"Discarding abandoned exchange rate result {rate.rate}")
                return None

            self._snapshot = rate
            self._stats.successful_refreshes += 1
            self._stats.last_success_at = self.clock()
            self._stats.last_error = None
            self._transition_to(RefreshState.JUST_UPDATED)
            self._arm_reset()

        logger.info(
            f"Exchange rate updated: {rate.rate} ({'manual' if manual else 'auto'})",
            extra={"rate": rate.rate, "manual": manual},
        )
        return rate

    # -------------------------------------------------------------------------
    # Internals (call with the lock held unless noted)
    # -------------------------------------------------------------------------

    def _transition_to(self, new_state: RefreshState) -> None:
        old_state = self._state
        self._state = new_state
        logger.debug(f"Exchange rate state change: {old_state.value} -> {new_state.value}")

    def _arm_poll(self, generation: int) -> None:
        if self.refresh_interval <= 0:
            return
        self._poll_timer = self.scheduler.call_later(
            self.refresh_interval, lambda: self._on_poll(generation)
        )

    def _arm_reset(self) -> None:
        self._update_seq += 1
        seq = self._update_seq
        self._reset_timer = self.scheduler.call_later(
            self.update_display_window, lambda: self._on_reset(seq)
        )

    def _cancel_reset_timer(self) -> None:
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

    def _cancel_timers(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None
        self._cancel_reset_timer()

    def _on_load(self, generation: int) -> None:
        # Timer callback, lock not held
        with self._lock:
            if generation != self._generation or not self._running:
                return
        self.refresh()

    def _on_poll(self, generation: int) -> None:
        # Timer callback, lock not held
        with self._lock:
            if generation != self._generation or not self._running:
                return
        self.refresh()
        with self._lock:
            if generation == self._generation and self._running:
                self._arm_poll(generation)

    def _on_reset(self, seq: int) -> None:
        # Timer callback, lock not held
        with self._lock:
            if seq != self._update_seq or self._state != RefreshState.JUST_UPDATED:
                return
            self._reset_timer = None
            self._transition_to(RefreshState.IDLE)
