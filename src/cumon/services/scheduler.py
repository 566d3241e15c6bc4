"""Polling scheduler: drives fetch, history and notifications on a timer."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from result import Err, Ok, Result

from cumon.config import POLL_INTERVALS
from cumon.errors import CredentialExpiredError, UsageError
from cumon.models.alerts import Alert, NotifierState
from cumon.models.usage import UsageSnapshot
from cumon.services.notifier import AlertSink, LoggingAlertSink, ThresholdNotifier

if TYPE_CHECKING:
    from cumon.services.protocols import HistoryStoreProtocol, UsageClientProtocol

logger = logging.getLogger(__name__)


class PollState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"


@dataclass(frozen=True)
class PollOutcome:
    """What one fetch cycle produced."""

    result: Result[UsageSnapshot, UsageError]
    finished_at: datetime
    alerts: tuple[Alert, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return isinstance(self.result, Ok)


UpdateListener = Callable[[PollOutcome], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PollingScheduler:
    """Runs at most one ``UsageClient.fetch`` at a time.

    Timer ticks and manual refreshes share one guard: while a fetch is in
    flight any further request is dropped, not queued. Failures are kept for
    display and never retried; the next tick is the retry.
    """

    def __init__(
        self,
        client: UsageClientProtocol,
        history: HistoryStoreProtocol,
        *,
        notifier: ThresholdNotifier | None = None,
        alert_sink: AlertSink | None = None,
        interval: int = 60,
        alerts_enabled: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._history = history
        self._notifier = notifier or ThresholdNotifier()
        self._alert_sink = alert_sink or LoggingAlertSink()
        self._alerts_enabled = alerts_enabled
        self._clock = clock
        self._interval = self._check_interval(interval)

        self._state = PollState.IDLE
        self._notifier_state = NotifierState()
        self._last_snapshot: UsageSnapshot | None = None
        self._last_updated: datetime | None = None
        self._last_error: UsageError | None = None
        self._listeners: list[UpdateListener] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._stop = asyncio.Event()

    # ── State ──

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def last_snapshot(self) -> UsageSnapshot | None:
        return self._last_snapshot

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    @property
    def last_error(self) -> UsageError | None:
        return self._last_error

    @property
    def notifier_state(self) -> NotifierState:
        return self._notifier_state

    @property
    def needs_reauthentication(self) -> bool:
        """True when the last poll failed because the token was rejected."""
        return isinstance(self._last_error, CredentialExpiredError)

    def add_listener(self, listener: UpdateListener) -> None:
        self._listeners.append(listener)

    def set_interval(self, seconds: int) -> None:
        """Change the cadence; applies from the next wait."""
        self._interval = self._check_interval(seconds)

    # ── Triggers ──

    def trigger(self) -> asyncio.Task[PollOutcome] | None:
        """Start a fetch in the background unless one is already running."""
        if self._state is PollState.FETCHING:
            logger.debug("Fetch already in flight; tick dropped")
            return None
        self._state = PollState.FETCHING
        try:
            task = asyncio.create_task(self._cycle())
        except RuntimeError:
            self._state = PollState.IDLE
            raise
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_exception)
        return task

    async def refresh(self) -> PollOutcome | None:
        """Fetch now and wait for the outcome; ``None`` if a fetch is in flight."""
        if self._state is PollState.FETCHING:
            logger.debug("Fetch already in flight; refresh dropped")
            return None
        self._state = PollState.FETCHING
        return await self._cycle()

    async def run(self) -> None:
        """Tick immediately, then every ``interval`` seconds until ``stop()``."""
        self._stop.clear()
        logger.info("Polling usage every %ss", self._interval)
        while not self._stop.is_set():
            self.trigger()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)

    def stop(self) -> None:
        self._stop.set()

    async def aclose(self) -> None:
        """Stop the timer loop and wait for an in-flight fetch to finish."""
        self.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ── Cycle ──

    async def _cycle(self) -> PollOutcome:
        alerts: tuple[Alert, ...] = ()
        try:
            result = await self._client.fetch()
            if isinstance(result, Ok):
                alerts = self._on_success(result.ok_value)
            else:
                self._on_failure(result.err_value)
        finally:
            self._state = PollState.IDLE

        outcome = PollOutcome(result=result, finished_at=self._clock(), alerts=alerts)
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception:
                logger.exception("Update listener failed")
        return outcome

    def _on_success(self, snapshot: UsageSnapshot) -> tuple[Alert, ...]:
        self._last_snapshot = snapshot
        self._last_updated = self._clock()
        self._last_error = None

        alerts: list[Alert] = []
        if self._alerts_enabled:
            for name, metric in snapshot.metrics():
                self._notifier_state, alert = self._notifier.evaluate(
                    name, metric.utilization, self._notifier_state
                )
                if alert is not None:
                    alerts.append(alert)
                    self._deliver(alert)

        if snapshot.five_hour is not None and snapshot.seven_day is not None:
            recorded = self._history.record(
                snapshot.five_hour.utilization, snapshot.seven_day.utilization
            )
            if isinstance(recorded, Err):
                logger.info("Usage history not updated: %s", recorded.err_value)
        return tuple(alerts)

    def _on_failure(self, error: UsageError) -> None:
        self._last_error = error
        logger.warning("Usage poll failed: %s", error)

    def _deliver(self, alert: Alert) -> None:
        try:
            self._alert_sink.deliver(alert)
        except Exception:
            logger.exception("Alert sink failed for %s", alert.identifier)

    @staticmethod
    def _check_interval(seconds: int) -> int:
        if seconds not in POLL_INTERVALS:
            msg = f"Poll interval must be one of {POLL_INTERVALS}, got {seconds}"
            raise ValueError(msg)
        return seconds


def _log_exception(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.exception("Unhandled exception in poll cycle", exc_info=exc)
