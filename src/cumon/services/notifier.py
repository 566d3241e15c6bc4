"""Threshold notifier with hysteresis, plus the sinks alerts are delivered to."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from cumon.models.alerts import Alert, NotifierState

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 80
CRITICAL_THRESHOLD = 90


def threshold_for(percentage: float) -> int | None:
    """Return the highest threshold band ``percentage`` has reached."""
    if percentage >= CRITICAL_THRESHOLD:
        return CRITICAL_THRESHOLD
    if percentage >= WARNING_THRESHOLD:
        return WARNING_THRESHOLD
    return None


class ThresholdNotifier:
    """Decides when a metric deserves an alert.

    One alert per metric per band on the way up; dropping below 80% re-arms
    the metric. The state is a value: ``evaluate`` returns the next state and
    never mutates the one passed in.
    """

    def evaluate(
        self, metric: str, percentage: float, state: NotifierState
    ) -> tuple[NotifierState, Alert | None]:
        threshold = threshold_for(percentage)
        if threshold is None:
            return state.without(metric), None
        if state.get(metric) == threshold:
            return state, None
        return (
            state.with_threshold(metric, threshold),
            Alert(metric=metric, threshold=threshold, percentage=percentage),
        )


class AlertSink(Protocol):
    """Delivers an alert to the user (desktop notification, terminal, ...)."""

    def deliver(self, alert: Alert) -> None: ...


class LoggingAlertSink:
    """Writes alerts to the log."""

    def deliver(self, alert: Alert) -> None:
        logger.warning("[%s] %s: %s", alert.identifier, alert.title, alert.body)


class CallbackAlertSink:
    """Forwards alerts to a callable."""

    def __init__(self, callback: Callable[[Alert], None]) -> None:
        self._callback = callback

    def deliver(self, alert: Alert) -> None:
        self._callback(alert)
