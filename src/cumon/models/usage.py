"""Usage response models."""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import datetime

from pydantic import BaseModel

_RESET_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)
# strptime's %f stops at microseconds; the API has been seen sending more digits.
_LONG_FRACTION = re.compile(r"^(.*T\d{2}:\d{2}:\d{2}\.\d{6})\d+(.*)$")

METRIC_LABELS = {
    "session": "Session",
    "weekly": "Weekly",
    "opus": "Opus",
    "sonnet": "Sonnet",
}


def parse_reset_time(value: str | None) -> datetime | None:
    """Parse a ``resets_at`` string; first matching format wins.

    Only offset-aware timestamps are accepted. Returns ``None`` when nothing
    matches.
    """
    if not value:
        return None
    candidates = [value.strip()]
    match = _LONG_FRACTION.match(candidates[0])
    if match is not None:
        candidates.append(match.group(1) + match.group(2))
    for candidate in candidates:
        for fmt in _RESET_FORMATS:
            try:
                return datetime.strptime(candidate, fmt)
            except ValueError:
                continue
    return None


class UsageMetric(BaseModel):
    """Utilization of one rate-limit window."""

    utilization: float
    resets_at: str | None = None

    @property
    def resets_at_datetime(self) -> datetime | None:
        return parse_reset_time(self.resets_at)


class UsageSnapshot(BaseModel):
    """One response from the usage endpoint, as received."""

    five_hour: UsageMetric | None = None
    seven_day: UsageMetric | None = None
    seven_day_opus: UsageMetric | None = None
    seven_day_sonnet: UsageMetric | None = None

    def metrics(self) -> Iterator[tuple[str, UsageMetric]]:
        """Yield ``(metric_name, metric)`` for every window present."""
        for name, metric in (
            ("session", self.five_hour),
            ("weekly", self.seven_day),
            ("opus", self.seven_day_opus),
            ("sonnet", self.seven_day_sonnet),
        ):
            if metric is not None:
                yield name, metric

    @property
    def current_percentage(self) -> int | None:
        """Truncated session utilization, as shown next to the tray icon."""
        if self.five_hour is None:
            return None
        return int(self.five_hour.utilization)
