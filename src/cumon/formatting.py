"""Plain-text rendering helpers for the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

_SPARK_CHARS = "▁▂▃▄▅▆▇█"


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def time_ago(moment: datetime, now: datetime | None = None) -> str:
    """Coarse elapsed time, e.g. ``"30 secs"``, ``"5 mins"``, ``"2 hrs"``."""
    now = now or datetime.now(UTC)
    seconds = (now - moment).total_seconds()
    if seconds < 60:
        return _plural(max(0, int(seconds)), "sec")
    if seconds < 3600:
        return _plural(int(seconds // 60), "min")
    if seconds < 86400:
        return _plural(int(seconds // 3600), "hr")
    return _plural(int(seconds // 86400), "day")


def time_until(moment: datetime, now: datetime | None = None) -> str:
    """Remaining time until a reset, e.g. ``"now"``, ``"3h 20m"``, ``"1d 1h"``."""
    now = now or datetime.now(UTC)
    seconds = (moment - now).total_seconds()
    if seconds <= 0:
        return "now"
    if seconds < 60:
        return _plural(int(seconds), "sec")
    if seconds < 3600:
        return _plural(int(seconds // 60), "min")
    if seconds < 86400:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        if minutes > 0:
            return f"{hours}h {minutes}m"
        return _plural(hours, "hr")
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    # Beyond a week the hour part is noise.
    if hours > 0 and days < 7:
        return f"{days}d {hours}h"
    return f"{days}d"


def usage_bar(percentage: float, width: int = 20) -> str:
    """Fixed-width bar such as ``[#######-------------]``."""
    clamped = min(max(percentage, 0.0), 100.0)
    filled = round(clamped / 100 * width)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def sparkline(values: Sequence[float], width: int = 48) -> str:
    """Render the last ``width`` samples on a 0-100 scale."""
    if not values:
        return ""
    tail = values[-width:]
    top = len(_SPARK_CHARS) - 1
    chars = []
    for value in tail:
        clamped = min(max(value, 0.0), 100.0)
        chars.append(_SPARK_CHARS[round(clamped / 100 * top)])
    return "".join(chars)
