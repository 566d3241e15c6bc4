"""Usage history: a bounded 24h series of utilization samples in a JSON file."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError
from result import Err, Ok, Result

from cumon.models.history import HistoryEntry

if TYPE_CHECKING:
    from cumon.config import Config

logger = logging.getLogger(__name__)

MAX_ENTRIES = 288
RETENTION = timedelta(hours=24)

_ENTRIES = TypeAdapter(list[HistoryEntry])


def _utcnow() -> datetime:
    return datetime.now(UTC)


class HistoryStore:
    """Best-effort history persistence.

    Reads never fail (a missing or corrupt file reads as empty) and writes
    return ``Err`` instead of raising, so a read-only home directory costs the
    trend line and nothing else. The retention window is authoritative;
    ``max_entries`` only caps the file when polling faster than every 5 min.
    """

    def __init__(
        self,
        path: Path,
        *,
        max_entries: int = MAX_ENTRIES,
        retention: timedelta = RETENTION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._path = path
        self._max_entries = max_entries
        self._retention = retention
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config) -> HistoryStore:
        return cls(
            config.history_path,
            max_entries=config.history_max_entries,
            retention=config.history_window,
        )

    @property
    def path(self) -> Path:
        return self._path

    def record(self, session: float, weekly: float) -> Result[list[HistoryEntry], str]:
        """Append a sample stamped now, prune, and rewrite the file."""
        now = self._clock()
        history = self.load()
        history.append(
            HistoryEntry(timestamp=now, session_utilization=session, weekly_utilization=weekly)
        )
        history = self._prune(history, now)
        saved = self.save(history)
        if isinstance(saved, Err):
            return saved
        return Ok(history)

    def load(self) -> list[HistoryEntry]:
        """Read the persisted series; empty on a missing or unreadable file."""
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError:
            logger.warning("Could not read usage history %s", self._path, exc_info=True)
            return []
        try:
            return _ENTRIES.validate_json(data)
        except ValidationError:
            logger.warning("Discarding unreadable usage history %s", self._path)
            return []

    def save(self, entries: list[HistoryEntry]) -> Result[None, str]:
        """Atomically replace the history file with ``entries``."""
        payload = _ENTRIES.dump_json(entries, indent=2, by_alias=True)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            logger.warning("Failed writing usage history %s", self._path, exc_info=True)
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    Path(tmp_name).unlink(missing_ok=True)
            return Err(f"Failed writing usage history: {exc}")
        return Ok(None)

    def clear(self) -> Result[None, str]:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            return Err(f"Failed removing usage history: {exc}")
        return Ok(None)

    def session_series(self) -> list[float]:
        return [entry.session_utilization for entry in self.load()]

    def weekly_series(self) -> list[float]:
        return [entry.weekly_utilization for entry in self.load()]

    def _prune(self, history: list[HistoryEntry], now: datetime) -> list[HistoryEntry]:
        cutoff = now - self._retention
        kept = [entry for entry in history if entry.timestamp > cutoff]
        if len(kept) > self._max_entries:
            kept = kept[-self._max_entries :]
        return kept
