"""Protocol definitions for services."""

from __future__ import annotations

from typing import Protocol

from result import Result

from cumon.errors import NoCredentialError, UsageError
from cumon.models.credentials import Credential
from cumon.models.history import HistoryEntry
from cumon.models.usage import UsageSnapshot


class CredentialResolverProtocol(Protocol):
    """Interface for reading the current credential."""

    def resolve(self) -> Result[Credential, NoCredentialError]: ...


class UsageClientProtocol(Protocol):
    """Interface for fetching one usage snapshot."""

    async def fetch(self) -> Result[UsageSnapshot, UsageError]: ...


class HistoryStoreProtocol(Protocol):
    """Interface for usage history persistence."""

    def record(self, session: float, weekly: float) -> Result[list[HistoryEntry], str]: ...

    def load(self) -> list[HistoryEntry]: ...

    def session_series(self) -> list[float]: ...

    def weekly_series(self) -> list[float]: ...
