"""Failure taxonomy for the usage pipeline.

Errors are carried as values inside ``result.Err``; the pipeline never raises
them. They subclass ``Exception`` so a caller that prefers exceptions can
``raise result.err_value`` and keep the original cause chained.
"""

from __future__ import annotations


class UsageError(Exception):
    """Base class for everything ``UsageClient.fetch`` can fail with."""

    message = "Usage request failed"

    def __str__(self) -> str:
        return self.message


class NoCredentialError(UsageError):
    """No access token could be read from any credential source."""

    message = "No Claude token found in Keychain"


class CredentialExpiredError(UsageError):
    """The endpoint rejected the token (401/403); the user must log in again."""

    message = "Session expired"


class InvalidResponseError(UsageError):
    """The endpoint answered with a status outside 200-299."""

    def __init__(self, status_code: int | None = None) -> None:
        super().__init__(status_code)
        self.status_code = status_code

    @property
    def message(self) -> str:  # type: ignore[override]
        if self.status_code is None:
            return "Invalid response from API"
        return f"Invalid response from API (HTTP {self.status_code})"


class NetworkError(UsageError):
    """DNS, connection or timeout failure before a response arrived."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause
        self.__cause__ = cause

    @property
    def message(self) -> str:  # type: ignore[override]
        return f"Network error: {str(self.cause) or type(self.cause).__name__}"


class DecodingError(UsageError):
    """The response body did not match the usage schema."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause)
        self.cause = cause
        self.__cause__ = cause

    @property
    def message(self) -> str:  # type: ignore[override]
        return f"Decoding error: {self.cause}"
