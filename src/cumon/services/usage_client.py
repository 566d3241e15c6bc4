"""Usage client: one authenticated GET against the OAuth usage endpoint."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError
from result import Err, Ok, Result

from cumon.config import USAGE_ENDPOINT
from cumon.errors import (
    CredentialExpiredError,
    DecodingError,
    InvalidResponseError,
    NetworkError,
    UsageError,
)
from cumon.models.usage import UsageSnapshot

if TYPE_CHECKING:
    from cumon.config import Config
    from cumon.models.credentials import Credential
    from cumon.services.protocols import CredentialResolverProtocol

logger = logging.getLogger(__name__)

ANTHROPIC_BETA = "oauth-2025-04-20"
DEFAULT_TIMEOUT = 30.0


class UsageClient:
    """Fetches a ``UsageSnapshot`` and classifies every failure into a ``UsageError``."""

    def __init__(
        self,
        resolver: CredentialResolverProtocol,
        *,
        endpoint: str = USAGE_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._resolver = resolver
        self._endpoint = endpoint
        self._timeout = timeout
        self._http = http
        self._owns_http = http is None
        self._last_credential: Credential | None = None

    @classmethod
    def from_config(
        cls, config: Config, resolver: CredentialResolverProtocol
    ) -> UsageClient:
        return cls(resolver, endpoint=config.endpoint, timeout=config.request_timeout)

    async def __aenter__(self) -> UsageClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def last_credential(self) -> Credential | None:
        """The credential the most recent ``fetch`` authenticated with."""
        return self._last_credential

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def fetch(self) -> Result[UsageSnapshot, UsageError]:
        """Resolve the credential and perform exactly one request."""
        credential = self._resolver.resolve()
        if isinstance(credential, Err):
            self._last_credential = None
            return credential
        self._last_credential = credential.ok_value

        headers = {
            "Authorization": f"Bearer {credential.ok_value.access_token}",
            "anthropic-beta": ANTHROPIC_BETA,
        }
        try:
            async with asyncio.timeout(self._timeout):
                response = await self.http.get(
                    self._endpoint, headers=headers, timeout=self._timeout
                )
        except (httpx.TransportError, TimeoutError) as exc:
            logger.debug("Usage request failed: %r", exc)
            return Err(NetworkError(exc))

        return self._classify(response)

    @staticmethod
    def _classify(response: httpx.Response) -> Result[UsageSnapshot, UsageError]:
        status = response.status_code
        if status in (401, 403):
            return Err(CredentialExpiredError())
        if not 200 <= status <= 299:
            logger.debug("Usage endpoint returned HTTP %s", status)
            return Err(InvalidResponseError(status))
        try:
            return Ok(UsageSnapshot.model_validate_json(response.content))
        except ValidationError as exc:
            return Err(DecodingError(exc))
