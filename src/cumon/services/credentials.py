"""Credential resolver: reads the Claude Code OAuth token from local storage."""

from __future__ import annotations

import getpass
import json
import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import keyring
from keyring.errors import KeyringError
from result import Err, Ok, Result

from cumon.errors import NoCredentialError
from cumon.models.credentials import Credential

if TYPE_CHECKING:
    from cumon.config import Config

logger = logging.getLogger(__name__)

SECURITY_BIN = "/usr/bin/security"


class CredentialSource(Protocol):
    """A place the credential JSON blob may be stored."""

    name: str

    def read(self) -> str | None: ...


class SecurityCommandSource:
    """``security find-generic-password`` run as a subprocess.

    Preferred over the keyring API: it reads entries created by the Claude
    CLI without tripping over their access-control settings.
    """

    name = "security-command"

    def __init__(
        self,
        service: str,
        *,
        timeout: float = 5.0,
        executable: str = SECURITY_BIN,
    ) -> None:
        self._service = service
        self._timeout = timeout
        self._executable = executable

    def read(self) -> str | None:
        try:
            proc = subprocess.run(
                [self._executable, "find-generic-password", "-s", self._service, "-w"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("security command failed: %s", exc)
            return None
        if proc.returncode != 0:
            logger.debug("security command exited with %s", proc.returncode)
            return None
        return proc.stdout.strip() or None


class KeyringSource:
    """Native secure-storage lookup through the ``keyring`` backend."""

    name = "keyring"

    def __init__(self, service: str, account: str | None = None) -> None:
        self._service = service
        self._account = account

    def read(self) -> str | None:
        try:
            account = self._account or getpass.getuser()
            return keyring.get_password(self._service, account)
        except (KeyringError, OSError) as exc:
            logger.debug("keyring lookup failed: %s", exc)
            return None


class CredentialsFileSource:
    """Plaintext ``.credentials.json`` used where no keychain is available."""

    name = "credentials-file"

    def __init__(self, path: Path) -> None:
        self._path = path

    def read(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Could not read %s: %s", self._path, exc)
            return None


def parse_credential(raw: str) -> Credential | None:
    """Parse either the ``claudeAiOauth`` wrapper or the legacy flat format."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    oauth = data.get("claudeAiOauth")
    if isinstance(oauth, dict):
        token = oauth.get("accessToken")
        if isinstance(token, str) and token:
            return Credential(
                access_token=token,
                subscription_type=_opt_str(oauth.get("subscriptionType")),
                rate_limit_tier=_opt_str(oauth.get("rateLimitTier")),
            )

    token = data.get("accessToken")
    if isinstance(token, str) and token:
        return Credential(access_token=token)
    return None


def _opt_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


class CredentialResolver:
    """Tries each source once, in order, and returns the first credential found.

    Nothing is cached: the Claude CLI rewrites the entry when it refreshes the
    token, so every poll reads it again.
    """

    def __init__(self, sources: Sequence[CredentialSource]) -> None:
        self._sources = tuple(sources)

    @classmethod
    def from_config(cls, config: Config) -> CredentialResolver:
        return cls(
            [
                SecurityCommandSource(config.keychain_service, timeout=config.command_timeout),
                KeyringSource(config.keychain_service, config.keychain_account),
                CredentialsFileSource(config.credentials_path),
            ]
        )

    def resolve(self) -> Result[Credential, NoCredentialError]:
        for source in self._sources:
            raw = source.read()
            if raw is None:
                continue
            credential = parse_credential(raw)
            if credential is not None:
                logger.debug("Credential read from %s", source.name)
                return Ok(credential)
            logger.debug("No access token in %s payload", source.name)
        return Err(NoCredentialError())
