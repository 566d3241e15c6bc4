"""Configuration for cumon."""

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

USAGE_ENDPOINT = "https://api.anthropic.com/api/oauth/usage"
KEYCHAIN_SERVICE = "Claude Code-credentials"
POLL_INTERVALS = (30, 60, 120)


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    claude_dir: Path = field(default_factory=lambda: Path.home() / ".claude")
    endpoint: str = USAGE_ENDPOINT
    keychain_service: str = KEYCHAIN_SERVICE
    keychain_account: str | None = None
    poll_interval: int = 60
    request_timeout: float = 30.0
    command_timeout: float = 5.0
    alerts_enabled: bool = True
    history_max_entries: int = 288
    history_window: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if self.poll_interval not in POLL_INTERVALS:
            msg = f"poll_interval must be one of {POLL_INTERVALS}, got {self.poll_interval}"
            raise ValueError(msg)

    @property
    def history_path(self) -> Path:
        return self.claude_dir / "usage-history.json"

    @property
    def credentials_path(self) -> Path:
        return self.claude_dir / ".credentials.json"
