"""Credential models."""

from __future__ import annotations

import re

from pydantic import BaseModel

_TIER_PATTERN = re.compile(r"(\d+)x", re.IGNORECASE)

_SUBSCRIPTION_LABELS = {
    "max": "Claude Max",
    "pro": "Claude Pro",
}


class Credential(BaseModel):
    """OAuth credential read from the local credential store."""

    access_token: str
    subscription_type: str | None = None
    rate_limit_tier: str | None = None

    @property
    def tier_label(self) -> str | None:
        """Rate multiplier such as ``"5X"`` extracted from ``rate_limit_tier``."""
        if not self.rate_limit_tier:
            return None
        match = _TIER_PATTERN.search(self.rate_limit_tier)
        if match is None:
            return None
        return f"{match.group(1)}X"

    @property
    def subscription_label(self) -> str:
        return _SUBSCRIPTION_LABELS.get((self.subscription_type or "").lower(), "Claude")
