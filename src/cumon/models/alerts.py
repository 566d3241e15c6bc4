"""Threshold alert models."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from cumon.models.usage import METRIC_LABELS

ALERT_TITLE = "Claude Usage Alert"


class Alert(BaseModel):
    """A one-shot notification for a metric entering a threshold band."""

    model_config = ConfigDict(frozen=True)

    metric: str
    threshold: int
    percentage: float

    @property
    def identifier(self) -> str:
        return f"{self.metric}-{self.threshold}"

    @property
    def title(self) -> str:
        return ALERT_TITLE

    @property
    def body(self) -> str:
        label = METRIC_LABELS.get(self.metric, self.metric)
        return f"{label} usage is at {int(self.percentage)}%"


class NotifierState(BaseModel):
    """Last threshold notified per metric. Immutable; updates return a copy."""

    model_config = ConfigDict(frozen=True)

    notified: Mapping[str, int] = Field(default_factory=dict)

    def get(self, metric: str) -> int | None:
        return self.notified.get(metric)

    def with_threshold(self, metric: str, threshold: int) -> NotifierState:
        return NotifierState(notified={**self.notified, metric: threshold})

    def without(self, metric: str) -> NotifierState:
        if metric not in self.notified:
            return self
        return NotifierState(notified={k: v for k, v in self.notified.items() if k != metric})
