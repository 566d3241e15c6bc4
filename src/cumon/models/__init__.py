"""Pydantic models for cumon."""

from cumon.models.alerts import Alert, NotifierState
from cumon.models.credentials import Credential
from cumon.models.history import HistoryEntry
from cumon.models.usage import METRIC_LABELS, UsageMetric, UsageSnapshot, parse_reset_time

__all__ = [
    "Alert",
    "Credential",
    "HistoryEntry",
    "METRIC_LABELS",
    "NotifierState",
    "UsageMetric",
    "UsageSnapshot",
    "parse_reset_time",
]
