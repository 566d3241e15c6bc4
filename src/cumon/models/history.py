"""Usage history models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import AwareDatetime, BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class HistoryEntry(BaseModel):
    """One recorded utilization sample.

    Stored with camelCase keys and whole-second ``...Z`` timestamps, the
    format the Claude usage menu bar app shares in ``usage-history.json``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: AwareDatetime
    session_utilization: float
    weekly_utilization: float

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
