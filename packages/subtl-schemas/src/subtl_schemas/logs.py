"""JSONL log entry schema for translation events."""

from __future__ import annotations

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import (
    EventName,
    JobId,
    JsonValue,
    LogLevel,
    Timestamp,
)


class LogEntry(BaseSchema):
    """One JSONL log line for a job, ingest, export or command event."""

    timestamp: Timestamp = Field(
        ..., description="ISO-8601 UTC timestamp"
    )
    level: LogLevel = Field(..., description="Log level")
    event: EventName = Field(..., description="Event name")
    job_id: JobId | None = Field(None, description="Job or command identifier")
    message: str = Field(..., min_length=1, description="Log message")
    data: dict[str, JsonValue] | None = Field(None, description="Structured event data")
