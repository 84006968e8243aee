"""Primitive types and enums shared across subtl schemas."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, Field

ISO_8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T"
    r"\d{2}:\d{2}:\d{2}"
    r"(?:\.\d+)?"
    r"(?:Z|[+-]\d{2}:\d{2})$"
)
EVENT_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"


def _validate_uuid4(value: UUID) -> UUID:
    """Ensure UUID values are version 4.

    Args:
        value: Parsed UUID value.

    Returns:
        UUID: The validated UUIDv4 value.

    Raises:
        ValueError: If the UUID is not version 4.
    """
    if value.version != 4:
        raise ValueError("UUID must be version 4")
    return value


type Uuid4 = Annotated[UUID, AfterValidator(_validate_uuid4)]

type JobId = Uuid4
type FileId = Uuid4
type CueId = Annotated[int, Field(ge=0)]
type Timestamp = Annotated[str, Field(pattern=ISO_8601_PATTERN)]
type EventName = Annotated[str, Field(pattern=EVENT_NAME_PATTERN)]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | list["JsonValue"] | dict[str, "JsonValue"]


class NewlineStyle(StrEnum):
    """Line ending style detected in a subtitle file."""

    LF = "lf"
    CRLF = "crlf"

    @property
    def sequence(self) -> str:
        """Return the literal line ending characters."""
        if self is NewlineStyle.CRLF:
            return "\r\n"
        return "\n"


class CueRole(StrEnum):
    """Role of a cue inside a translation batch."""

    CONTEXT = "context"
    TRANSLATE = "translate"


class JobStatus(StrEnum):
    """Translation job lifecycle status values."""

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    # Reserved; no control path produces it yet.
    CANCELLED = "cancelled"


class BatchStatus(StrEnum):
    """Per-batch lifecycle status values."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class LogLevel(StrEnum):
    """Log level values for JSONL logs."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogSinkType(StrEnum):
    """Supported log sink types."""

    CONSOLE = "console"
    FILE = "file"
    NOOP = "noop"
