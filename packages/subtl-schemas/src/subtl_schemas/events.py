"""Event taxonomy and structured payloads for job observability."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import JobStatus, JsonValue


class JobEvent(StrEnum):
    """Event names for translation job lifecycle."""

    STARTED = "job_started"
    COMPLETED = "job_completed"
    FAILED = "job_failed"


class BatchEvent(StrEnum):
    """Event names for per-batch lifecycle."""

    RUNNING = "batch_running"
    DONE = "batch_done"
    ERROR = "batch_error"
    RETRY = "batch_retry"


class ProgressEvent(StrEnum):
    """Event names for progress updates."""

    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_FAILED = "job_failed"
    BATCH_STATUS = "batch_status"
    BATCH_RETRY = "batch_retry"
    TRANSLATION_PROGRESS = "translation_progress"


class IngestEvent(StrEnum):
    """Event names for ingest operations."""

    STARTED = "ingest_started"
    COMPLETED = "ingest_completed"
    FAILED = "ingest_failed"


class ExportEvent(StrEnum):
    """Event names for export operations."""

    COMPLETED = "export_completed"


class CommandEvent(StrEnum):
    """Event names for CLI command lifecycle."""

    STARTED = "command_started"
    COMPLETED = "command_completed"
    FAILED = "command_failed"


class JobStartedData(BaseSchema):
    """Payload for job start events."""

    file_name: str = Field(..., min_length=1, description="Source file name")
    total_cues: int = Field(..., ge=1, description="Cue count in the document")
    total_batches: int = Field(..., ge=1, description="Planned batch count")
    max_parallel_requests: int = Field(
        ..., ge=1, description="Effective admission bound"
    )


class JobCompletedData(BaseSchema):
    """Payload for job completion events."""

    status: JobStatus = Field(..., description="Final job status")
    translated_cues: int = Field(..., ge=0, description="Translated cue count")


class JobFailedData(BaseSchema):
    """Payload for job failure events."""

    error_code: str = Field(..., min_length=1, description="Error code")
    error_message: str = Field(..., min_length=1, description="Error message")


class BatchRetryData(BaseSchema):
    """Payload for batch retry warnings."""

    batch_no: int = Field(..., ge=0, description="Batch number")
    attempt: int = Field(..., ge=1, description="Attempt that failed")
    delay_s: float = Field(..., ge=0, description="Backoff before the next attempt")
    error_message: str = Field(..., min_length=1, description="Failure reason")


class IngestStartedData(BaseSchema):
    """Payload for ingest start events."""

    source_path: str = Field(..., min_length=1, description="Input source path")


class IngestCompletedData(IngestStartedData):
    """Payload for ingest completion events."""

    cue_count: int = Field(..., ge=1, description="Number of cues parsed")
    newline: str = Field(..., min_length=1, description="Detected newline style")


class IngestFailedData(IngestStartedData):
    """Payload for ingest failure events."""

    error_code: str = Field(..., min_length=1, description="Error code")
    error_message: str = Field(..., min_length=1, description="Error message")


class ExportCompletedData(BaseSchema):
    """Payload for export completion events."""

    output_path: str = Field(..., min_length=1, description="Export output path")
    cue_count: int = Field(..., ge=1, description="Number of cues written")


class CommandStartedData(BaseSchema):
    """Payload for CLI command start events."""

    command: str = Field(..., min_length=1, description="Command name")
    args: dict[str, JsonValue] | None = Field(
        None, description="Sanitized command arguments"
    )


class CommandCompletedData(BaseSchema):
    """Payload for CLI command completion events."""

    command: str = Field(..., min_length=1, description="Command name")


class CommandFailedData(BaseSchema):
    """Payload for CLI command failure events."""

    command: str = Field(..., min_length=1, description="Command name")
    error_code: str = Field(..., min_length=1, description="Error code")
    error_message: str = Field(..., min_length=1, description="Error message")
    next_action: str = Field(..., min_length=1, description="Suggested next action")
