"""Protocol definitions and errors for subtitle ingest."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.events import (
    IngestCompletedData,
    IngestEvent,
    IngestFailedData,
    IngestStartedData,
)
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import JobId, LogLevel, Timestamp
from subtl_schemas.responses import ErrorDetails, ErrorResponse
from subtl_schemas.subtitles import SrtDocument


class IngestErrorCode(StrEnum):
    """Categorized error codes for ingest failures."""

    ENCODING_ERROR = "encoding_error"
    FORMAT_ERROR = "format_error"
    IO_ERROR = "io_error"


class IngestErrorDetails(BaseSchema):
    """Detailed ingest error context."""

    line_number: int | None = Field(None, ge=1, description="1-based source line")
    encoding: str | None = Field(None, description="Encoding that was attempted")
    hint: str | None = Field(None, description="Suggested fix for the user")
    source_path: str | None = Field(None, description="Source file path")


class IngestErrorInfo(BaseSchema):
    """Structured ingest error data."""

    code: IngestErrorCode = Field(..., description="Ingest error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: IngestErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert ingest error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.source_path is not None:
            details = ErrorDetails(
                field="source_path", provided=self.details.source_path
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class IngestError(Exception):
    """Ingest error with structured details."""

    def __init__(self, info: IngestErrorInfo) -> None:
        """Initialize the ingest error.

        Args:
            info: Structured ingest error information.
        """
        super().__init__(info.message)
        self.info = info


class SubtitleEncodingError(IngestError):
    """Subtitle bytes could not be decoded as text."""

    def __init__(
        self,
        hint: str,
        *,
        encoding: str | None = None,
        source_path: str | None = None,
    ) -> None:
        """Initialize the encoding error.

        Args:
            hint: Actionable hint for the user.
            encoding: Encoding that was attempted, if any.
            source_path: Source file path, if known.
        """
        super().__init__(
            IngestErrorInfo(
                code=IngestErrorCode.ENCODING_ERROR,
                message=(
                    "This file is not valid text or has an unsupported encoding. "
                    f"{hint}"
                ),
                details=IngestErrorDetails(
                    encoding=encoding, hint=hint, source_path=source_path
                ),
            )
        )
        self.hint = hint
        self.encoding = encoding


class SubtitleFormatError(IngestError):
    """Structural SRT malformation at a specific line."""

    def __init__(
        self, line_number: int, reason: str, *, source_path: str | None = None
    ) -> None:
        """Initialize the format error.

        Args:
            line_number: 1-based line number where parsing failed.
            reason: Human-actionable description of the problem.
            source_path: Source file path, if known.
        """
        super().__init__(
            IngestErrorInfo(
                code=IngestErrorCode.FORMAT_ERROR,
                message=f"Invalid SRT format on line {line_number}: {reason}",
                details=IngestErrorDetails(
                    line_number=line_number, source_path=source_path
                ),
            )
        )
        self.line_number = line_number
        self.reason = reason


@runtime_checkable
class SubtitleIngestProtocol(Protocol):
    """Protocol for loading subtitle documents."""

    async def load_document(self, source_path: str) -> SrtDocument:
        """Load and parse a subtitle file.

        Raises:
            IngestError: For unreadable, undecodable, or malformed files.
        """
        raise NotImplementedError


def build_ingest_started_log(
    timestamp: Timestamp, job_id: JobId | None, source_path: str
) -> LogEntry:
    """Build a log entry for ingest start.

    Args:
        timestamp: ISO-8601 timestamp.
        job_id: Job identifier when ingest runs inside a job.
        source_path: Subtitle file path.

    Returns:
        LogEntry: Structured ingest log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=IngestEvent.STARTED,
        job_id=job_id,
        message="Ingest started",
        data=IngestStartedData(source_path=source_path).model_dump(),
    )


def build_ingest_completed_log(
    timestamp: Timestamp,
    job_id: JobId | None,
    source_path: str,
    document: SrtDocument,
) -> LogEntry:
    """Build a log entry for ingest completion.

    Args:
        timestamp: ISO-8601 timestamp.
        job_id: Job identifier when ingest runs inside a job.
        source_path: Subtitle file path.
        document: Parsed document.

    Returns:
        LogEntry: Structured ingest log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=IngestEvent.COMPLETED,
        job_id=job_id,
        message="Ingest completed",
        data=IngestCompletedData(
            source_path=source_path,
            cue_count=len(document.cues),
            newline=str(document.newline),
        ).model_dump(),
    )


def build_ingest_failed_log(
    timestamp: Timestamp,
    job_id: JobId | None,
    source_path: str,
    error: IngestErrorInfo,
) -> LogEntry:
    """Build a log entry for ingest failure.

    Args:
        timestamp: ISO-8601 timestamp.
        job_id: Job identifier when ingest runs inside a job.
        source_path: Subtitle file path.
        error: Ingest error details.

    Returns:
        LogEntry: Structured ingest log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=IngestEvent.FAILED,
        job_id=job_id,
        message="Ingest failed",
        data=IngestFailedData(
            source_path=source_path,
            error_code=str(error.code),
            error_message=error.message,
        ).model_dump(),
    )
