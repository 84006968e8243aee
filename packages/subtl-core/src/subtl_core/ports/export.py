"""Protocol definitions and errors for subtitle export."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.events import ExportCompletedData, ExportEvent
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import JobId, LogLevel, Timestamp
from subtl_schemas.responses import ErrorDetails, ErrorResponse
from subtl_schemas.subtitles import SrtDocument


class ExportErrorCode(StrEnum):
    """Categorized error codes for export failures."""

    COUNT_MISMATCH = "count_mismatch"
    MISSING_TRANSLATION = "missing_translation"
    INVALID_TARGET = "invalid_target"
    IO_ERROR = "io_error"


class ExportErrorDetails(BaseSchema):
    """Detailed export error context."""

    expected_count: int | None = Field(None, ge=0, description="Expected entries")
    actual_count: int | None = Field(None, ge=0, description="Provided entries")
    cue_id: int | None = Field(None, ge=0, description="Cue id without translation")
    output_path: str | None = Field(None, description="Export output path")


class ExportErrorInfo(BaseSchema):
    """Structured export error data."""

    code: ExportErrorCode = Field(..., description="Export error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ExportErrorDetails | None = Field(None, description="Error details")

    def to_error_response(self) -> ErrorResponse:
        """Convert export error info to the standard error response schema.

        Returns:
            ErrorResponse: Standard response error payload.
        """
        details: ErrorDetails | None = None
        if self.details is not None and self.details.output_path is not None:
            details = ErrorDetails(
                field="output_path", provided=self.details.output_path
            )
        code_value = getattr(self.code, "value", self.code)
        return ErrorResponse(
            code=str(code_value), message=self.message, details=details
        )


class ExportError(Exception):
    """Export error with structured details."""

    def __init__(self, info: ExportErrorInfo) -> None:
        """Initialize the export error.

        Args:
            info: Structured export error information.
        """
        super().__init__(info.message)
        self.info = info


class ExportResult(BaseSchema):
    """Summary of a written subtitle file."""

    output_path: str = Field(..., min_length=1, description="Written file path")
    cue_count: int = Field(..., ge=1, description="Cues written")
    newline: str = Field(..., min_length=1, description="Newline style used")


@runtime_checkable
class SubtitleExportProtocol(Protocol):
    """Protocol for writing translated subtitle documents."""

    def output_path_for(self, source_path: str) -> str:
        """Return the default output path for a source file."""
        raise NotImplementedError

    async def write_output(
        self,
        target_path: str,
        document: SrtDocument,
        translations: Mapping[int, str],
        *,
        source_path: str | None = None,
    ) -> ExportResult:
        """Render and write a translated document.

        Raises:
            ExportError: If the translations are incomplete or writing fails.
        """
        raise NotImplementedError


def build_export_completed_log(
    timestamp: Timestamp, job_id: JobId | None, result: ExportResult
) -> LogEntry:
    """Build a log entry for export completion.

    Args:
        timestamp: ISO-8601 timestamp.
        job_id: Job identifier.
        result: Export result summary.

    Returns:
        LogEntry: Structured export log entry.
    """
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=ExportEvent.COMPLETED,
        job_id=job_id,
        message="Export completed",
        data=ExportCompletedData(
            output_path=result.output_path, cue_count=result.cue_count
        ).model_dump(),
    )
