"""API response envelope schemas for CLI output."""

from __future__ import annotations

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import JobId, JobStatus, NewlineStyle, Timestamp


class MetaInfo(BaseSchema):
    """Metadata for API responses."""

    timestamp: Timestamp = Field(..., description="ISO-8601 response timestamp")


class ErrorDetails(BaseSchema):
    """Detailed error context for responses."""

    field: str | None = Field(None, description="Field name if applicable")
    provided: str | None = Field(None, description="Provided value")
    valid_options: list[str] | None = Field(
        None, description="Valid options if applicable"
    )


class ErrorResponse(BaseSchema):
    """Error information in response."""

    code: str = Field(..., min_length=1, description="Error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: ErrorDetails | None = Field(None, description="Optional error details")
    exit_code: int | None = Field(None, description="CLI exit code for this error")


class ApiResponse[ResponseData](BaseSchema):
    """Generic API response envelope."""

    data: ResponseData | None = Field(
        None, description="Success payload, null on error"
    )
    error: ErrorResponse | None = Field(
        None, description="Error information, null on success"
    )
    meta: MetaInfo = Field(..., description="Response metadata")


class InspectResult(BaseSchema):
    """Result payload for the CLI inspect command."""

    source_path: str = Field(..., min_length=1, description="Inspected file")
    cue_count: int = Field(..., ge=1, description="Parsed cue count")
    newline: NewlineStyle = Field(..., description="Detected newline style")
    first_timing: str = Field(..., min_length=1, description="First timing line")
    last_timing: str = Field(..., min_length=1, description="Last timing line")
    batch_count: int = Field(..., ge=1, description="Planned batch count")


class TranslateResult(BaseSchema):
    """Result payload for the CLI translate command."""

    job_id: JobId = Field(..., description="Job identifier")
    status: JobStatus = Field(..., description="Final job status")
    source_path: str = Field(..., min_length=1, description="Source file")
    output_path: str = Field(..., min_length=1, description="Written output file")
    cue_count: int = Field(..., ge=1, description="Translated cue count")
    log_file: str | None = Field(None, description="JSONL log file if enabled")
    progress_file: str | None = Field(None, description="JSONL progress stream")
