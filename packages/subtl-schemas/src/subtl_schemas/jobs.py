"""Schemas for imported files and translation jobs."""

from __future__ import annotations

from pydantic import Field

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import FileId, JobId, JobStatus, NewlineStyle


class FileItem(BaseSchema):
    """Subtitle file registered in the job store."""

    id: FileId = Field(..., description="File identifier")
    name: str = Field(..., min_length=1, description="File name")
    path: str = Field(..., min_length=1, description="Absolute source path")
    cue_count: int = Field(..., ge=1, description="Parsed cue count")
    newline: NewlineStyle = Field(..., description="Detected newline style")


class JobInfo(BaseSchema):
    """Snapshot of a translation job."""

    id: JobId = Field(..., description="Job identifier")
    file_id: FileId = Field(..., description="Source file identifier")
    status: JobStatus = Field(..., description="Job status")
    progress: float = Field(0.0, ge=0, le=100, description="Completion percent")
    eta_seconds: int | None = Field(None, ge=0, description="Estimated seconds left")
    output_path: str | None = Field(None, description="Written output path")
    error: str | None = Field(None, description="Terminal error message")
