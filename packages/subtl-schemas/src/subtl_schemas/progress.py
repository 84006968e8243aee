"""Progress and batch status schemas streamed while a job runs."""

from __future__ import annotations

from pydantic import Field, model_validator

from subtl_schemas.base import BaseSchema
from subtl_schemas.events import ProgressEvent
from subtl_schemas.primitives import BatchStatus, JobId, Timestamp

TRANSLATING_STAGE = "translating"


class TranslationProgress(BaseSchema):
    """Cue-level progress snapshot for one job."""

    job_id: JobId = Field(..., description="Job identifier")
    file_name: str = Field(..., min_length=1, description="Source file name")
    done_cues: int = Field(..., ge=0, description="Cues translated so far")
    total_cues: int = Field(..., ge=1, description="Cues in the document")
    percent: float = Field(..., ge=0, le=100, description="Completion percent")
    eta_seconds: int = Field(..., ge=0, description="Estimated seconds remaining")
    stage: str = Field(
        TRANSLATING_STAGE, min_length=1, description="Stage label for display"
    )

    @model_validator(mode="after")
    def _validate_counts(self) -> TranslationProgress:
        if self.done_cues > self.total_cues:
            raise ValueError("done_cues must not exceed total_cues")
        return self


class BatchStatusUpdate(BaseSchema):
    """Lifecycle status for one batch."""

    job_id: JobId = Field(..., description="Job identifier")
    batch_no: int = Field(..., ge=0, description="Batch number")
    total_batches: int = Field(..., ge=1, description="Planned batch count")
    status: BatchStatus = Field(..., description="Batch status")
    cue_start: int = Field(..., ge=0, description="First cue id in the batch")
    cue_end: int = Field(..., ge=0, description="Last cue id in the batch")
    error_message: str | None = Field(None, description="Error message on failure")


class ProgressUpdate(BaseSchema):
    """Incremental progress update suitable for logs or streaming."""

    job_id: JobId = Field(..., description="Job identifier")
    event: ProgressEvent = Field(..., description="Progress event name in snake_case")
    timestamp: Timestamp = Field(..., description="Update timestamp")
    progress: TranslationProgress | None = Field(
        None, description="Optional cue progress payload"
    )
    batch: BatchStatusUpdate | None = Field(
        None, description="Optional batch status payload"
    )
    message: str | None = Field(None, description="Optional progress message")

    @model_validator(mode="after")
    def _validate_payload(self) -> ProgressUpdate:
        if self.event == ProgressEvent.TRANSLATION_PROGRESS and self.progress is None:
            raise ValueError("translation_progress updates require progress")
        if (
            self.event in (ProgressEvent.BATCH_STATUS, ProgressEvent.BATCH_RETRY)
            and self.batch is None
        ):
            raise ValueError("batch updates require a batch payload")
        return self
