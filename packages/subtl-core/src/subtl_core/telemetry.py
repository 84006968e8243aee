"""Emit structured translation telemetry to log and progress sinks."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from subtl_core.ports.orchestrator import LogSinkProtocol, ProgressSinkProtocol
from subtl_schemas.batches import TranslationBatch
from subtl_schemas.events import (
    BatchEvent,
    BatchRetryData,
    JobCompletedData,
    JobEvent,
    JobFailedData,
    JobStartedData,
    ProgressEvent,
)
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import (
    BatchStatus,
    EventName,
    JobId,
    JobStatus,
    JsonValue,
    LogLevel,
    Timestamp,
)
from subtl_schemas.progress import (
    BatchStatusUpdate,
    ProgressUpdate,
    TranslationProgress,
)


def now_timestamp() -> Timestamp:
    """Return the current UTC time as an ISO-8601 string with a Z suffix.

    Returns:
        Timestamp: Current timestamp.
    """
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


_BATCH_LOG_EVENTS: dict[str, BatchEvent] = {
    BatchStatus.RUNNING.value: BatchEvent.RUNNING,
    BatchStatus.DONE.value: BatchEvent.DONE,
    BatchStatus.ERROR.value: BatchEvent.ERROR,
}


class TranslationTelemetryEmitter:
    """Emit job, batch and progress updates to progress/log sinks.

    Delivery is best-effort: a failing sink never fails the job.
    """

    def __init__(
        self,
        *,
        progress_sink: ProgressSinkProtocol | None,
        log_sink: LogSinkProtocol | None,
        clock: Callable[[], Timestamp],
    ) -> None:
        """Initialize the telemetry emitter.

        Args:
            progress_sink: Optional progress sink for streaming updates.
            log_sink: Optional log sink for JSONL entries.
            clock: Timestamp provider for telemetry events.
        """
        self._progress_sink = progress_sink
        self._log_sink = log_sink
        self._clock = clock

    async def job_started(
        self,
        *,
        job_id: JobId,
        file_name: str,
        total_cues: int,
        total_batches: int,
        max_parallel_requests: int,
    ) -> None:
        """Announce that a job has planned its batches and is dispatching."""
        data = JobStartedData(
            file_name=file_name,
            total_cues=total_cues,
            total_batches=total_batches,
            max_parallel_requests=max_parallel_requests,
        )
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.JOB_STARTED,
            log_event=JobEvent.STARTED,
            level=LogLevel.INFO,
            message=f"Translating {file_name}: {total_cues} cues "
            f"in {total_batches} batches",
            data=data.model_dump(),
        )

    async def batch_status(
        self,
        *,
        job_id: JobId,
        batch: TranslationBatch,
        total_batches: int,
        status: BatchStatus,
        error_message: str | None = None,
    ) -> None:
        """Announce a batch lifecycle transition."""
        update = BatchStatusUpdate(
            job_id=job_id,
            batch_no=batch.batch_no,
            total_batches=total_batches,
            status=status,
            cue_start=batch.cue_start,
            cue_end=batch.cue_end,
            error_message=error_message,
        )
        level = LogLevel.ERROR if status == BatchStatus.ERROR else LogLevel.INFO
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.BATCH_STATUS,
            log_event=_BATCH_LOG_EVENTS.get(str(status), BatchEvent.RUNNING),
            level=level,
            message=error_message or f"Batch {batch.batch_no} {status}",
            data=update.model_dump(mode="json", exclude_none=True),
            batch=update,
        )

    async def batch_retry(
        self,
        *,
        job_id: JobId,
        batch: TranslationBatch,
        total_batches: int,
        attempt: int,
        delay_s: float,
        error_message: str,
    ) -> None:
        """Warn that a batch attempt failed and will be retried."""
        update = BatchStatusUpdate(
            job_id=job_id,
            batch_no=batch.batch_no,
            total_batches=total_batches,
            status=BatchStatus.RUNNING,
            cue_start=batch.cue_start,
            cue_end=batch.cue_end,
            error_message=error_message,
        )
        data = BatchRetryData(
            batch_no=batch.batch_no,
            attempt=attempt,
            delay_s=delay_s,
            error_message=error_message,
        )
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.BATCH_RETRY,
            log_event=BatchEvent.RETRY,
            level=LogLevel.WARN,
            message=f"Retrying batch {batch.batch_no} (attempt {attempt}): "
            f"{error_message}",
            data=data.model_dump(),
            batch=update,
        )

    async def progress(self, *, job_id: JobId, progress: TranslationProgress) -> None:
        """Report cue progress and ETA."""
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.TRANSLATION_PROGRESS,
            log_event=ProgressEvent.TRANSLATION_PROGRESS,
            level=LogLevel.DEBUG,
            message=f"{progress.done_cues}/{progress.total_cues} cues translated",
            data=progress.model_dump(mode="json"),
            progress=progress,
        )

    async def job_completed(self, *, job_id: JobId, translated_cues: int) -> None:
        """Announce that every batch finished successfully."""
        data = JobCompletedData(
            status=JobStatus.DONE, translated_cues=translated_cues
        )
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.JOB_COMPLETED,
            log_event=JobEvent.COMPLETED,
            level=LogLevel.INFO,
            message="Translation completed",
            data=data.model_dump(),
        )

    async def job_failed(
        self, *, job_id: JobId, error_code: str, error_message: str
    ) -> None:
        """Announce the job's terminal error."""
        data = JobFailedData(error_code=error_code, error_message=error_message)
        await self._emit(
            job_id=job_id,
            progress_event=ProgressEvent.JOB_FAILED,
            log_event=JobEvent.FAILED,
            level=LogLevel.ERROR,
            message=error_message,
            data=data.model_dump(),
        )

    async def _emit(
        self,
        *,
        job_id: JobId,
        progress_event: ProgressEvent,
        log_event: EventName,
        level: LogLevel,
        message: str,
        data: dict[str, JsonValue],
        progress: TranslationProgress | None = None,
        batch: BatchStatusUpdate | None = None,
    ) -> None:
        timestamp = self._clock()
        if self._progress_sink is not None:
            update = ProgressUpdate(
                job_id=job_id,
                event=progress_event,
                timestamp=timestamp,
                progress=progress,
                batch=batch,
                message=message,
            )
            try:
                await self._progress_sink.emit_progress(update)
            except Exception as exc:
                await self._report_dropped(job_id, progress_event, exc)

        if self._log_sink is not None:
            entry = LogEntry(
                timestamp=timestamp,
                level=level,
                event=log_event,
                job_id=job_id,
                message=message,
                data=data,
            )
            try:
                await self._log_sink.emit_log(entry)
            except Exception:
                # The log sink itself is unavailable; nothing left to report to.
                return

    async def _report_dropped(
        self, job_id: JobId, event: ProgressEvent, exc: Exception
    ) -> None:
        if self._log_sink is None:
            return
        entry = LogEntry(
            timestamp=self._clock(),
            level=LogLevel.WARN,
            event="telemetry_dropped",
            job_id=job_id,
            message=f"Progress sink failed for {event}: {exc}",
            data={"event": str(event), "error_type": type(exc).__name__},
        )
        try:
            await self._log_sink.emit_log(entry)
        except Exception:
            return
