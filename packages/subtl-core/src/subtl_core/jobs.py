"""In-process store for imported subtitle files and translation jobs."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from subtl_core.orchestrator import MonotonicFn, TranslationOrchestrator
from subtl_core.ports.export import (
    ExportResult,
    SubtitleExportProtocol,
    build_export_completed_log,
)
from subtl_core.ports.ingest import (
    IngestError,
    SubtitleIngestProtocol,
    build_ingest_completed_log,
    build_ingest_failed_log,
    build_ingest_started_log,
)
from subtl_core.ports.jobs import (
    JobStoreError,
    JobStoreErrorCode,
    JobStoreErrorDetails,
    JobStoreErrorInfo,
)
from subtl_core.ports.llm import TranslationClientProtocol
from subtl_core.ports.orchestrator import LogSinkProtocol, ProgressSinkProtocol
from subtl_core.retry import SleepFn
from subtl_core.telemetry import TranslationTelemetryEmitter, now_timestamp
from subtl_schemas.config import TranslationOptions
from subtl_schemas.events import ProgressEvent
from subtl_schemas.jobs import FileItem, JobInfo
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import (
    FileId,
    JobId,
    JobStatus,
    NewlineStyle,
    Timestamp,
)
from subtl_schemas.progress import ProgressUpdate
from subtl_schemas.subtitles import SrtDocument


@dataclass(slots=True)
class _FileRecord:
    item: FileItem
    document: SrtDocument


@dataclass(slots=True)
class _JobRecord:
    info: JobInfo
    options: TranslationOptions
    translations: Mapping[int, str] | None = None


class _JobProgressMirror:
    """Progress sink that copies progress into the job snapshot."""

    def __init__(
        self, record: _JobRecord, inner: ProgressSinkProtocol | None
    ) -> None:
        self._record = record
        self._inner = inner

    async def emit_progress(self, update: ProgressUpdate) -> None:
        if (
            update.event == ProgressEvent.TRANSLATION_PROGRESS
            and update.progress is not None
        ):
            self._record.info.progress = update.progress.percent
            self._record.info.eta_seconds = update.progress.eta_seconds
        if self._inner is not None:
            await self._inner.emit_progress(update)


class JobStore:
    """Registry of imported files and the jobs that translate them.

    Replaces process-wide job tables with an explicit object so several
    stores can coexist (one per CLI invocation or per test).
    """

    def __init__(
        self,
        *,
        ingest: SubtitleIngestProtocol,
        export: SubtitleExportProtocol,
        client: TranslationClientProtocol,
        log_sink: LogSinkProtocol | None = None,
        progress_sink: ProgressSinkProtocol | None = None,
        clock: Callable[[], Timestamp] = now_timestamp,
        sleep: SleepFn = asyncio.sleep,
        monotonic: MonotonicFn = time.monotonic,
    ) -> None:
        """Initialize the job store.

        Args:
            ingest: Adapter that loads subtitle documents.
            export: Adapter that writes translated documents.
            client: Remote translation client shared by all jobs.
            log_sink: Optional log sink for ingest, job and export events.
            progress_sink: Optional progress sink for job updates.
            clock: Timestamp provider for emitted events.
            sleep: Sleep function used for pacing and backoff.
            monotonic: Monotonic clock used for ETA estimates.
        """
        self._ingest = ingest
        self._export = export
        self._client = client
        self._log_sink = log_sink
        self._progress_sink = progress_sink
        self._clock = clock
        self._sleep = sleep
        self._monotonic = monotonic
        self._files: dict[FileId, _FileRecord] = {}
        self._jobs: dict[JobId, _JobRecord] = {}

    async def import_file(self, source_path: str) -> FileItem:
        """Decode a subtitle file and register it.

        Args:
            source_path: Path to the subtitle file.

        Returns:
            FileItem: Registered file summary.

        Raises:
            IngestError: If the file cannot be read or parsed.
        """
        resolved = str(Path(source_path).expanduser().resolve())
        await self._log(build_ingest_started_log(self._clock(), None, resolved))
        try:
            document = await self._ingest.load_document(resolved)
        except IngestError as exc:
            await self._log(
                build_ingest_failed_log(self._clock(), None, resolved, exc.info)
            )
            raise
        await self._log(
            build_ingest_completed_log(self._clock(), None, resolved, document)
        )
        item = FileItem(
            id=uuid4(),
            name=Path(resolved).name,
            path=resolved,
            cue_count=len(document.cues),
            newline=NewlineStyle(document.newline),
        )
        self._files[item.id] = _FileRecord(item=item, document=document)
        return item

    def list_files(self) -> list[FileItem]:
        """Return registered files in import order.

        Returns:
            list[FileItem]: File summaries.
        """
        return [record.item for record in self._files.values()]

    def remove_file(self, file_id: FileId) -> None:
        """Unregister a file.

        Args:
            file_id: File identifier.

        Raises:
            JobStoreError: If the file is unknown or a running job uses it.
        """
        self._get_file(file_id)
        for record in self._jobs.values():
            if (
                record.info.file_id == file_id
                and record.info.status == JobStatus.RUNNING
            ):
                raise _store_error(
                    JobStoreErrorCode.INVALID_STATE,
                    f"File {file_id} is in use by running job {record.info.id}",
                    entity="file",
                    entity_id=file_id,
                    status=str(record.info.status),
                )
        del self._files[file_id]

    def create_job(
        self,
        file_id: FileId,
        options: TranslationOptions,
        *,
        job_id: JobId | None = None,
    ) -> JobInfo:
        """Queue a translation job for a registered file.

        Args:
            file_id: File to translate.
            options: Translation options for the job.
            job_id: Optional identifier to use instead of a generated one.

        Returns:
            JobInfo: Snapshot of the queued job.

        Raises:
            JobStoreError: If the file is unknown.
        """
        self._get_file(file_id)
        if job_id is not None and job_id in self._jobs:
            raise _store_error(
                JobStoreErrorCode.INVALID_STATE,
                f"Job already exists: {job_id}",
                entity="job",
                entity_id=job_id,
            )
        info = JobInfo(
            id=job_id or uuid4(), file_id=file_id, status=JobStatus.QUEUED
        )
        self._jobs[info.id] = _JobRecord(info=info, options=options)
        return info.model_copy()

    def get_job(self, job_id: JobId) -> JobInfo:
        """Return a snapshot of one job.

        Args:
            job_id: Job identifier.

        Returns:
            JobInfo: Job snapshot.

        Raises:
            JobStoreError: If the job is unknown.
        """
        return self._get_job(job_id).info.model_copy()

    def list_jobs(self) -> list[JobInfo]:
        """Return snapshots of every job in creation order.

        Returns:
            list[JobInfo]: Job snapshots.
        """
        return [record.info.model_copy() for record in self._jobs.values()]

    def get_translations(self, job_id: JobId) -> Mapping[int, str] | None:
        """Return the translations of a finished job.

        Args:
            job_id: Job identifier.

        Returns:
            Mapping[int, str] | None: Translations, or None before completion.

        Raises:
            JobStoreError: If the job is unknown.
        """
        return self._get_job(job_id).translations

    async def start_job(self, job_id: JobId, output_path: str | None = None) -> JobInfo:
        """Run a queued job to completion and write its output file.

        Args:
            job_id: Job identifier.
            output_path: Optional explicit output path; defaults to the path
                derived from the source file.

        Returns:
            JobInfo: Snapshot of the finished job.

        Raises:
            JobStoreError: If the job or its file is unknown, or the job is
                not queued.
            TranslationError: If translation fails.
            ExportError: If writing the output fails.
        """
        record = self._get_job(job_id)
        if record.info.status != JobStatus.QUEUED:
            raise _store_error(
                JobStoreErrorCode.INVALID_STATE,
                f"Job {job_id} is {record.info.status}; only queued jobs can start",
                entity="job",
                entity_id=job_id,
                status=str(record.info.status),
            )
        file_record = self._get_file(record.info.file_id)
        record.info.status = JobStatus.RUNNING

        telemetry = TranslationTelemetryEmitter(
            progress_sink=_JobProgressMirror(record, self._progress_sink),
            log_sink=self._log_sink,
            clock=self._clock,
        )
        orchestrator = TranslationOrchestrator(
            client=self._client,
            telemetry=telemetry,
            sleep=self._sleep,
            monotonic=self._monotonic,
        )
        target = output_path or self._export.output_path_for(file_record.item.path)
        try:
            translations = await orchestrator.translate_document(
                job_id=job_id,
                document=file_record.document,
                options=record.options,
                file_name=file_record.item.name,
            )
            result = await self._export.write_output(
                target,
                file_record.document,
                translations,
                source_path=file_record.item.path,
            )
        except Exception as exc:
            record.info.status = JobStatus.ERROR
            record.info.error = str(exc) or type(exc).__name__
            record.info.eta_seconds = None
            raise
        await self._log(build_export_completed_log(self._clock(), job_id, result))
        self._finish(record, translations, result)
        return record.info.model_copy()

    def _finish(
        self,
        record: _JobRecord,
        translations: Mapping[int, str],
        result: ExportResult,
    ) -> None:
        record.translations = translations
        record.info.status = JobStatus.DONE
        record.info.progress = 100.0
        record.info.eta_seconds = 0
        record.info.output_path = result.output_path

    def _get_file(self, file_id: FileId) -> _FileRecord:
        record = self._files.get(file_id)
        if record is None:
            raise _store_error(
                JobStoreErrorCode.NOT_FOUND,
                f"File not found: {file_id}",
                entity="file",
                entity_id=file_id,
            )
        return record

    def _get_job(self, job_id: JobId) -> _JobRecord:
        record = self._jobs.get(job_id)
        if record is None:
            raise _store_error(
                JobStoreErrorCode.NOT_FOUND,
                f"Job not found: {job_id}",
                entity="job",
                entity_id=job_id,
            )
        return record

    async def _log(self, entry: LogEntry) -> None:
        if self._log_sink is not None:
            await self._log_sink.emit_log(entry)


def _store_error(
    code: JobStoreErrorCode,
    message: str,
    *,
    entity: str,
    entity_id: FileId | JobId,
    status: str | None = None,
) -> JobStoreError:
    return JobStoreError(
        JobStoreErrorInfo(
            code=code,
            message=message,
            details=JobStoreErrorDetails(
                entity=entity, entity_id=str(entity_id), status=status
            ),
        )
    )
