"""Unit tests for the in-process job store."""

from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import uuid4

import pytest

from subtl_core.jobs import JobStore
from subtl_core.ports.export import ExportError
from subtl_core.ports.ingest import IngestError
from subtl_core.ports.jobs import JobStoreError, JobStoreErrorCode
from subtl_core.ports.llm import TranslationClientProtocol, TransportError
from subtl_core.ports.orchestrator import LogSinkProtocol
from subtl_io.export.srt_adapter import SrtExportAdapter
from subtl_io.ingest.srt_adapter import SrtIngestAdapter
from subtl_io.storage import InMemoryProgressSink
from subtl_schemas.config import RetryConfig, TranslationOptions
from subtl_schemas.events import ExportEvent, IngestEvent
from subtl_schemas.llm import LlmPromptRequest, LlmPromptResponse
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import JobStatus
from tests.helpers.fakes import EchoTranslationClient, no_sleep

OPTIONS = TranslationOptions(retry=RetryConfig(max_retries=0, min_delay_s=0.0))


class _RecordingLogSink(LogSinkProtocol):
    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def emit_log(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class _FailingClient(TranslationClientProtocol):
    async def run_prompt(self, request: LlmPromptRequest) -> LlmPromptResponse:
        raise TransportError("endpoint unreachable")


def _store(
    client: TranslationClientProtocol | None = None,
    *,
    log_sink: LogSinkProtocol | None = None,
    progress_sink: InMemoryProgressSink | None = None,
) -> JobStore:
    return JobStore(
        ingest=SrtIngestAdapter(),
        export=SrtExportAdapter(),
        client=client or EchoTranslationClient(),
        log_sink=log_sink,
        progress_sink=progress_sink,
        sleep=no_sleep,
    )


def test_import_file_registers_document(sample_srt_path: Path) -> None:
    """Importing parses the file and lists it."""
    logs = _RecordingLogSink()
    store = _store(log_sink=logs)

    item = asyncio.run(store.import_file(str(sample_srt_path)))

    assert item.name == "episode.srt"
    assert item.cue_count == 2
    assert item.newline == "lf"
    assert store.list_files() == [item]
    assert [entry.event for entry in logs.entries] == [
        IngestEvent.STARTED,
        IngestEvent.COMPLETED,
    ]


def test_import_invalid_file_logs_failure(tmp_path: Path) -> None:
    """A malformed file raises and logs an ingest failure."""
    path = tmp_path / "bad.srt"
    path.write_text("not a subtitle\n", encoding="utf-8")
    logs = _RecordingLogSink()
    store = _store(log_sink=logs)

    with pytest.raises(IngestError):
        asyncio.run(store.import_file(str(path)))

    assert logs.entries[-1].event == IngestEvent.FAILED
    assert store.list_files() == []


def test_full_job_flow_writes_output(sample_srt_path: Path) -> None:
    """A started job translates, writes output and finishes done."""
    logs = _RecordingLogSink()
    progress = InMemoryProgressSink()
    store = _store(log_sink=logs, progress_sink=progress)

    async def _run() -> None:
        item = await store.import_file(str(sample_srt_path))
        job = store.create_job(item.id, OPTIONS)
        assert job.status == JobStatus.QUEUED
        finished = await store.start_job(job.id)
        assert finished.status == JobStatus.DONE
        assert finished.progress == 100.0
        assert finished.eta_seconds == 0
        assert finished.output_path is not None
        output = Path(finished.output_path)
        assert output.name == "episode_translated.srt"
        assert "T:Hello" in output.read_text(encoding="utf-8")
        translations = store.get_translations(job.id)
        assert translations is not None
        assert translations[0] == "T:Hello"

    asyncio.run(_run())

    assert progress.updates
    assert logs.entries[-1].event == ExportEvent.COMPLETED


def test_explicit_output_path_is_used(sample_srt_path: Path, tmp_path: Path) -> None:
    """An explicit output path overrides the derived one."""
    store = _store()
    target = tmp_path / "out" / "custom.srt"

    async def _run() -> str | None:
        item = await store.import_file(str(sample_srt_path))
        job = store.create_job(item.id, OPTIONS)
        finished = await store.start_job(job.id, output_path=str(target))
        return finished.output_path

    assert asyncio.run(_run()) == str(target)
    assert target.exists()


def test_failed_job_records_error(sample_srt_path: Path) -> None:
    """A translation failure leaves the job in error with a message."""
    store = _store(_FailingClient())

    async def _run() -> None:
        item = await store.import_file(str(sample_srt_path))
        job = store.create_job(item.id, OPTIONS)
        with pytest.raises(TransportError):
            await store.start_job(job.id)
        info = store.get_job(job.id)
        assert info.status == JobStatus.ERROR
        assert info.error is not None
        assert "endpoint unreachable" in info.error
        assert store.get_translations(job.id) is None

    asyncio.run(_run())
    assert not (sample_srt_path.parent / "episode_translated.srt").exists()


def test_export_over_source_fails_job(sample_srt_path: Path) -> None:
    """Targeting the source file fails the job without touching it."""
    original = sample_srt_path.read_text(encoding="utf-8")
    store = _store()

    async def _run() -> None:
        item = await store.import_file(str(sample_srt_path))
        job = store.create_job(item.id, OPTIONS)
        with pytest.raises(ExportError):
            await store.start_job(job.id, output_path=str(sample_srt_path))
        assert store.get_job(job.id).status == JobStatus.ERROR

    asyncio.run(_run())
    assert sample_srt_path.read_text(encoding="utf-8") == original


def test_job_can_only_start_once(sample_srt_path: Path) -> None:
    """Finished jobs cannot be started again."""
    store = _store()

    async def _run() -> None:
        item = await store.import_file(str(sample_srt_path))
        job = store.create_job(item.id, OPTIONS)
        await store.start_job(job.id)
        with pytest.raises(JobStoreError) as exc_info:
            await store.start_job(job.id)
        assert exc_info.value.info.code == JobStoreErrorCode.INVALID_STATE

    asyncio.run(_run())


def test_unknown_ids_are_not_found() -> None:
    """Unknown file and job ids raise not-found errors."""
    store = _store()

    with pytest.raises(JobStoreError) as job_error:
        store.get_job(uuid4())
    with pytest.raises(JobStoreError) as file_error:
        store.create_job(uuid4(), OPTIONS)

    assert job_error.value.info.code == JobStoreErrorCode.NOT_FOUND
    assert file_error.value.info.code == JobStoreErrorCode.NOT_FOUND
    response = job_error.value.info.to_error_response()
    assert response.code == "not_found"
    assert response.details is not None
    assert response.details.field == "job"


def test_create_job_rejects_duplicate_id(sample_srt_path: Path) -> None:
    """A caller-supplied job id must be unused."""
    store = _store()
    item = asyncio.run(store.import_file(str(sample_srt_path)))
    job_id = uuid4()
    store.create_job(item.id, OPTIONS, job_id=job_id)

    with pytest.raises(JobStoreError, match="already exists"):
        store.create_job(item.id, OPTIONS, job_id=job_id)


def test_remove_file_and_list_jobs(sample_srt_path: Path) -> None:
    """Files can be removed and jobs listed as snapshots."""
    store = _store()
    item = asyncio.run(store.import_file(str(sample_srt_path)))
    job = store.create_job(item.id, OPTIONS)

    snapshots = store.list_jobs()
    snapshots[0].progress = 50.0
    store.remove_file(item.id)

    assert store.list_files() == []
    assert store.get_job(job.id).progress == 0.0
    with pytest.raises(JobStoreError):
        store.remove_file(item.id)
