"""CLI entry point - thin adapter over subtl-core."""

from __future__ import annotations

import asyncio
import os
import sys
import tomllib
from datetime import UTC, datetime
from pathlib import Path
from typing import NamedTuple, TypeVar
from uuid import UUID, uuid4

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from subtl_core import VERSION
from subtl_core.batching import plan_batches
from subtl_core.jobs import JobStore
from subtl_core.ports.export import ExportError, ExportErrorCode
from subtl_core.ports.ingest import IngestError, IngestErrorCode
from subtl_core.ports.jobs import JobStoreError, JobStoreErrorCode
from subtl_core.ports.llm import TranslationError, TranslationErrorCode
from subtl_core.ports.orchestrator import LogSinkProtocol, ProgressSinkProtocol
from subtl_io.export.srt_adapter import SrtExportAdapter
from subtl_io.ingest.srt_adapter import SrtIngestAdapter
from subtl_io.storage.log_sink import build_log_sink
from subtl_io.storage.progress_sink import FileSystemProgressSink
from subtl_llm import OpenAICompatibleClient
from subtl_schemas.config import ModelEndpointConfig, RunConfig
from subtl_schemas.events import (
    CommandCompletedData,
    CommandEvent,
    CommandFailedData,
    CommandStartedData,
    ProgressEvent,
)
from subtl_schemas.exit_codes import DOMAIN_PREFIXES, ExitCode, resolve_exit_code
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import (
    JobId,
    JobStatus,
    JsonValue,
    LogLevel,
    LogSinkType,
    NewlineStyle,
)
from subtl_schemas.progress import ProgressUpdate
from subtl_schemas.responses import (
    ApiResponse,
    ErrorResponse,
    InspectResult,
    MetaInfo,
    TranslateResult,
)
from subtl_schemas.validation import validate_run_config

ResponseT = TypeVar("ResponseT")

DEFAULT_CONFIG_PATH = Path("subtl.toml")

SOURCE_PATH_ARGUMENT = typer.Argument(..., help="Path to the .srt file")
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to subtl TOML config (defaults to ./subtl.toml when present)",
)
TARGET_LANGUAGE_OPTION = typer.Option(
    None, "--target", "-t", help="Target language code (e.g. en, vi, ja)"
)
SOURCE_LANGUAGE_OPTION = typer.Option(
    None, "--source", "-s", help="Source language code, or 'auto' to detect"
)
THREADS_OPTION = typer.Option(
    None, "--threads", help="Maximum parallel requests (clamped to 1-10)"
)
BATCH_SIZE_OPTION = typer.Option(None, "--batch-size", help="Cues per request")
MODEL_OPTION = typer.Option(None, "--model", help="Model identifier override")
BASE_URL_OPTION = typer.Option(
    None, "--base-url", help="OpenAI-compatible endpoint override"
)
OUTPUT_OPTION = typer.Option(
    None, "--output", "-o", help="Output path (defaults to <stem>_translated.srt)"
)

app = typer.Typer(
    help="Batched LLM subtitle translator",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    """Subtl CLI."""


@app.command()
def version() -> None:
    """Display version information."""
    rprint(f"[bold]subtl[/bold] v{VERSION}")


@app.command()
def inspect(
    source_path: Path = SOURCE_PATH_ARGUMENT,
    config_path: Path | None = CONFIG_OPTION,
    batch_size: int | None = BATCH_SIZE_OPTION,
) -> None:
    """Parse a subtitle file and report its structure.

    Raises:
        typer.Exit: When parsing fails.
    """
    try:
        config = _load_run_config(
            config_path, _build_overrides(batch_size=batch_size)
        )
        result = asyncio.run(_inspect_async(config, source_path))
        response: ApiResponse[InspectResult] = ApiResponse(
            data=result, error=None, meta=MetaInfo(timestamp=_now_timestamp())
        )
    except Exception as exc:
        response = _error_response(_error_from_exception(exc))
    print(response.model_dump_json())
    _exit_for_response(response)


@app.command()
def translate(
    source_path: Path = SOURCE_PATH_ARGUMENT,
    config_path: Path | None = CONFIG_OPTION,
    target_language: str | None = TARGET_LANGUAGE_OPTION,
    source_language: str | None = SOURCE_LANGUAGE_OPTION,
    threads: int | None = THREADS_OPTION,
    batch_size: int | None = BATCH_SIZE_OPTION,
    model_id: str | None = MODEL_OPTION,
    base_url: str | None = BASE_URL_OPTION,
    output_path: Path | None = OUTPUT_OPTION,
) -> None:
    """Translate a subtitle file and write the translated copy.

    Raises:
        typer.Exit: When translation fails.
    """
    command_run_id = uuid4()
    log_sink: LogSinkProtocol | None = None
    progress: Progress | None = None
    console: Console | None = None
    try:
        config = _load_run_config(
            config_path,
            _build_overrides(
                target_language=target_language,
                source_language=source_language,
                threads=threads,
                batch_size=batch_size,
                model_id=model_id,
                base_url=base_url,
            ),
        )
        log_path = _log_path(config, command_run_id)
        log_sink = build_log_sink(config.logging, log_path=str(log_path))
        progress_sink: ProgressSinkProtocol | None = None
        progress_path: Path | None = None
        if _file_logging_enabled(config):
            progress_path = _progress_path(config, command_run_id)
            progress_sink = FileSystemProgressSink(str(progress_path))
        if _should_render_progress():
            console = Console(stderr=True)
            progress = _build_progress(console)
            progress_sink = _ProgressReporter(progress_sink, progress, console)
        args: dict[str, JsonValue] = {
            "source_path": str(source_path),
            "config_path": str(config_path) if config_path else None,
            "target_language": config.language.target_language,
            "source_language": config.language.source_language,
            "output_path": str(output_path) if output_path else None,
        }
        _emit_command_log_sync(
            log_sink,
            _build_command_started_log(
                timestamp=_now_timestamp(),
                job_id=command_run_id,
                command="translate",
                args=args,
            ),
        )
        job_request = _TranslateRequest(
            config=config,
            source_path=source_path,
            output_path=output_path,
            job_id=command_run_id,
            log_sink=log_sink,
            progress_sink=progress_sink,
        )
        if progress is not None:
            with progress:
                result = asyncio.run(_translate_async(job_request))
        else:
            result = asyncio.run(_translate_async(job_request))
        result = result.model_copy(
            update={
                "log_file": str(log_path) if _file_logging_enabled(config) else None,
                "progress_file": str(progress_path) if progress_path else None,
            }
        )
        _emit_command_log_sync(
            log_sink,
            _build_command_completed_log(
                timestamp=_now_timestamp(),
                job_id=command_run_id,
                command="translate",
            ),
        )
        response: ApiResponse[TranslateResult] = ApiResponse(
            data=result, error=None, meta=MetaInfo(timestamp=_now_timestamp())
        )
    except Exception as exc:
        error = _error_from_exception(exc)
        if log_sink is not None:
            _emit_command_log_sync(
                log_sink,
                _build_command_failed_log(
                    timestamp=_now_timestamp(),
                    job_id=command_run_id,
                    command="translate",
                    error=error,
                ),
            )
        response = _error_response(error)
    if console is not None:
        _render_translate_summary(response.data, console=console)
        if response.error is not None:
            _render_error(response.error, console=console)
        _exit_for_response(response)
        return
    print(response.model_dump_json())
    _exit_for_response(response)


class _ConfigError(Exception):
    """Raised for CLI configuration issues."""


class _TranslateRequest(NamedTuple):
    config: RunConfig
    source_path: Path
    output_path: Path | None
    job_id: JobId
    log_sink: LogSinkProtocol
    progress_sink: ProgressSinkProtocol | None


def _now_timestamp() -> str:
    timestamp = datetime.now(UTC).isoformat()
    return timestamp.replace("+00:00", "Z")


class _ProgressReporter(ProgressSinkProtocol):
    def __init__(
        self,
        sink: ProgressSinkProtocol | None,
        progress: Progress,
        console: Console,
    ) -> None:
        self._sink = sink
        self._progress = progress
        self._console = console
        self._task: TaskID | None = None

    async def emit_progress(self, update: ProgressUpdate) -> None:
        if self._sink is not None:
            await self._sink.emit_progress(update)
        self._handle_update(update)

    def _handle_update(self, update: ProgressUpdate) -> None:
        if update.event == ProgressEvent.JOB_STARTED:
            self._console.print(update.message or "Translation started")
            return
        if update.event == ProgressEvent.BATCH_RETRY:
            self._console.print(f"[yellow]{update.message}[/yellow]")
            return
        if update.event == ProgressEvent.JOB_FAILED:
            self._console.print("[red]Translation failed[/red]")
            return
        if update.event != ProgressEvent.TRANSLATION_PROGRESS:
            return

        progress = update.progress
        if progress is None:
            return
        if self._task is None:
            self._task = self._progress.add_task(
                progress.file_name,
                total=progress.total_cues,
                completed=progress.done_cues,
            )
        else:
            self._progress.update(
                self._task,
                total=progress.total_cues,
                completed=progress.done_cues,
            )
        self._progress.refresh()


def _should_render_progress() -> bool:
    return sys.stderr.isatty()


def _build_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeRemainingColumn(),
        console=console,
    )


async def _inspect_async(config: RunConfig, source_path: Path) -> InspectResult:
    document = await SrtIngestAdapter().load_document(str(source_path))
    batches = plan_batches(document.cues, config.batch)
    return InspectResult(
        source_path=str(source_path),
        cue_count=len(document.cues),
        newline=NewlineStyle(document.newline),
        first_timing=document.cues[0].timing_line,
        last_timing=document.cues[-1].timing_line,
        batch_count=len(batches),
    )


async def _translate_async(request: _TranslateRequest) -> TranslateResult:
    config = request.config
    client = OpenAICompatibleClient(
        endpoint=config.endpoint,
        model=config.model,
        api_key=_require_api_key(config.endpoint),
    )
    store = JobStore(
        ingest=SrtIngestAdapter(),
        export=SrtExportAdapter(config.output.suffix),
        client=client,
        log_sink=request.log_sink,
        progress_sink=request.progress_sink,
    )
    file_item = await store.import_file(str(request.source_path))
    job = store.create_job(
        file_item.id, config.translation_options(), job_id=request.job_id
    )
    output_path = str(request.output_path) if request.output_path else None
    finished = await store.start_job(job.id, output_path=output_path)
    if finished.output_path is None:
        raise RuntimeError("Job finished without an output path")
    return TranslateResult(
        job_id=finished.id,
        status=JobStatus(finished.status),
        source_path=file_item.path,
        output_path=finished.output_path,
        cue_count=file_item.cue_count,
    )


def _build_overrides(
    *,
    target_language: str | None = None,
    source_language: str | None = None,
    threads: int | None = None,
    batch_size: int | None = None,
    model_id: str | None = None,
    base_url: str | None = None,
) -> dict[str, dict[str, JsonValue]]:
    candidates: dict[tuple[str, str], JsonValue] = {
        ("language", "target_language"): target_language,
        ("language", "source_language"): source_language,
        ("concurrency", "max_parallel_requests"): threads,
        ("batch", "batch_size"): batch_size,
        ("model", "model_id"): model_id,
        ("endpoint", "base_url"): base_url,
    }
    overrides: dict[str, dict[str, JsonValue]] = {}
    for (section, key), value in candidates.items():
        if value is None:
            continue
        overrides.setdefault(section, {})[key] = value
    return overrides


def _load_run_config(
    config_path: Path | None,
    overrides: dict[str, dict[str, JsonValue]] | None = None,
) -> RunConfig:
    resolved_path = config_path or DEFAULT_CONFIG_PATH
    _load_dotenv(resolved_path)
    payload: dict[str, JsonValue] = {}
    if resolved_path.exists():
        payload = _read_config_payload(resolved_path)
    elif config_path is not None:
        raise _ConfigError(f"Config not found: {config_path}")
    for section, values in (overrides or {}).items():
        existing = payload.get(section)
        merged: dict[str, JsonValue] = (
            dict(existing) if isinstance(existing, dict) else {}
        )
        merged.update(values)
        payload[section] = merged
    config = validate_run_config(payload)
    return _resolve_logs_dir(config, resolved_path)


def _read_config_payload(config_path: Path) -> dict[str, JsonValue]:
    try:
        with open(config_path, "rb") as handle:
            payload: dict[str, JsonValue] = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise _ConfigError(f"Failed to read config: {exc}") from exc
    if not isinstance(payload, dict):
        raise _ConfigError("Config root must be a TOML table")
    return payload


def _load_dotenv(config_path: Path) -> None:
    env_path = config_path.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _resolve_logs_dir(config: RunConfig, config_path: Path) -> RunConfig:
    logs_dir = Path(config.logging.logs_dir)
    if not logs_dir.is_absolute():
        logs_dir = (config_path.parent / logs_dir).resolve()
    updated_logging = config.logging.model_copy(update={"logs_dir": str(logs_dir)})
    return config.model_copy(update={"logging": updated_logging})


def _require_api_key(endpoint: ModelEndpointConfig) -> str:
    api_key = os.getenv(endpoint.api_key_env)
    if not api_key:
        raise _ConfigError(
            f"Missing API key: set {endpoint.api_key_env} in the environment "
            "or in a .env file next to the config"
        )
    return api_key


def _file_logging_enabled(config: RunConfig) -> bool:
    return any(sink.type == LogSinkType.FILE for sink in config.logging.sinks)


def _log_path(config: RunConfig, job_id: UUID) -> Path:
    return Path(config.logging.logs_dir) / f"{job_id}.jsonl"


def _progress_path(config: RunConfig, job_id: UUID) -> Path:
    return Path(config.logging.logs_dir) / "progress" / f"{job_id}.jsonl"


async def _emit_command_log(log_sink: LogSinkProtocol, entry: LogEntry) -> None:
    await log_sink.emit_log(entry)


def _emit_command_log_sync(log_sink: LogSinkProtocol, entry: LogEntry) -> None:
    asyncio.run(_emit_command_log(log_sink, entry))


def _build_command_started_log(
    *,
    timestamp: str,
    job_id: JobId,
    command: str,
    args: dict[str, JsonValue] | None,
) -> LogEntry:
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=CommandEvent.STARTED,
        job_id=job_id,
        message="Command started",
        data=CommandStartedData(command=command, args=args).model_dump(
            exclude_none=True
        ),
    )


def _build_command_completed_log(
    *,
    timestamp: str,
    job_id: JobId,
    command: str,
) -> LogEntry:
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.INFO,
        event=CommandEvent.COMPLETED,
        job_id=job_id,
        message="Command completed",
        data=CommandCompletedData(command=command).model_dump(exclude_none=True),
    )


def _build_command_failed_log(
    *,
    timestamp: str,
    job_id: JobId,
    command: str,
    error: ErrorResponse,
) -> LogEntry:
    next_action = _next_action_for_error(error)
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.ERROR,
        event=CommandEvent.FAILED,
        job_id=job_id,
        message="Command failed",
        data=CommandFailedData(
            command=command,
            error_code=error.code,
            error_message=error.message,
            next_action=next_action,
        ).model_dump(exclude_none=True),
    )


def _next_action_for_error(error: ErrorResponse) -> str:
    actions = {
        "config_error": "Fix the configuration and retry.",
        "validation_error": "Fix the input or configuration and retry.",
        "encoding_error": "Re-save the subtitle file as UTF-8 and retry.",
        "format_error": "Fix the subtitle file at the reported line and retry.",
        "transport_error": "Check the endpoint URL, API key and network, then retry.",
        "bad_response": "Retry, or switch to a different model.",
        "parse_error": "Retry with a smaller --batch-size.",
        "incomplete_result": "Retry with a smaller --batch-size.",
        "invalid_target": "Choose an output path different from the source file.",
        "io_error": "Check file paths or permissions and retry.",
        "runtime_error": "Review the logs and retry.",
    }
    return actions.get(error.code, "Review the logs and retry.")


def _render_translate_summary(
    result: TranslateResult | None, *, console: Console
) -> None:
    if result is None:
        return
    table = Table.grid(padding=(0, 1))
    table.add_column(justify="right", style="bold")
    table.add_column()
    table.add_row("Job ID", str(result.job_id))
    table.add_row("Status", str(result.status))
    table.add_row("Cues", str(result.cue_count))
    table.add_row("Source", result.source_path)
    table.add_row("Output", result.output_path)
    table.add_row("Log file", result.log_file or "n/a")
    table.add_row("Progress file", result.progress_file or "n/a")
    console.print(Panel(table, title="subtl translate", expand=False))


def _render_error(error: ErrorResponse, *, console: Console) -> None:
    console.print(f"[red]Error:[/red] {error.message}")
    console.print(f"Next: {_next_action_for_error(error)}")


def _exit_for_response(response: ApiResponse[ResponseT]) -> None:
    if response.error is None:
        return
    code = response.error.exit_code or ExitCode.RUNTIME_ERROR
    raise typer.Exit(code=code)


def _error_response(error: ErrorResponse) -> ApiResponse[ResponseT]:
    return ApiResponse(
        data=None,
        error=error,
        meta=MetaInfo(timestamp=_now_timestamp()),
    )


_ERROR_DOMAINS: tuple[tuple[type[Exception], str], ...] = (
    (TranslationError, DOMAIN_PREFIXES[TranslationErrorCode.__name__]),
    (IngestError, DOMAIN_PREFIXES[IngestErrorCode.__name__]),
    (ExportError, DOMAIN_PREFIXES[ExportErrorCode.__name__]),
    (JobStoreError, DOMAIN_PREFIXES[JobStoreErrorCode.__name__]),
)


def _error_from_exception(exc: Exception) -> ErrorResponse:
    error = _base_error_from_exception(exc)
    domain = next(
        (name for error_type, name in _ERROR_DOMAINS if isinstance(exc, error_type)),
        None,
    )
    exit_code = resolve_exit_code(error.code, domain=domain)
    return error.model_copy(update={"exit_code": int(exit_code)})


def _base_error_from_exception(exc: Exception) -> ErrorResponse:
    if isinstance(exc, (TranslationError, IngestError, ExportError, JobStoreError)):
        return exc.info.to_error_response()
    if isinstance(exc, ValidationError):
        message = "Config validation failed"
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = first.get("loc", [])
            label = ".".join(str(part) for part in loc) if loc else ""
            detail = first.get("msg", "")
            if label and detail:
                message = f"Config validation failed: {label} - {detail}"
            elif detail:
                message = f"Config validation failed: {detail}"
        return ErrorResponse(code="validation_error", message=message, details=None)
    if isinstance(exc, _ConfigError):
        return ErrorResponse(code="config_error", message=str(exc), details=None)
    if isinstance(exc, ValueError):
        return ErrorResponse(code="validation_error", message=str(exc), details=None)
    message = str(exc) or type(exc).__name__
    return ErrorResponse(code="runtime_error", message=message, details=None)


if __name__ == "__main__":
    app()
