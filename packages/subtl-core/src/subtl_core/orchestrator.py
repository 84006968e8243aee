"""Concurrent orchestrator that drives batches through a translation client."""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from subtl_core.batching import plan_batches
from subtl_core.masking import mask_tags, unmask_tags
from subtl_core.numbered_list import (
    build_system_prompt,
    build_translation_prompt,
    parse_numbered_response,
)
from subtl_core.ports.llm import (
    TranslationClientProtocol,
    TranslationError,
    TranslationErrorCode,
    TranslationErrorDetails,
    TranslationErrorInfo,
)
from subtl_core.retry import RetryPolicy, SleepFn, run_with_retry
from subtl_core.telemetry import TranslationTelemetryEmitter, now_timestamp
from subtl_schemas.batches import TranslationBatch
from subtl_schemas.config import TranslationOptions
from subtl_schemas.llm import LlmPromptRequest
from subtl_schemas.primitives import BatchStatus, JobId
from subtl_schemas.progress import TranslationProgress
from subtl_schemas.subtitles import SrtDocument

type MonotonicFn = Callable[[], float]

MIN_ELAPSED_S = 0.001


@dataclass(slots=True)
class _JobRun:
    job_id: JobId
    file_name: str
    document: SrtDocument
    options: TranslationOptions
    batches: list[TranslationBatch]
    policy: RetryPolicy
    started_at: float
    results: dict[int, str] = field(default_factory=dict)
    done_cues: int = 0
    failed: bool = False
    results_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    counter_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def total_cues(self) -> int:
        return len(self.document.cues)

    @property
    def total_batches(self) -> int:
        return len(self.batches)


class TranslationOrchestrator:
    """Translate a document by running planned batches concurrently.

    Batches are admitted through a semaphore bounded to ``[1, 10]``. Each
    batch retries failed or unparseable responses with exponential backoff.
    The job waits for every dispatched batch before reporting the first
    failure; in-flight siblings are never cancelled.
    """

    def __init__(
        self,
        *,
        client: TranslationClientProtocol,
        telemetry: TranslationTelemetryEmitter | None = None,
        sleep: SleepFn = asyncio.sleep,
        monotonic: MonotonicFn = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Remote translation client.
            telemetry: Optional telemetry emitter for progress and logs.
            sleep: Sleep function used for pacing and backoff.
            monotonic: Monotonic clock used for throughput and ETA.
        """
        self._client = client
        self._telemetry = telemetry or TranslationTelemetryEmitter(
            progress_sink=None, log_sink=None, clock=now_timestamp
        )
        self._sleep = sleep
        self._monotonic = monotonic

    async def translate_document(
        self,
        *,
        job_id: JobId,
        document: SrtDocument,
        options: TranslationOptions,
        file_name: str,
    ) -> Mapping[int, str]:
        """Translate every cue of a document.

        Args:
            job_id: Job identifier used on every emitted event.
            document: Parsed subtitle document.
            options: Language, batching, concurrency and retry options.
            file_name: Display name of the source file.

        Returns:
            Mapping[int, str]: Read-only map with one translation per cue id.

        Raises:
            TranslationError: The first batch failure after retries, or an
                incomplete result.
        """
        batches = plan_batches(document.cues, options.batch)
        run = _JobRun(
            job_id=job_id,
            file_name=file_name,
            document=document,
            options=options,
            batches=batches,
            policy=RetryPolicy.from_config(options.retry),
            started_at=self._monotonic(),
        )
        limit = options.concurrency.effective_parallel_requests
        await self._telemetry.job_started(
            job_id=job_id,
            file_name=file_name,
            total_cues=run.total_cues,
            total_batches=run.total_batches,
            max_parallel_requests=limit,
        )

        gate = asyncio.Semaphore(limit)
        tasks: list[asyncio.Task[None]] = []
        for batch in batches:
            await gate.acquire()
            if run.failed:
                gate.release()
                break
            tasks.append(asyncio.create_task(self._run_admitted(run, batch, gate)))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        first_error = next(
            (outcome for outcome in outcomes if isinstance(outcome, BaseException)),
            None,
        )
        if first_error is not None:
            await self._report_failure(run, first_error)
            raise first_error

        if len(run.results) != run.total_cues:
            error = _incomplete_result_error(run)
            await self._report_failure(run, error)
            raise error

        await self._telemetry.job_completed(
            job_id=job_id, translated_cues=len(run.results)
        )
        return MappingProxyType(dict(sorted(run.results.items())))

    async def _run_admitted(
        self, run: _JobRun, batch: TranslationBatch, gate: asyncio.Semaphore
    ) -> None:
        try:
            await self._run_batch(run, batch)
        except BaseException:
            run.failed = True
            raise
        finally:
            gate.release()

    async def _run_batch(self, run: _JobRun, batch: TranslationBatch) -> None:
        await self._telemetry.batch_status(
            job_id=run.job_id,
            batch=batch,
            total_batches=run.total_batches,
            status=BatchStatus.RUNNING,
        )
        request = LlmPromptRequest(
            prompt=build_translation_prompt(
                batch,
                run.options.language.source_language,
                run.options.language.target_language,
            ),
            system_prompt=build_system_prompt(),
            batch_no=batch.batch_no,
        )
        expected_count = len(batch.translate_ids)

        async def attempt(_attempt_no: int) -> list[str]:
            response = await self._client.run_prompt(request)
            return parse_numbered_response(response.output_text, expected_count)

        async def on_retry(
            failed_attempt: int, delay_s: float, error: TranslationError
        ) -> None:
            await self._telemetry.batch_retry(
                job_id=run.job_id,
                batch=batch,
                total_batches=run.total_batches,
                attempt=failed_attempt,
                delay_s=delay_s,
                error_message=str(error),
            )

        try:
            texts = await run_with_retry(
                attempt, run.policy, sleep=self._sleep, on_retry=on_retry
            )
        except TranslationError as exc:
            exc.annotate(batch_no=batch.batch_no, attempts=run.policy.max_attempts)
            await self._telemetry.batch_status(
                job_id=run.job_id,
                batch=batch,
                total_batches=run.total_batches,
                status=BatchStatus.ERROR,
                error_message=str(exc),
            )
            raise

        translated: dict[int, str] = {}
        for cue_id, text in zip(batch.translate_ids, texts, strict=True):
            _, mapping = mask_tags(run.document.cues[cue_id].text)
            translated[cue_id] = unmask_tags(text, mapping)

        async with run.results_lock:
            run.results.update(translated)
        async with run.counter_lock:
            run.done_cues += len(batch.translate_ids)
            done_cues = run.done_cues

        await self._telemetry.progress(
            job_id=run.job_id,
            progress=self._build_progress(run, done_cues),
        )
        await self._telemetry.batch_status(
            job_id=run.job_id,
            batch=batch,
            total_batches=run.total_batches,
            status=BatchStatus.DONE,
        )

    def _build_progress(self, run: _JobRun, done_cues: int) -> TranslationProgress:
        elapsed = max(self._monotonic() - run.started_at, MIN_ELAPSED_S)
        return TranslationProgress(
            job_id=run.job_id,
            file_name=run.file_name,
            done_cues=done_cues,
            total_cues=run.total_cues,
            percent=round(done_cues * 100 / run.total_cues, 2),
            eta_seconds=estimate_eta_seconds(
                done_cues=done_cues, total_cues=run.total_cues, elapsed_s=elapsed
            ),
        )

    async def _report_failure(self, run: _JobRun, error: BaseException) -> None:
        if isinstance(error, TranslationError):
            code = str(error.info.code)
        else:
            code = "runtime_error"
        await self._telemetry.job_failed(
            job_id=run.job_id,
            error_code=code,
            error_message=str(error) or type(error).__name__,
        )


def estimate_eta_seconds(*, done_cues: int, total_cues: int, elapsed_s: float) -> int:
    """Project remaining seconds from observed throughput.

    Args:
        done_cues: Cues translated so far.
        total_cues: Cues in the document.
        elapsed_s: Seconds since the job started.

    Returns:
        int: ``ceil(remaining / throughput)``, or 0 when throughput is not
        positive.
    """
    throughput = done_cues / max(elapsed_s, MIN_ELAPSED_S)
    if throughput <= 0:
        return 0
    remaining = max(total_cues - done_cues, 0)
    return math.ceil(remaining / throughput)


def _incomplete_result_error(run: _JobRun) -> TranslationError:
    missing = sorted(set(run.document.cue_ids) - set(run.results))
    return TranslationError(
        TranslationErrorInfo(
            code=TranslationErrorCode.INCOMPLETE_RESULT,
            message=(
                f"Translation result has {len(run.results)} of "
                f"{run.total_cues} cues; missing cue ids: {missing[:20]}"
            ),
            details=TranslationErrorDetails(missing_numbers=missing),
        )
    )
