"""subtl-core: Core translation pipeline logic for subtl."""

from subtl_core.batching import plan_batches
from subtl_core.jobs import JobStore
from subtl_core.masking import mask_tags, unmask_tags
from subtl_core.numbered_list import (
    build_translation_prompt,
    parse_numbered_response,
)
from subtl_core.orchestrator import TranslationOrchestrator
from subtl_core.ports import (
    ExportError,
    ExportErrorCode,
    ExportResult,
    IngestError,
    IngestErrorCode,
    JobStoreError,
    JobStoreErrorCode,
    SubtitleExportProtocol,
    SubtitleIngestProtocol,
    TranslationClientProtocol,
    TranslationError,
    TranslationErrorCode,
)
from subtl_core.retry import RetryPolicy, run_with_retry
from subtl_core.telemetry import TranslationTelemetryEmitter, now_timestamp
from subtl_core.version import VERSION

__version__ = VERSION

__all__ = [
    "VERSION",
    "ExportError",
    "ExportErrorCode",
    "ExportResult",
    "IngestError",
    "IngestErrorCode",
    "JobStore",
    "JobStoreError",
    "JobStoreErrorCode",
    "RetryPolicy",
    "SubtitleExportProtocol",
    "SubtitleIngestProtocol",
    "TranslationClientProtocol",
    "TranslationError",
    "TranslationErrorCode",
    "TranslationOrchestrator",
    "TranslationTelemetryEmitter",
    "build_translation_prompt",
    "mask_tags",
    "now_timestamp",
    "parse_numbered_response",
    "plan_batches",
    "run_with_retry",
    "unmask_tags",
]
