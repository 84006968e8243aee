"""Ports (protocols and error taxonomies) for subtl-core."""

from subtl_core.ports.export import (
    ExportError,
    ExportErrorCode,
    ExportErrorDetails,
    ExportErrorInfo,
    ExportResult,
    SubtitleExportProtocol,
    build_export_completed_log,
)
from subtl_core.ports.ingest import (
    IngestError,
    IngestErrorCode,
    IngestErrorDetails,
    IngestErrorInfo,
    SubtitleEncodingError,
    SubtitleFormatError,
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
from subtl_core.ports.llm import (
    BadResponseError,
    ResponseParseError,
    TranslationClientProtocol,
    TranslationError,
    TranslationErrorCode,
    TranslationErrorDetails,
    TranslationErrorInfo,
    TransportError,
)
from subtl_core.ports.orchestrator import LogSinkProtocol, ProgressSinkProtocol

__all__ = [
    "BadResponseError",
    "ExportError",
    "ExportErrorCode",
    "ExportErrorDetails",
    "ExportErrorInfo",
    "ExportResult",
    "IngestError",
    "IngestErrorCode",
    "IngestErrorDetails",
    "IngestErrorInfo",
    "JobStoreError",
    "JobStoreErrorCode",
    "JobStoreErrorDetails",
    "JobStoreErrorInfo",
    "LogSinkProtocol",
    "ProgressSinkProtocol",
    "ResponseParseError",
    "SubtitleEncodingError",
    "SubtitleExportProtocol",
    "SubtitleFormatError",
    "SubtitleIngestProtocol",
    "TranslationClientProtocol",
    "TranslationError",
    "TranslationErrorCode",
    "TranslationErrorDetails",
    "TranslationErrorInfo",
    "TransportError",
    "build_export_completed_log",
    "build_ingest_completed_log",
    "build_ingest_failed_log",
    "build_ingest_started_log",
]
