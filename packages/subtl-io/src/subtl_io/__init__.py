"""subtl-io: Subtitle codec adapters and log/progress sinks."""

from subtl_io.export import SrtExportAdapter, derive_output_path, render_srt
from subtl_io.ingest import SrtIngestAdapter, decode_srt, parse_srt
from subtl_io.storage import (
    CompositeLogSink,
    CompositeProgressSink,
    ConsoleLogSink,
    FileLogSink,
    FileSystemProgressSink,
    InMemoryProgressSink,
    NoopLogSink,
    build_log_sink,
)

__version__ = "0.1.0"

__all__ = [
    "CompositeLogSink",
    "CompositeProgressSink",
    "ConsoleLogSink",
    "FileLogSink",
    "FileSystemProgressSink",
    "InMemoryProgressSink",
    "NoopLogSink",
    "SrtExportAdapter",
    "SrtIngestAdapter",
    "build_log_sink",
    "decode_srt",
    "derive_output_path",
    "parse_srt",
    "render_srt",
]
