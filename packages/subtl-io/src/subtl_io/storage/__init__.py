"""Storage adapters for logs and progress streams."""

from subtl_io.storage.log_sink import (
    CompositeLogSink,
    ConsoleLogSink,
    FileLogSink,
    NoopLogSink,
    build_log_sink,
)
from subtl_io.storage.progress_sink import (
    CompositeProgressSink,
    FileSystemProgressSink,
    InMemoryProgressSink,
)

__all__ = [
    "CompositeLogSink",
    "CompositeProgressSink",
    "ConsoleLogSink",
    "FileLogSink",
    "FileSystemProgressSink",
    "InMemoryProgressSink",
    "NoopLogSink",
    "build_log_sink",
]
