"""Log sinks for job, ingest, export and command events.

Every sink writes the same JSONL ``LogEntry`` shape; ``build_log_sink`` picks
the sinks named in ``[logging]`` and fans entries out when there are several.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TextIO

from subtl_core.ports.orchestrator import LogSinkProtocol
from subtl_io.storage.jsonl import append_jsonl
from subtl_schemas.config import LoggingConfig
from subtl_schemas.logs import LogEntry
from subtl_schemas.primitives import LogSinkType


class FileLogSink(LogSinkProtocol):
    """Appends entries to ``<logs_dir>/<job_id>.jsonl``."""

    def __init__(self, path: str) -> None:
        """Initialize the sink.

        Args:
            path: JSONL file to append to; parent directories are created.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Return the JSONL file path."""
        return self._path

    async def emit_log(self, entry: LogEntry) -> None:
        """Append one entry without blocking the event loop."""
        await asyncio.to_thread(append_jsonl, self._path, entry, exclude_none=False)


class ConsoleLogSink(LogSinkProtocol):
    """Writes entries to stderr so stdout stays free for the JSON response."""

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize the sink.

        Args:
            stream: Stream to write to; defaults to ``sys.stderr``.
        """
        self._stream = stream or sys.stderr

    async def emit_log(self, entry: LogEntry) -> None:
        """Write one entry as a JSON line and flush."""
        self._stream.write(f"{entry.model_dump_json(exclude_none=False)}\n")
        self._stream.flush()


class NoopLogSink(LogSinkProtocol):
    """Discards entries; the default when no sink is configured."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Drop the entry."""
        return None


class CompositeLogSink(LogSinkProtocol):
    """Fans each entry out to several sinks in order."""

    def __init__(self, sinks: Iterable[LogSinkProtocol]) -> None:
        """Initialize the composite sink.

        Args:
            sinks: Sinks that receive every entry.
        """
        self._sinks = list(sinks)

    async def emit_log(self, entry: LogEntry) -> None:
        """Forward one entry to every sink."""
        for sink in self._sinks:
            await sink.emit_log(entry)


def build_log_sink(
    logging_config: LoggingConfig,
    *,
    log_path: str,
    stream: TextIO | None = None,
) -> LogSinkProtocol:
    """Build the log sink described by ``[logging]``.

    Args:
        logging_config: Logging configuration.
        log_path: JSONL file used by a ``file`` sink.
        stream: Stream used by a ``console`` sink.

    Returns:
        LogSinkProtocol: The single configured sink, or a composite of all.

    Raises:
        ValueError: If a sink type has no implementation.
    """
    factories: dict[LogSinkType, Callable[[], LogSinkProtocol]] = {
        LogSinkType.FILE: lambda: FileLogSink(log_path),
        LogSinkType.CONSOLE: lambda: ConsoleLogSink(stream=stream),
        LogSinkType.NOOP: NoopLogSink,
    }
    sinks: list[LogSinkProtocol] = []
    for sink_config in logging_config.sinks:
        factory = factories.get(LogSinkType(sink_config.type))
        if factory is None:
            raise ValueError(f"Unsupported log sink type: {sink_config.type}")
        sinks.append(factory())
    if len(sinks) == 1:
        return sinks[0]
    return CompositeLogSink(sinks)
