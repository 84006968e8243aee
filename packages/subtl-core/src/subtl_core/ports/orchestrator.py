"""Side-channel ports the orchestrator and job store report through."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from subtl_schemas.logs import LogEntry
from subtl_schemas.progress import ProgressUpdate


@runtime_checkable
class LogSinkProtocol(Protocol):
    """Receives structured job, ingest, export and command log entries."""

    async def emit_log(self, entry: LogEntry) -> None:
        """Record one log entry."""
        raise NotImplementedError


@runtime_checkable
class ProgressSinkProtocol(Protocol):
    """Receives job progress, batch status and retry updates.

    Delivery is best-effort; a failing sink never fails the job.
    """

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Record one progress update."""
        raise NotImplementedError
