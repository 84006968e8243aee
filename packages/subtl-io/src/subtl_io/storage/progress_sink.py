"""Progress sinks for translation job updates."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path

from subtl_core.ports.orchestrator import ProgressSinkProtocol
from subtl_io.storage.jsonl import append_jsonl
from subtl_schemas.events import ProgressEvent
from subtl_schemas.primitives import BatchStatus, JobId
from subtl_schemas.progress import BatchStatusUpdate, ProgressUpdate


class FileSystemProgressSink(ProgressSinkProtocol):
    """Streams job updates to a JSONL file, one update per line.

    The CLI points this at ``<logs_dir>/progress/<job_id>.jsonl`` so a second
    process can tail a running translation.
    """

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

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Append one update without blocking the event loop."""
        await asyncio.to_thread(append_jsonl, self._path, update, exclude_none=True)


class InMemoryProgressSink(ProgressSinkProtocol):
    """Keeps every update in arrival order for inspection."""

    def __init__(self) -> None:
        """Initialize an empty sink."""
        self._updates: list[ProgressUpdate] = []

    @property
    def updates(self) -> list[ProgressUpdate]:
        """Return a copy of the recorded updates."""
        return list(self._updates)

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Record one update."""
        self._updates.append(update)

    def of_event(
        self, event: ProgressEvent, *, job_id: JobId | None = None
    ) -> list[ProgressUpdate]:
        """Return recorded updates of one event type.

        Args:
            event: Event to select.
            job_id: Restrict to one job when given.

        Returns:
            list[ProgressUpdate]: Matching updates in arrival order.
        """
        return [
            update
            for update in self._updates
            if update.event == event and (job_id is None or update.job_id == job_id)
        ]

    def batch_statuses(self, batch_no: int | None = None) -> list[BatchStatusUpdate]:
        """Return batch status transitions, optionally for a single batch.

        Args:
            batch_no: Batch to select, or None for every batch.

        Returns:
            list[BatchStatusUpdate]: Status payloads in arrival order.
        """
        return [
            update.batch
            for update in self.of_event(ProgressEvent.BATCH_STATUS)
            if update.batch is not None
            and (batch_no is None or update.batch.batch_no == batch_no)
        ]

    def final_status(self, batch_no: int) -> BatchStatus | None:
        """Return the last status reported for a batch.

        Args:
            batch_no: Batch number.

        Returns:
            BatchStatus | None: Last status, or None if the batch never ran.
        """
        statuses = self.batch_statuses(batch_no)
        if not statuses:
            return None
        return BatchStatus(statuses[-1].status)


class CompositeProgressSink(ProgressSinkProtocol):
    """Fans each update out to several sinks in order."""

    def __init__(self, sinks: Iterable[ProgressSinkProtocol]) -> None:
        """Initialize the composite sink.

        Args:
            sinks: Sinks that receive every update.
        """
        self._sinks = list(sinks)

    async def emit_progress(self, update: ProgressUpdate) -> None:
        """Forward one update to every sink."""
        for sink in self._sinks:
            await sink.emit_progress(update)
