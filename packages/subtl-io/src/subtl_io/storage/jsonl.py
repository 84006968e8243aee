"""JSONL append helper shared by file-backed sinks."""

from __future__ import annotations

from pathlib import Path

from subtl_schemas.base import BaseSchema


def append_jsonl(path: Path, payload: BaseSchema, *, exclude_none: bool) -> None:
    """Append one model as a JSON line, creating parent directories.

    Args:
        path: JSONL file path.
        payload: Model to serialize.
        exclude_none: Whether to drop None-valued fields.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload_json = payload.model_dump_json(exclude_none=exclude_none)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(payload_json + "\n")
