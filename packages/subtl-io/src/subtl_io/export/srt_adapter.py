"""SRT export adapter that writes translated documents."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path

from subtl_core.ports.export import (
    ExportError,
    ExportErrorCode,
    ExportErrorDetails,
    ExportErrorInfo,
    ExportResult,
)
from subtl_schemas.subtitles import SrtDocument

DEFAULT_OUTPUT_SUFFIX = "_translated"
DEFAULT_EXTENSION = ".srt"


class SrtExportAdapter:
    """SRT adapter implementation."""

    def __init__(self, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> None:
        """Initialize the export adapter.

        Args:
            suffix: Suffix appended to the source stem for default outputs.
        """
        self._suffix = suffix

    def output_path_for(self, source_path: str) -> str:
        """Return the default output path for a source file.

        Args:
            source_path: Source subtitle path.

        Returns:
            str: Output path next to the source file.
        """
        return str(derive_output_path(Path(source_path), self._suffix))

    async def write_output(
        self,
        target_path: str,
        document: SrtDocument,
        translations: Mapping[int, str],
        *,
        source_path: str | None = None,
    ) -> ExportResult:
        """Render translations into SRT and write them to disk.

        Args:
            target_path: Output file path.
            document: Source document providing index and timing lines.
            translations: Translated text per cue id.
            source_path: Source file path; writing over it is refused.

        Returns:
            ExportResult: Export summary.
        """
        return await asyncio.to_thread(
            _write_srt_sync, target_path, document, translations, source_path
        )


def _write_srt_sync(
    target_path: str,
    document: SrtDocument,
    translations: Mapping[int, str],
    source_path: str | None,
) -> ExportResult:
    target = Path(target_path)
    if source_path is not None and _same_file(target, Path(source_path)):
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.INVALID_TARGET,
                message="Refusing to overwrite the source subtitle file",
                details=ExportErrorDetails(output_path=target_path),
            )
        )
    content = render_srt(document, translations, output_path=target_path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.IO_ERROR,
                message=f"Failed to write output: {exc}",
                details=ExportErrorDetails(output_path=target_path),
            )
        ) from exc
    return ExportResult(
        output_path=target_path,
        cue_count=len(document.cues),
        newline=str(document.newline),
    )


def render_srt(
    document: SrtDocument,
    translations: Mapping[int, str],
    *,
    output_path: str | None = None,
) -> str:
    """Render a translated document as SRT text.

    Index and timing lines are written exactly as read. Each translation may
    contain ``\\n`` to span several lines. Every cue, including the last, is
    followed by a blank line, using the document's newline style throughout.

    Args:
        document: Source document.
        translations: Translated text per cue id.
        output_path: Output path for error details.

    Returns:
        str: SRT text.

    Raises:
        ExportError: If the translation count differs from the cue count or a
            cue has no translation.
    """
    if len(translations) != len(document.cues):
        raise ExportError(
            ExportErrorInfo(
                code=ExportErrorCode.COUNT_MISMATCH,
                message=(
                    f"Translation mismatch: expected {len(document.cues)} cues "
                    f"but got {len(translations)} translations."
                ),
                details=ExportErrorDetails(
                    expected_count=len(document.cues),
                    actual_count=len(translations),
                    output_path=output_path,
                ),
            )
        )
    newline = document.line_ending
    parts: list[str] = []
    for cue in document.cues:
        text = translations.get(cue.id)
        if text is None:
            raise ExportError(
                ExportErrorInfo(
                    code=ExportErrorCode.MISSING_TRANSLATION,
                    message=f"Missing translation for cue id {cue.id}",
                    details=ExportErrorDetails(
                        cue_id=cue.id, output_path=output_path
                    ),
                )
            )
        parts.append(cue.index_line + newline)
        parts.append(cue.timing_line + newline)
        parts.extend(line + newline for line in text.split("\n"))
        parts.append(newline)
    return "".join(parts)


def derive_output_path(
    source_path: Path, suffix: str = DEFAULT_OUTPUT_SUFFIX
) -> Path:
    """Build the default output path for a source file.

    Args:
        source_path: Source subtitle path.
        suffix: Suffix appended to the file stem.

    Returns:
        Path: Sibling path ``<stem><suffix><ext>``; ``.srt`` is used when the
        source has no extension.
    """
    extension = source_path.suffix or DEFAULT_EXTENSION
    effective_suffix = suffix or DEFAULT_OUTPUT_SUFFIX
    return source_path.with_name(f"{source_path.stem}{effective_suffix}{extension}")


def _same_file(first: Path, second: Path) -> bool:
    return first.expanduser().resolve() == second.expanduser().resolve()
