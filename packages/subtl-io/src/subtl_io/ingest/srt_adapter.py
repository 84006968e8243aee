"""SRT ingest adapter and tolerant SRT parser."""

from __future__ import annotations

import asyncio

from subtl_core.ports.ingest import (
    IngestError,
    IngestErrorCode,
    IngestErrorDetails,
    IngestErrorInfo,
    SubtitleFormatError,
)
from subtl_io.ingest.encoding import decode_subtitle_bytes
from subtl_schemas.primitives import NewlineStyle
from subtl_schemas.subtitles import SrtCue, SrtDocument, SrtTime

TIMING_ARROW = "-->"

EXPECTED_INDEX_OR_TIMING = (
    "Expected a cue number (e.g., '1') or a timing line "
    "(e.g., '00:00:01,000 --> 00:00:03,000')."
)
UNEXPECTED_EOF_TIMING = "Unexpected end of file while reading timing line."
EXPECTED_TIMING = "Expected a timing line like '00:00:01,000 --> 00:00:03,000'."
NO_CUES_FOUND = "No subtitle cues found. Make sure this is a valid .srt file."


class SrtIngestAdapter:
    """SRT adapter implementation."""

    async def load_document(self, source_path: str) -> SrtDocument:
        """Read and parse an SRT file.

        Args:
            source_path: Path to the subtitle file.

        Returns:
            SrtDocument: Parsed document.
        """
        return await asyncio.to_thread(_load_srt_sync, source_path)


def _load_srt_sync(source_path: str) -> SrtDocument:
    try:
        with open(source_path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise IngestError(
            IngestErrorInfo(
                code=IngestErrorCode.IO_ERROR,
                message=f"Failed to read file: {exc}",
                details=IngestErrorDetails(source_path=source_path),
            )
        ) from exc
    return decode_srt(data, source_path=source_path)


def decode_srt(data: bytes, *, source_path: str | None = None) -> SrtDocument:
    """Decode raw SRT bytes into a document.

    Args:
        data: Raw file bytes.
        source_path: Source file path for error details.

    Returns:
        SrtDocument: Parsed document.

    Raises:
        SubtitleEncodingError: If the bytes cannot be decoded as text.
        SubtitleFormatError: If the text is not valid SRT.
    """
    text, newline = decode_subtitle_bytes(data, source_path=source_path)
    return parse_srt(text, newline, source_path=source_path)


def parse_srt(
    text: str,
    newline: NewlineStyle = NewlineStyle.LF,
    *,
    source_path: str | None = None,
) -> SrtDocument:
    """Parse decoded SRT text.

    A block whose first line is a timing line instead of a number is accepted
    and given the 1-based position of the cue as its index label.

    Args:
        text: Decoded SRT text.
        newline: Newline style to record on the document.
        source_path: Source file path for error details.

    Returns:
        SrtDocument: Parsed document.

    Raises:
        SubtitleFormatError: On structural problems, with a 1-based line number.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    cues: list[SrtCue] = []
    position = 0
    while position < len(lines):
        while position < len(lines) and not lines[position].strip():
            position += 1
        if position >= len(lines):
            break

        head = lines[position].strip()
        if _is_ascii_number(head):
            index_line = head
            timing_position = position + 1
        elif _looks_like_timing(head):
            index_line = str(len(cues) + 1)
            timing_position = position
        else:
            raise SubtitleFormatError(
                position + 1, EXPECTED_INDEX_OR_TIMING, source_path=source_path
            )

        if timing_position >= len(lines):
            raise SubtitleFormatError(
                timing_position + 1, UNEXPECTED_EOF_TIMING, source_path=source_path
            )
        timing_line = lines[timing_position].strip()
        if not _looks_like_timing(timing_line):
            raise SubtitleFormatError(
                timing_position + 1, EXPECTED_TIMING, source_path=source_path
            )
        try:
            start, end = parse_timing_line(timing_line)
        except ValueError as exc:
            raise SubtitleFormatError(
                timing_position + 1, str(exc), source_path=source_path
            ) from exc

        text_position = timing_position + 1
        text_lines: list[str] = []
        while text_position < len(lines) and lines[text_position].strip():
            text_lines.append(lines[text_position])
            text_position += 1

        cues.append(
            SrtCue(
                id=len(cues),
                index_line=index_line,
                timing_line=timing_line,
                start=start,
                end=end,
                text_lines=text_lines,
            )
        )
        position = text_position + 1

    if not cues:
        raise SubtitleFormatError(1, NO_CUES_FOUND, source_path=source_path)
    return SrtDocument(newline=newline, cues=cues)


def parse_timing_line(line: str) -> tuple[SrtTime, SrtTime]:
    """Parse the start and end times of a timing line.

    Only the first token after the arrow is read as the end time; trailing
    positioning settings are ignored.

    Args:
        line: Trimmed timing line.

    Returns:
        tuple[SrtTime, SrtTime]: Start and end times.

    Raises:
        ValueError: If the line or either time is malformed.
    """
    left, arrow, right = line.partition(TIMING_ARROW)
    if not arrow:
        raise ValueError("Timing line is missing the '-->' separator.")
    end_tokens = right.split()
    if not end_tokens:
        raise ValueError("Timing line is missing end time after '-->'.")
    try:
        start = parse_time(left)
    except ValueError as exc:
        raise ValueError(f"Invalid start time: {exc}") from exc
    try:
        end = parse_time(end_tokens[0])
    except ValueError as exc:
        raise ValueError(f"Invalid end time: {exc}") from exc
    return start, end


def parse_time(value: str) -> SrtTime:
    """Parse ``HH:MM:SS,mmm`` or ``HH:MM:SS.mmm``.

    Args:
        value: Time text.

    Returns:
        SrtTime: Parsed time.

    Raises:
        ValueError: If the text is malformed or a component is out of range.
    """
    raw = value.strip()
    parts = raw.split(":")
    if len(parts) != 3:
        raise ValueError(f"Expected time like HH:MM:SS,mmm but got '{raw}'")
    hours = _parse_component(parts[0], "hours", raw)
    minutes = _parse_component(parts[1], "minutes", raw)
    seconds_text, separator, millis_text = parts[2].partition(",")
    if not separator:
        seconds_text, separator, millis_text = parts[2].partition(".")
    if not separator:
        raise ValueError(
            f"Expected seconds and milliseconds like SS,mmm in '{raw}'"
        )
    seconds = _parse_component(seconds_text, "seconds", raw)
    millis = _parse_component(millis_text, "milliseconds", raw)
    if minutes > 59 or seconds > 59 or millis > 999:
        raise ValueError(f"Time components out of range in '{raw}'")
    return SrtTime(hours=hours, minutes=minutes, seconds=seconds, millis=millis)


def _parse_component(text: str, name: str, raw: str) -> int:
    if not _is_ascii_number(text):
        raise ValueError(f"Invalid {name} in '{raw}'")
    return int(text)


def _is_ascii_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _looks_like_timing(line: str) -> bool:
    return TIMING_ARROW in line
