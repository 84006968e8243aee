"""Best-effort text decoding for subtitle files."""

from __future__ import annotations

from charset_normalizer import from_bytes

from subtl_core.ports.ingest import SubtitleEncodingError
from subtl_schemas.primitives import NewlineStyle

UTF8_BOM = b"\xef\xbb\xbf"
UTF16_LE_BOM = b"\xff\xfe"
UTF16_BE_BOM = b"\xfe\xff"
TEXT_BOM = "\ufeff"


def decode_subtitle_bytes(
    data: bytes, *, source_path: str | None = None
) -> tuple[str, NewlineStyle]:
    """Decode subtitle bytes and detect their newline style.

    Tries, in order: UTF-8 with BOM, UTF-16 LE/BE with BOM, strict UTF-8,
    then statistical detection. Leading U+FEFF characters are trimmed.

    Args:
        data: Raw file bytes.
        source_path: Source file path for error details.

    Returns:
        tuple[str, NewlineStyle]: Decoded text and detected newline style.

    Raises:
        SubtitleEncodingError: If no decoding produces valid text.
    """
    text = _decode(data, source_path)
    return text.lstrip(TEXT_BOM), detect_newline_style(text)


def detect_newline_style(text: str) -> NewlineStyle:
    """Return CRLF if any ``\\r\\n`` pair is present, otherwise LF.

    Args:
        text: Decoded text.

    Returns:
        NewlineStyle: Detected newline style.
    """
    return NewlineStyle.CRLF if "\r\n" in text else NewlineStyle.LF


def _decode(data: bytes, source_path: str | None) -> str:
    if data.startswith(UTF8_BOM):
        return _decode_strict(
            data[len(UTF8_BOM) :],
            "utf-8",
            "The file looks like UTF-8 with BOM, but it contains invalid UTF-8 "
            "bytes. Try re-saving as UTF-8.",
            source_path,
        )
    if data.startswith(UTF16_LE_BOM):
        return _decode_strict(
            data[len(UTF16_LE_BOM) :],
            "utf-16-le",
            "The file looks like UTF-16 (LE) but contains invalid sequences. "
            "Try exporting subtitles again as UTF-8.",
            source_path,
        )
    if data.startswith(UTF16_BE_BOM):
        return _decode_strict(
            data[len(UTF16_BE_BOM) :],
            "utf-16-be",
            "The file looks like UTF-16 (BE) but contains invalid sequences. "
            "Try exporting subtitles again as UTF-8.",
            source_path,
        )
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return _decode_detected(data, source_path)


def _decode_detected(data: bytes, source_path: str | None) -> str:
    best = from_bytes(data).best()
    if best is None:
        raise SubtitleEncodingError(
            "We could not detect the text encoding of this file. "
            "Try re-saving the .srt file as UTF-8.",
            source_path=source_path,
        )
    return _decode_strict(
        data,
        best.encoding,
        f"We tried decoding this file as {best.encoding}, but it still "
        "contained invalid characters. Try re-saving the .srt file as UTF-8.",
        source_path,
    )


def _decode_strict(
    data: bytes, encoding: str, hint: str, source_path: str | None
) -> str:
    try:
        return data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise SubtitleEncodingError(
            hint, encoding=encoding, source_path=source_path
        ) from exc
