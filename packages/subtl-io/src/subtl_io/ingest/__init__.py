"""Import adapters for subtitle files."""

from subtl_io.ingest.encoding import decode_subtitle_bytes, detect_newline_style
from subtl_io.ingest.srt_adapter import (
    SrtIngestAdapter,
    decode_srt,
    parse_srt,
    parse_time,
    parse_timing_line,
)

__all__ = [
    "SrtIngestAdapter",
    "decode_srt",
    "decode_subtitle_bytes",
    "detect_newline_style",
    "parse_srt",
    "parse_time",
    "parse_timing_line",
]
