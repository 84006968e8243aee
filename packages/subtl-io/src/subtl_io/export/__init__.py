"""Export adapters for translated subtitle files."""

from subtl_io.export.srt_adapter import (
    SrtExportAdapter,
    derive_output_path,
    render_srt,
)

__all__ = ["SrtExportAdapter", "derive_output_path", "render_srt"]
