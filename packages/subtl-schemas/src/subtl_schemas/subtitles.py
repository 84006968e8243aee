"""Subtitle document schemas for SRT ingest and export."""

from __future__ import annotations

from pydantic import ConfigDict, Field, model_validator

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import CueId, NewlineStyle


class SrtTime(BaseSchema):
    """Parsed SRT timestamp (immutable)."""

    model_config = ConfigDict(frozen=True)

    hours: int = Field(..., ge=0, description="Hours component")
    minutes: int = Field(..., ge=0, le=59, description="Minutes component")
    seconds: int = Field(..., ge=0, le=59, description="Seconds component")
    millis: int = Field(..., ge=0, le=999, description="Milliseconds component")

    @property
    def total_milliseconds(self) -> int:
        """Return the timestamp as milliseconds from zero."""
        return (
            (self.hours * 60 + self.minutes) * 60 + self.seconds
        ) * 1000 + self.millis

    def format(self) -> str:
        """Render the timestamp in canonical SRT form.

        Returns:
            str: Timestamp formatted as ``HH:MM:SS,mmm``.
        """
        return (
            f"{self.hours:02d}:{self.minutes:02d}:"
            f"{self.seconds:02d},{self.millis:03d}"
        )


class SrtCue(BaseSchema):
    """Single subtitle cue.

    The index label and timing line are kept exactly as read so export never
    regenerates them; ``start`` and ``end`` exist for validation and ordering.
    """

    id: CueId = Field(..., description="Stable 0-based cue id in file order")
    index_line: str = Field(..., min_length=1, description="Original index label")
    timing_line: str = Field(..., min_length=1, description="Original timing line")
    start: SrtTime = Field(..., description="Parsed start time")
    end: SrtTime = Field(..., description="Parsed end time")
    text_lines: list[str] = Field(
        default_factory=list, description="Raw cue text lines without newlines"
    )

    @property
    def text(self) -> str:
        """Return the cue text with lines joined by ``\\n``."""
        return "\n".join(self.text_lines)


class SrtDocument(BaseSchema):
    """Parsed subtitle document."""

    newline: NewlineStyle = Field(..., description="Detected newline style")
    cues: list[SrtCue] = Field(..., min_length=1, description="Cues in file order")

    @model_validator(mode="after")
    def validate_cue_ids(self) -> SrtDocument:
        """Ensure cue ids are exactly ``0..count-1`` in order.

        Returns:
            SrtDocument: Validated document.

        Raises:
            ValueError: If cue ids are not sequential from zero.
        """
        for position, cue in enumerate(self.cues):
            if cue.id != position:
                raise ValueError(
                    f"cue ids must be sequential from 0; found {cue.id} "
                    f"at position {position}"
                )
        return self

    @property
    def line_ending(self) -> str:
        """Return the newline characters used when writing this document."""
        return NewlineStyle(self.newline).sequence

    @property
    def cue_ids(self) -> list[int]:
        """Return all cue ids in document order."""
        return [cue.id for cue in self.cues]


class TagPlaceholder(BaseSchema):
    """Placeholder token and the markup span it replaced."""

    token: str = Field(..., min_length=1, description="Placeholder token")
    original: str = Field(..., min_length=1, description="Original markup span")
