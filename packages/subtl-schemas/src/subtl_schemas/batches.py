"""Batch schemas produced by the batch planner."""

from __future__ import annotations

from pydantic import Field, model_validator

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import CueId, CueRole


class PromptCue(BaseSchema):
    """Cue payload packaged for a translation request."""

    cue_id: CueId = Field(..., description="Cue id in the source document")
    timing: str = Field(..., min_length=1, description="Original timing line")
    masked_text: str = Field(..., description="Cue text with markup masked")
    role: CueRole = Field(..., description="Whether the cue is translated or context")


class TranslationBatch(BaseSchema):
    """Contiguous group of cues translated in one remote request."""

    batch_no: int = Field(..., ge=0, description="0-based batch number")
    translate_ids: list[CueId] = Field(
        ..., min_length=1, description="Cue ids this batch translates, in order"
    )
    cues: list[PromptCue] = Field(..., min_length=1, description="Prompt cues")

    @model_validator(mode="after")
    def validate_translate_cues(self) -> TranslationBatch:
        """Ensure translate cues line up with ``translate_ids``.

        Returns:
            TranslationBatch: Validated batch.

        Raises:
            ValueError: If translate cues and ids disagree.
        """
        translate_cue_ids = [
            cue.cue_id for cue in self.cues if cue.role == CueRole.TRANSLATE
        ]
        if translate_cue_ids != self.translate_ids:
            raise ValueError("translate cues must match translate_ids in order")
        return self

    @property
    def cue_start(self) -> int:
        """Return the first cue id translated by this batch."""
        return self.translate_ids[0]

    @property
    def cue_end(self) -> int:
        """Return the last cue id translated by this batch."""
        return self.translate_ids[-1]

    @property
    def translate_cues(self) -> list[PromptCue]:
        """Return the prompt cues that must be translated."""
        return [cue for cue in self.cues if cue.role == CueRole.TRANSLATE]
