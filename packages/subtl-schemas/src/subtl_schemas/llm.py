"""Schemas for remote translation calls."""

from __future__ import annotations

from pydantic import Field

from subtl_schemas.base import BaseSchema


class LlmPromptRequest(BaseSchema):
    """Prompt request for one remote translation call."""

    prompt: str = Field(..., min_length=1, description="User prompt text")
    system_prompt: str | None = Field(None, description="Optional system prompt")
    batch_no: int | None = Field(None, ge=0, description="Batch being translated")


class LlmPromptResponse(BaseSchema):
    """Response payload from a remote translation call."""

    model_id: str = Field(..., min_length=1, description="Model identifier")
    output_text: str = Field(..., description="Raw text returned by the model")
