"""Base schema configuration for subtl Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with strict validation defaults.

    Note: whitespace is never stripped. Cue text and timing lines must
    round-trip exactly as they were read from the subtitle file.
    """

    model_config = ConfigDict(
        extra="ignore",  # Drop extra fields instead of failing
        validate_assignment=True,
        validate_default=True,
        use_enum_values=True,
        strict=True,
    )
