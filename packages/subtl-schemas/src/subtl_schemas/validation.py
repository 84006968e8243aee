"""Validation entrypoint for ``subtl.toml`` payloads."""

from __future__ import annotations

from subtl_schemas.config import RunConfig
from subtl_schemas.primitives import JsonValue


def validate_run_config(payload: dict[str, JsonValue]) -> RunConfig:
    """Validate a parsed TOML payload merged with CLI overrides.

    Lax mode lets TOML integers fill float fields and plain strings fill
    enum fields; the resulting model is strict afterwards.

    Args:
        payload: Table-of-tables payload; missing sections take defaults.

    Returns:
        RunConfig: Validated configuration.
    """
    return RunConfig.model_validate(payload, strict=False)
