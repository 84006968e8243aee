"""Unit tests for run configuration schemas."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError

from subtl_schemas.config import (
    ConcurrencyConfig,
    LoggingConfig,
    LogSinkConfig,
    ModelEndpointConfig,
    RunConfig,
)
from subtl_schemas.primitives import LogSinkType
from subtl_schemas.validation import validate_run_config


def test_run_config_defaults() -> None:
    """Empty payload yields the documented defaults."""
    config = validate_run_config({})

    assert config.language.source_language == "auto"
    assert config.language.target_language == "en"
    assert config.batch.batch_size == 25
    assert config.batch.max_chars_per_request == 12000
    assert config.concurrency.max_parallel_requests == 3
    assert config.retry.max_retries == 5
    assert config.retry.max_backoff_s == 10.0
    assert config.output.suffix == "_translated"
    assert config.logging.sinks[0].type == LogSinkType.NOOP


def test_validate_run_config_accepts_toml_shaped_payload() -> None:
    """Nested sections coerce from plain TOML values."""
    config = validate_run_config(
        {
            "language": {"source_language": "ja", "target_language": "vi"},
            "batch": {"batch_size": 10},
            "logging": {"sinks": [{"type": "file"}, {"type": "console"}]},
        }
    )

    assert config.language.target_language == "vi"
    assert config.batch.batch_size == 10
    assert [sink.type for sink in config.logging.sinks] == ["file", "console"]


@pytest.mark.parametrize(
    ("requested", "effective"),
    [(0, 1), (-4, 1), (1, 1), (3, 3), (10, 10), (50, 10)],
)
def test_effective_parallel_requests_is_clamped(requested: int, effective: int) -> None:
    """Requested parallelism is clamped to the 1..10 range."""
    config = ConcurrencyConfig(max_parallel_requests=requested)

    assert config.effective_parallel_requests == effective


def test_batch_size_must_be_positive() -> None:
    """A zero batch size is rejected."""
    with pytest.raises(ValidationError):
        validate_run_config({"batch": {"batch_size": 0}})


def test_endpoint_base_url_requires_scheme() -> None:
    """Base URLs without http/https are rejected."""
    with pytest.raises(ValidationError, match="base_url"):
        ModelEndpointConfig(base_url="localhost:8045")


def test_endpoint_base_url_appends_v1_for_bare_host() -> None:
    """A bare host gains the /v1 API prefix."""
    config = ModelEndpointConfig(base_url="http://127.0.0.1:8045/")

    assert config.base_url == "http://127.0.0.1:8045/v1"


def test_endpoint_base_url_keeps_explicit_path() -> None:
    """An explicit path is left untouched."""
    config = ModelEndpointConfig(base_url="https://api.example.com/openai/v1")

    assert config.base_url == "https://api.example.com/openai/v1"


def test_logging_config_rejects_duplicate_sinks() -> None:
    """Duplicate sink types are rejected."""
    with pytest.raises(ValidationError, match="duplicates"):
        LoggingConfig(
            sinks=[
                LogSinkConfig(type=LogSinkType.FILE),
                LogSinkConfig(type=LogSinkType.FILE),
            ]
        )


def test_translation_options_carry_job_sections() -> None:
    """Translation options copy the orchestrator-facing sections."""
    config = validate_run_config(
        {"language": {"target_language": "ja"}, "retry": {"max_retries": 1}}
    )

    options = config.translation_options()

    assert options.language.target_language == "ja"
    assert options.retry.max_retries == 1
    assert options.batch == config.batch


def test_run_config_ignores_unknown_sections() -> None:
    """Unknown keys are dropped rather than failing validation."""
    config = RunConfig.model_validate({"extra": {"x": 1}}, strict=False)

    assert not hasattr(config, "extra")


def test_example_config_matches_defaults() -> None:
    """The shipped example config validates to the default settings."""
    example = Path(__file__).parents[3] / "subtl.example.toml"
    with example.open("rb") as handle:
        payload = tomllib.load(handle)

    assert validate_run_config(payload) == RunConfig()
