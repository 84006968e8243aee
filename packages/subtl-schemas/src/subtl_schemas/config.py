"""Configuration schemas for subtl translation runs."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator

from subtl_schemas.base import BaseSchema
from subtl_schemas.primitives import LogSinkType

MAX_PARALLEL_REQUESTS = 10


class LogSinkConfig(BaseSchema):
    """Configuration for a single log sink."""

    type: LogSinkType = Field(..., description="Log sink type (console|file|noop)")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: object) -> LogSinkType:
        if isinstance(value, LogSinkType):
            return value
        if isinstance(value, str):
            return LogSinkType(value)
        return value  # type: ignore[return-value]


class LoggingConfig(BaseSchema):
    """Logging configuration for translation jobs and CLI commands."""

    sinks: list[LogSinkConfig] = Field(
        default_factory=lambda: [LogSinkConfig(type=LogSinkType.NOOP)],
        min_length=1,
        description="Log sinks to enable",
    )
    logs_dir: str = Field("logs", min_length=1, description="Directory for JSONL logs")

    @model_validator(mode="after")
    def validate_sink_types(self) -> LoggingConfig:
        """Ensure log sink types are unique.

        Returns:
            LoggingConfig: Validated logging configuration.

        Raises:
            ValueError: If sink types are duplicated.
        """
        sink_types = [sink.type for sink in self.sinks]
        if len(set(sink_types)) != len(sink_types):
            raise ValueError("log sinks must not contain duplicates")
        return self


class LanguageConfig(BaseSchema):
    """Source and target languages for a translation job."""

    source_language: str = Field(
        "auto", min_length=1, description="Source language code or 'auto'"
    )
    target_language: str = Field(
        "en", min_length=1, description="Target language code or display name"
    )


class BatchConfig(BaseSchema):
    """Batch planner settings."""

    batch_size: int = Field(25, ge=1, le=1000, description="Max cues per batch")
    context_before: int = Field(
        2, ge=0, description="Context cues before each batch (reserved)"
    )
    context_after: int = Field(
        2, ge=0, description="Context cues after each batch (reserved)"
    )
    max_chars_per_request: int = Field(
        12000, ge=1, description="Estimated character budget per request"
    )


class ConcurrencyConfig(BaseSchema):
    """Concurrency settings for parallel batch execution."""

    max_parallel_requests: int = Field(
        3,
        description=(
            "Requested concurrent requests; clamped to "
            f"[1, {MAX_PARALLEL_REQUESTS}] at run time"
        ),
    )

    @property
    def effective_parallel_requests(self) -> int:
        """Return the admission bound actually used by the orchestrator."""
        return max(1, min(self.max_parallel_requests, MAX_PARALLEL_REQUESTS))


class RetryConfig(BaseSchema):
    """Retry policy for remote translation requests."""

    max_retries: int = Field(5, ge=0, description="Maximum retry attempts")
    min_delay_s: float = Field(
        0.2, ge=0, description="Pacing delay before every request in seconds"
    )
    backoff_s: float = Field(0.2, gt=0, description="Initial backoff in seconds")
    max_backoff_s: float = Field(
        10.0, gt=0, description="Maximum backoff delay in seconds"
    )


class ModelEndpointConfig(BaseSchema):
    """Endpoint configuration for OpenAI-compatible APIs."""

    base_url: str = Field(
        "http://127.0.0.1:8045/v1",
        min_length=1,
        description="OpenAI-compatible base URL",
    )
    api_key_env: str = Field(
        "OPENAI_API_KEY", min_length=1, description="Environment variable for API key"
    )
    timeout_s: float = Field(60.0, gt=0, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Ensure base URL uses http/https with a host.

        Args:
            value: Raw base URL string.

        Returns:
            str: Validated base URL.

        Raises:
            ValueError: If the URL is missing scheme/host.
        """
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "base_url must be an http/https URL with host "
                "(for localhost include http://)"
            )
        if parsed.path in {"", "/"}:
            return f"{value.rstrip('/')}/v1"
        return value


class ModelSettings(BaseSchema):
    """Model settings for translation calls."""

    model_id: str = Field(
        "gemini-2.5-flash", min_length=1, description="Model identifier"
    )
    temperature: float = Field(0.2, ge=0, le=2, description="Sampling temperature")
    max_output_tokens: int | None = Field(
        None, ge=1, description="Maximum tokens for responses (None uses default)"
    )


class OutputConfig(BaseSchema):
    """Output file naming settings."""

    suffix: str = Field(
        "_translated", min_length=1, description="Suffix appended to the file stem"
    )


class TranslationOptions(BaseSchema):
    """Options the orchestrator needs to translate one document."""

    language: LanguageConfig = Field(
        default_factory=LanguageConfig, description="Language pair"
    )
    batch: BatchConfig = Field(default_factory=BatchConfig, description="Batching")
    concurrency: ConcurrencyConfig = Field(
        default_factory=ConcurrencyConfig, description="Concurrency limits"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry policy")


class RunConfig(BaseSchema):
    """Complete subtl configuration loaded from ``subtl.toml``."""

    language: LanguageConfig = Field(
        default_factory=LanguageConfig, description="Language pair"
    )
    batch: BatchConfig = Field(default_factory=BatchConfig, description="Batching")
    concurrency: ConcurrencyConfig = Field(
        default_factory=ConcurrencyConfig, description="Concurrency limits"
    )
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry policy")
    endpoint: ModelEndpointConfig = Field(
        default_factory=ModelEndpointConfig, description="Model endpoint"
    )
    model: ModelSettings = Field(
        default_factory=ModelSettings, description="Model settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig, description="Output naming"
    )

    def translation_options(self) -> TranslationOptions:
        """Return the subset of settings used by the orchestrator.

        Returns:
            TranslationOptions: Options for one translation job.
        """
        return TranslationOptions(
            language=self.language,
            batch=self.batch,
            concurrency=self.concurrency,
            retry=self.retry,
        )
