"""Centralized model factory for OpenAI-compatible endpoints.

All provider and model instantiation goes through create_model().
"""

from __future__ import annotations

from typing import cast

from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel, OpenAIChatModelSettings
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

DEFAULT_MAX_OUTPUT_TOKENS = 8192


def create_model(
    *,
    base_url: str,
    api_key: str,
    model_id: str,
    temperature: float,
    timeout_s: float = 60.0,
    max_output_tokens: int | None = None,
) -> tuple[Model, ModelSettings]:
    """Create an OpenAI-compatible model and its request settings.

    Args:
        base_url: Endpoint base URL.
        api_key: API key for the endpoint.
        model_id: Model identifier.
        temperature: Sampling temperature.
        timeout_s: Request timeout in seconds.
        max_output_tokens: Maximum output tokens (None uses the default cap).

    Returns:
        Tuple of (Model, ModelSettings) ready for pydantic-ai Agent.
    """
    provider = OpenAIProvider(base_url=base_url, api_key=api_key)
    model = OpenAIChatModel(model_id, provider=provider)
    settings: OpenAIChatModelSettings = {
        "temperature": temperature,
        "timeout": timeout_s,
        "max_tokens": max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
    }
    return model, cast(ModelSettings, settings)
