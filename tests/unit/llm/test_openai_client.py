"""Tests for the OpenAI-compatible translation client."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic_ai.exceptions import (
    AgentRunError,
    ModelHTTPError,
    UnexpectedModelBehavior,
)

from subtl_core.ports.llm import (
    BadResponseError,
    TranslationErrorCode,
    TransportError,
)
from subtl_llm.openai_client import DEFAULT_INSTRUCTIONS, OpenAICompatibleClient
from subtl_schemas.config import ModelEndpointConfig, ModelSettings
from subtl_schemas.llm import LlmPromptRequest

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_agent_result() -> MagicMock:
    """Mock pydantic-ai agent result.

    Returns:
        MagicMock: Mock agent result with output attribute.
    """
    result = MagicMock()
    result.output = "1. Bonjour"
    return result


@pytest.fixture
def mock_agent(mock_agent_result: MagicMock) -> Generator[MagicMock]:
    """Mock pydantic-ai Agent class.

    Args:
        mock_agent_result: Mocked agent result fixture.

    Yields:
        MagicMock: Mocked Agent class.
    """
    with patch("subtl_llm.openai_client.Agent") as mock:
        agent_instance = MagicMock()
        agent_instance.run = AsyncMock(return_value=mock_agent_result)
        mock.return_value = agent_instance
        yield mock


@pytest.fixture
def mock_create_model() -> Generator[MagicMock]:
    """Mock create_model factory.

    Yields:
        MagicMock: Mocked create_model function.
    """
    mock_model = MagicMock()
    mock_settings = {"temperature": 0.2, "timeout": 60.0}
    with patch(
        "subtl_llm.openai_client.create_model",
        return_value=(mock_model, mock_settings),
    ) as mock:
        yield mock


@pytest.fixture
def client(mock_create_model: MagicMock) -> OpenAICompatibleClient:
    """Create a client with a mocked model.

    Returns:
        OpenAICompatibleClient: Client under test.
    """
    return OpenAICompatibleClient(
        endpoint=ModelEndpointConfig(base_url="http://localhost:8045/v1"),
        model=ModelSettings(model_id="test-model", temperature=0.2),
        api_key="test-key",
    )


def _request() -> LlmPromptRequest:
    return LlmPromptRequest(prompt="Translate", system_prompt="Be exact", batch_no=0)


def _set_error(mock_agent: MagicMock, error: Exception) -> None:
    mock_agent.return_value.run = AsyncMock(side_effect=error)


def test_client_builds_model_from_config(
    client: OpenAICompatibleClient, mock_create_model: MagicMock
) -> None:
    """The model is created from endpoint and model settings."""
    mock_create_model.assert_called_once_with(
        base_url="http://localhost:8045/v1",
        api_key="test-key",
        model_id="test-model",
        temperature=0.2,
        timeout_s=60.0,
        max_output_tokens=None,
    )
    assert client.model_id == "test-model"


def test_run_prompt_returns_text(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """Successful calls return the model text."""
    response = asyncio.run(client.run_prompt(_request()))

    assert response.output_text == "1. Bonjour"
    assert response.model_id == "test-model"
    _, kwargs = mock_agent.call_args
    assert kwargs["instructions"] == "Be exact"
    mock_agent.return_value.run.assert_awaited_once_with(
        "Translate", model_settings={"temperature": 0.2, "timeout": 60.0}
    )


def test_run_prompt_uses_default_instructions(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """Requests without a system prompt use the default instructions."""
    asyncio.run(client.run_prompt(LlmPromptRequest(prompt="Translate")))

    _, kwargs = mock_agent.call_args
    assert kwargs["instructions"] == DEFAULT_INSTRUCTIONS


def test_http_error_maps_to_transport_error(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """HTTP status failures become transport errors with the status."""
    _set_error(mock_agent, ModelHTTPError(429, "test-model", body="slow down"))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(client.run_prompt(_request()))

    assert exc_info.value.info.code == TranslationErrorCode.TRANSPORT_ERROR
    assert exc_info.value.info.details is not None
    assert exc_info.value.info.details.status_code == 429
    assert "HTTP 429" in str(exc_info.value)


def test_connection_error_maps_to_transport_error(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """Network failures become transport errors naming the endpoint."""
    _set_error(mock_agent, httpx.ConnectError("connection refused"))

    with pytest.raises(TransportError, match="localhost:8045"):
        asyncio.run(client.run_prompt(_request()))


def test_unexpected_behavior_maps_to_bad_response(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """Malformed model responses become bad-response errors."""
    _set_error(mock_agent, UnexpectedModelBehavior("no content"))

    with pytest.raises(BadResponseError) as exc_info:
        asyncio.run(client.run_prompt(_request()))

    assert exc_info.value.info.code == TranslationErrorCode.BAD_RESPONSE


def test_agent_run_error_maps_to_transport_error(
    client: OpenAICompatibleClient, mock_agent: MagicMock
) -> None:
    """Other agent failures are surfaced as transport errors."""
    _set_error(mock_agent, AgentRunError("usage limit"))

    with pytest.raises(TransportError, match="usage limit"):
        asyncio.run(client.run_prompt(_request()))


@pytest.mark.parametrize("output", ["", "   ", None])
def test_empty_output_is_bad_response(
    client: OpenAICompatibleClient,
    mock_agent: MagicMock,
    mock_agent_result: MagicMock,
    output: str | None,
) -> None:
    """Blank or missing text is rejected."""
    mock_agent_result.output = output

    with pytest.raises(BadResponseError, match="empty content"):
        asyncio.run(client.run_prompt(_request()))
