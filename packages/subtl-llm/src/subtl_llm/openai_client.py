"""OpenAI-compatible translation client powered by pydantic-ai."""

from __future__ import annotations

import logging

import httpx
from openai import APIConnectionError
from pydantic_ai import Agent
from pydantic_ai.exceptions import (
    AgentRunError,
    ModelHTTPError,
    UnexpectedModelBehavior,
)

from subtl_core.ports.llm import (
    BadResponseError,
    TranslationClientProtocol,
    TransportError,
)
from subtl_llm.provider_factory import create_model
from subtl_schemas.config import ModelEndpointConfig, ModelSettings
from subtl_schemas.llm import LlmPromptRequest, LlmPromptResponse

_log = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS = "You are a professional subtitle translator."


class OpenAICompatibleClient(TranslationClientProtocol):
    """Translation client for OpenAI-compatible chat completion endpoints."""

    def __init__(
        self,
        *,
        endpoint: ModelEndpointConfig,
        model: ModelSettings,
        api_key: str,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Endpoint configuration.
            model: Model settings.
            api_key: Resolved API key.
        """
        self._endpoint = endpoint
        self._model_settings = model
        self._model, self._settings = create_model(
            base_url=endpoint.base_url,
            api_key=api_key,
            model_id=model.model_id,
            temperature=model.temperature,
            timeout_s=endpoint.timeout_s,
            max_output_tokens=model.max_output_tokens,
        )

    @property
    def model_id(self) -> str:
        """Return the configured model identifier."""
        return self._model_settings.model_id

    async def run_prompt(self, request: LlmPromptRequest) -> LlmPromptResponse:
        """Send one prompt and return the raw text response.

        Args:
            request: Prompt request.

        Returns:
            LlmPromptResponse: Model output payload.

        Raises:
            TransportError: On HTTP status, connection or timeout failures.
            BadResponseError: If the model returns unusable content.
        """
        agent = Agent(
            self._model,
            instructions=request.system_prompt or DEFAULT_INSTRUCTIONS,
        )
        try:
            result = await agent.run(request.prompt, model_settings=self._settings)
        except ModelHTTPError as exc:
            _log.debug(
                "Batch %s: HTTP %s from %s", request.batch_no, exc.status_code, exc
            )
            raise TransportError(
                f"HTTP {exc.status_code} from model endpoint: {exc.body or exc}",
                status_code=exc.status_code,
            ) from exc
        except UnexpectedModelBehavior as exc:
            raise BadResponseError(f"Unexpected model response: {exc}") from exc
        except (APIConnectionError, httpx.HTTPError) as exc:
            raise TransportError(
                f"Could not reach model endpoint {self._endpoint.base_url}: {exc}"
            ) from exc
        except AgentRunError as exc:
            raise TransportError(f"Model request failed: {exc}") from exc

        output = result.output
        if not isinstance(output, str) or not output.strip():
            raise BadResponseError("Model returned empty content")
        return LlmPromptResponse(model_id=self.model_id, output_text=output)
