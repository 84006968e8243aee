"""Unit tests for the LLM model factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from subtl_llm.provider_factory import DEFAULT_MAX_OUTPUT_TOKENS, create_model


class TestCreateModel:
    """Tests for OpenAI-compatible model creation."""

    @patch("subtl_llm.provider_factory.OpenAIProvider")
    @patch("subtl_llm.provider_factory.OpenAIChatModel")
    def test_creates_chat_model_with_provider(
        self,
        mock_model_cls: MagicMock,
        mock_provider_cls: MagicMock,
    ) -> None:
        """The provider carries the endpoint and key; the model its id."""
        model, settings = create_model(
            base_url="http://localhost:8045/v1",
            api_key="test-key",
            model_id="gemini-2.5-flash",
            temperature=0.2,
            timeout_s=30.0,
        )

        mock_provider_cls.assert_called_once_with(
            base_url="http://localhost:8045/v1", api_key="test-key"
        )
        mock_model_cls.assert_called_once_with(
            "gemini-2.5-flash", provider=mock_provider_cls.return_value
        )
        assert model is mock_model_cls.return_value
        assert settings["temperature"] == 0.2
        assert settings["timeout"] == 30.0
        assert settings.get("max_tokens") == DEFAULT_MAX_OUTPUT_TOKENS

    @patch("subtl_llm.provider_factory.OpenAIProvider")
    @patch("subtl_llm.provider_factory.OpenAIChatModel")
    def test_max_output_tokens_override(
        self,
        mock_model_cls: MagicMock,
        mock_provider_cls: MagicMock,
    ) -> None:
        """An explicit token cap replaces the default."""
        _, settings = create_model(
            base_url="http://localhost:8045/v1",
            api_key="test-key",
            model_id="m",
            temperature=0.0,
            max_output_tokens=512,
        )

        assert settings.get("max_tokens") == 512
        assert settings["timeout"] == 60.0
