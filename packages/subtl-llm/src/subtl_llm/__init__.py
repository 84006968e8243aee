"""Remote translation clients for subtl."""

from subtl_llm.openai_client import OpenAICompatibleClient
from subtl_llm.provider_factory import create_model

__all__ = ["OpenAICompatibleClient", "create_model"]
