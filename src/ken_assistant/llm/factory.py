"""Factory for creating LLM providers."""

import logging

from ken_assistant.config import LLMConfig
from ken_assistant.llm.openai_provider import OpenAIProvider
from ken_assistant.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Raises:
            ValueError: If provider type is not supported.
        """
        logger.info("Creating LLM provider", extra={"provider": config.provider})

        if config.provider == "openai":
            return OpenAIProvider(config)
        raise ValueError(f"Unsupported LLM provider: {config.provider}")
