"""OpenAI-compatible LLM provider implementation."""

import logging
from typing import Any

from openai import OpenAI

from ken_assistant.config import LLMConfig
from ken_assistant.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat completions against the OpenAI API or any compatible endpoint."""

    def __init__(self, config: LLMConfig, client: OpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Pre-built client, mainly for tests.

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("KEN_LLM_OPENAI_API_KEY is required to compose answers")

        self.config = config
        self.client = client or OpenAI(
            api_key=config.openai_api_key, base_url=config.openai_base_url
        )
        self.model = config.openai_model
        self.temperature = config.openai_temperature

        logger.info("OpenAI provider initialized", extra={"model": self.model})

    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        temp = temperature if temperature is not None else self.temperature

        logger.debug("Generating chat completion", extra={"messages": len(messages)})

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=temp,
            **kwargs,
        )

        content = response.choices[0].message.content or ""
        logger.debug("Generated chat completion", extra={"characters": len(content)})

        return content
