"""LLM package initialization."""

from ken_assistant.llm.factory import LLMFactory
from ken_assistant.llm.provider import LLMProvider

__all__ = [
    "LLMFactory",
    "LLMProvider",
]
