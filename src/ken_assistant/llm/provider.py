"""LLM provider interface used to phrase query answers."""

from abc import ABC, abstractmethod
from typing import Any


class LLMProvider(ABC):
    """A chat-completion backend.

    The assistant only phrases answers: the system turn carries the project
    context summary and the user turn carries the question plus the aggregated
    search results. Planning never goes through the provider.
    """

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Return the assistant reply for `messages`.

        Args:
            messages: Chat turns as dicts with 'role' and 'content'.
            max_tokens: Upper bound on generated tokens; provider default when None.
            temperature: Sampling temperature; provider default when None.
            **kwargs: Passed through to the backend unchanged.
        """
        ...
