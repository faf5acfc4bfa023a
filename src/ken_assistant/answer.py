"""Phrase an aggregated query response as a natural-language answer."""

from __future__ import annotations

import json
import logging

from ken_assistant.context.models import ProjectContext
from ken_assistant.llm.provider import LLMProvider
from ken_assistant.query.aggregator import AggregatedResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are Ken, an assistant specialized in issue tracker management.

When responding:
- Be concise and helpful
- Base every statement on the issues and project context provided; never invent
  issues, labels, users or milestones
- Format lists of issues as bullet points with the issue number and title
- If the results are marked partial, say so and suggest how to narrow the question
- If limit_reached is true, mention that more issues may exist
"""


def build_messages(
    query: str, response: AggregatedResponse, context: ProjectContext | None
) -> list[dict[str, str]]:
    system = SYSTEM_PROMPT
    if context is not None:
        system += "\n" + context.to_prompt_context()

    payload = response.model_dump(mode="json", exclude_none=True)
    user = (
        f"Question: {query}\n\n"
        "Search results (JSON, ordered by relevance, each with the strategies that found it):\n"
        f"{json.dumps(payload, indent=2, ensure_ascii=False)}"
    )
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def compose_answer(
    provider: LLMProvider,
    query: str,
    response: AggregatedResponse,
    context: ProjectContext | None = None,
) -> str:
    messages = build_messages(query, response, context)
    logger.debug("Composing answer", extra={"records": len(response.records)})
    return provider.chat(messages)
