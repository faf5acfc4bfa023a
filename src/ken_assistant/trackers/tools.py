"""Tool-invocation adapter used by the strategy executor.

The executor speaks in tool names and structured arguments, the way an LLM tool
call would. `TrackerToolInvoker` maps those calls onto a local `TrackerClient`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from ken_assistant.errors import ToolInvocationError
from ken_assistant.trackers.base import STATE_OPENED, TrackerAPIError, TrackerClient, TrackerIssue

logger = logging.getLogger(__name__)

LIST_ISSUES_TOOL = "list_issues"

DEFAULT_LIMIT = 20
MAX_LIMIT = 50


class ToolInvoker(Protocol):
    def invoke(self, tool_name: str, arguments: Mapping[str, Any]) -> list[TrackerIssue]:
        """Run a tool and return its records, or raise ToolInvocationError."""
        ...


def clamp_limit(value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        return DEFAULT_LIMIT
    return max(1, min(value, MAX_LIMIT))


def _split_labels(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, (list, tuple)):
        return [str(p).strip() for p in value if str(p).strip()]
    raise TypeError(f"labels must be a string or a list, got {type(value).__name__}")


def _text(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"search must be a string, got {type(value).__name__}")
    return value.strip() or None


class TrackerToolInvoker:
    """Exposes tracker searches as named tools."""

    def __init__(self, tracker: TrackerClient, *, default_project_id: str | None = None) -> None:
        self._tracker = tracker
        self._default_project_id = default_project_id
        self._tools: dict[str, Callable[[Mapping[str, Any]], list[TrackerIssue]]] = {
            LIST_ISSUES_TOOL: self._list_issues,
        }

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._tools)

    def invoke(self, tool_name: str, arguments: Mapping[str, Any]) -> list[TrackerIssue]:
        handler = self._tools.get(tool_name)
        if handler is None:
            raise ToolInvocationError(tool_name, "unknown tool")

        try:
            return handler(arguments)
        except ToolInvocationError:
            raise
        except requests.Timeout as e:
            raise ToolInvocationError(tool_name, f"timed out: {e}") from e
        except (TrackerAPIError, requests.RequestException) as e:
            raise ToolInvocationError(tool_name, str(e)) from e
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise ToolInvocationError(tool_name, f"malformed tool input or output: {e}") from e

    def _list_issues(self, arguments: Mapping[str, Any]) -> list[TrackerIssue]:
        project_id = arguments.get("project_id") or self._default_project_id
        if not project_id:
            raise ToolInvocationError(
                LIST_ISSUES_TOOL, "no project_id provided and no default set"
            )

        return self._tracker.search_issues(
            str(project_id),
            state=str(arguments.get("state") or STATE_OPENED),
            labels=_split_labels(arguments.get("labels")),
            assignee=arguments.get("assignee_username") or None,
            milestone=arguments.get("milestone") or None,
            search=_text(arguments.get("search")),
            limit=clamp_limit(arguments.get("limit")),
            include_descriptions=bool(arguments.get("include_descriptions", False)),
        )
