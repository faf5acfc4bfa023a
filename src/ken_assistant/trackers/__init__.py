"""Tracker clients and the tool-invocation adapter."""

from ken_assistant.trackers.base import TrackerAPIError, TrackerClient, TrackerIssue
from ken_assistant.trackers.factory import TrackerFactory
from ken_assistant.trackers.tools import LIST_ISSUES_TOOL, ToolInvoker, TrackerToolInvoker

__all__ = [
    "LIST_ISSUES_TOOL",
    "ToolInvoker",
    "TrackerAPIError",
    "TrackerClient",
    "TrackerFactory",
    "TrackerIssue",
    "TrackerToolInvoker",
]
