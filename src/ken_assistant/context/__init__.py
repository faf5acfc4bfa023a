"""Project context snapshots: models, cache and fetcher."""

from ken_assistant.context.fetcher import ContextFetcher
from ken_assistant.context.models import Label, Member, Milestone, ProjectContext
from ken_assistant.context.store import ContextSnapshotFile, ContextStore

__all__ = [
    "ContextFetcher",
    "ContextSnapshotFile",
    "ContextStore",
    "Label",
    "Member",
    "Milestone",
    "ProjectContext",
]
