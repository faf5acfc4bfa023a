"""Ken: natural-language issue queries grounded in cached project context.

Provides:
- a per-project cache of labels, members and milestones
- a lexical planner that maps questions onto tracker search filters
- sequential strategy execution with deterministic fallback
"""

__version__ = "0.1.0"

from ken_assistant.config import AssistantSettings
from ken_assistant.service import QueryOrchestrator

__all__ = ["__version__", "AssistantSettings", "QueryOrchestrator"]
