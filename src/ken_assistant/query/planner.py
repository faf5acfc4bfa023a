"""Turn a natural-language request into ranked, context-grounded search strategies.

Matching is lexical: the request is split into lowercase terms and compared with
the names in the cached project context. Every filter value a strategy carries is
copied from the context and checked against it again before the plan is returned,
so a plan can never reference a label, user or milestone the tracker doesn't know.
"""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from ken_assistant.context.models import ProjectContext
from ken_assistant.trackers.base import STATE_CLOSED, STATE_OPENED

logger = logging.getLogger(__name__)

CLOSED_STATE_TERMS = frozenset({"closed", "resolved", "done", "merged"})

_TOKEN_SPLIT = re.compile(r"[\s,;!?()\[\]{}\"'`<>=+|]+")
_EDGE_CHARS = ".:-_/@~%#*&"


@dataclass(frozen=True, slots=True)
class Query:
    """One natural-language request against a project."""

    text: str
    project_id: str
    project_override: str | None = None

    @property
    def effective_project_id(self) -> str:
        return (self.project_override or self.project_id).strip()


@dataclass(frozen=True, slots=True)
class SearchStrategy:
    """A concrete filter combination to run against the tracker's issue search.

    `labels` are AND-ed, matching the tracker's label filter semantics.
    """

    state: str = STATE_OPENED
    assignee: str | None = None
    labels: tuple[str, ...] = ()
    milestone: str | None = None

    @property
    def dimensions(self) -> int:
        """Number of distinct filter dimensions touched, state included."""

        return 1 + sum((self.assignee is not None, bool(self.labels), self.milestone is not None))

    @property
    def is_default(self) -> bool:
        """True when only the state filter is set."""

        return self.dimensions == 1

    @property
    def match_count(self) -> int:
        return (self.assignee is not None) + len(self.labels) + (self.milestone is not None)

    @property
    def name(self) -> str:
        parts: list[str] = []
        if self.labels:
            parts.append("label=" + ",".join(self.labels))
        if self.assignee is not None:
            parts.append(f"assignee={self.assignee}")
        if self.milestone is not None:
            parts.append(f"milestone={self.milestone}")
        parts.append(f"state={self.state}")
        return " ".join(parts)

    def to_tool_arguments(self, project_id: str, *, limit: int) -> dict[str, Any]:
        """Translate into the issue-search tool's native parameters."""

        args: dict[str, Any] = {"project_id": project_id, "state": self.state, "limit": limit}
        if self.labels:
            args["labels"] = ",".join(self.labels)
        if self.assignee is not None:
            args["assignee_username"] = self.assignee
        if self.milestone is not None:
            args["milestone"] = self.milestone
        return args


@dataclass(frozen=True, slots=True)
class PlannerConfig:
    max_strategy_dimensions: int = 3
    max_strategies: int = 8
    min_match_length: int = 2

    def __post_init__(self) -> None:
        if not 1 <= self.max_strategy_dimensions <= 3:
            raise ValueError("max_strategy_dimensions must be between 1 and 3")
        if self.max_strategies < 1:
            raise ValueError("max_strategies must be at least 1")


def tokenize(text: str) -> list[str]:
    """Split text into lowercase terms, keeping identifier punctuation inside a term."""

    tokens: list[str] = []
    for raw in _TOKEN_SPLIT.split(text.lower()):
        term = raw.strip(_EDGE_CHARS)
        if term:
            tokens.append(term)
    return tokens


def wants_closed_state(tokens: Iterable[str]) -> bool:
    return any(term in CLOSED_STATE_TERMS for term in tokens)


def name_matches(name: str, tokens: Sequence[str], *, min_length: int = 2) -> bool:
    """True if `name` equals or is contained in a query term.

    Multi-word names match when each of their words is found in consecutive terms.
    """

    words = tokenize(name)
    if not words or len(" ".join(words)) < min_length:
        return False

    if len(words) == 1:
        needle = words[0]
        return any(needle in term for term in tokens)

    width = len(words)
    for start in range(len(tokens) - width + 1):
        window = tokens[start : start + width]
        if all(word in term for word, term in zip(words, window)):
            return True
    return False


def validate_strategy(strategy: SearchStrategy, context: ProjectContext) -> None:
    """Reject any filter value that isn't present in the context snapshot.

    Raises:
        ValueError: If a label, assignee or milestone is not part of the context.
    """

    unknown_labels = [label for label in strategy.labels if label not in context.label_names()]
    if unknown_labels:
        raise ValueError(f"Strategy references unknown labels: {unknown_labels}")
    if strategy.assignee is not None and strategy.assignee not in context.usernames():
        raise ValueError(f"Strategy references unknown member: {strategy.assignee!r}")
    if strategy.milestone is not None and strategy.milestone not in context.milestone_titles():
        raise ValueError(f"Strategy references unknown milestone: {strategy.milestone!r}")
    if strategy.state not in (STATE_OPENED, STATE_CLOSED):
        raise ValueError(f"Strategy has unsupported state: {strategy.state!r}")


def _unique(values: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


class QueryPlanner:
    """Produces a ranked, never-empty list of search strategies for a query."""

    def __init__(self, config: PlannerConfig | None = None) -> None:
        self.config = config or PlannerConfig()

    def plan(self, query: Query, context: ProjectContext) -> list[SearchStrategy]:
        if context.project_id != query.effective_project_id:
            raise ValueError(
                f"Context for {context.project_id!r} cannot plan a query for "
                f"{query.effective_project_id!r}"
            )

        tokens = tokenize(query.text)
        state = STATE_CLOSED if wants_closed_state(tokens) else STATE_OPENED
        min_length = self.config.min_match_length

        labels = _unique(
            label.name
            for label in context.labels
            if name_matches(label.name, tokens, min_length=min_length)
        )
        members = _unique(
            member.username
            for member in context.members
            if name_matches(member.username, tokens, min_length=min_length)
            or (
                member.display_name is not None
                and name_matches(member.display_name, tokens, min_length=min_length)
            )
        )
        milestones = _unique(
            milestone.title
            for milestone in context.milestones
            if name_matches(milestone.title, tokens, min_length=min_length)
        )

        candidates = self._combine(state, members, labels, milestones)
        if not candidates:
            strategies = [SearchStrategy(state=state)]
        else:
            strategies = sorted(candidates, key=lambda s: -s.dimensions)

        for strategy in strategies:
            validate_strategy(strategy, context)

        logger.debug(
            "Planned query",
            extra={
                "project_id": context.project_id,
                "matched_labels": labels,
                "matched_members": members,
                "matched_milestones": milestones,
                "strategies": [s.name for s in strategies],
            },
        )
        return strategies

    def _combine(
        self,
        state: str,
        members: Sequence[str],
        labels: Sequence[str],
        milestones: Sequence[str],
    ) -> list[SearchStrategy]:
        label_options: list[tuple[str, ...]] = []
        if len(labels) > 1:
            label_options.append(tuple(labels))
        label_options.extend((label,) for label in labels)

        # Matched options come before "unset" so generation order follows detection order.
        combos: list[SearchStrategy] = []
        for assignee, label_set, milestone in itertools.product(
            [*members, None], [*label_options, ()], [*milestones, None]
        ):
            strategy = SearchStrategy(
                state=state, assignee=assignee, labels=label_set, milestone=milestone
            )
            if strategy.is_default:
                continue
            if strategy.dimensions - 1 > self.config.max_strategy_dimensions:
                continue
            combos.append(strategy)

        cap = self.config.max_strategies
        if len(combos) <= cap:
            return combos

        ranked = sorted(range(len(combos)), key=lambda i: -combos[i].match_count)
        kept = sorted(ranked[:cap])
        logger.debug(
            "Strategy cap reached",
            extra={"candidates": len(combos), "kept": cap},
        )
        return [combos[i] for i in kept]
