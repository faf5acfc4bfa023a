"""Project context snapshot models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

_PROMPT_LABEL_LIMIT = 20
_PROMPT_MEMBER_LIMIT = 15


class Label(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    open_issue_count: int | None = None


class Member(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    role: str | None = None
    display_name: str | None = None


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    due_date: str | None = None
    state: str = "active"


class ProjectContext(BaseModel):
    """Last-fetched labels, members and milestones for one project.

    Snapshots are immutable. A refresh produces a new snapshot which replaces the
    previous one as a whole.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str
    labels: tuple[Label, ...] = Field(default_factory=tuple)
    members: tuple[Member, ...] = Field(default_factory=tuple)
    milestones: tuple[Milestone, ...] = Field(default_factory=tuple)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def age(self, now: datetime | None = None) -> float:
        """Seconds since this snapshot was fetched."""

        current = now or datetime.now(UTC)
        fetched = self.fetched_at
        if fetched.tzinfo is None:
            fetched = fetched.replace(tzinfo=UTC)
        return (current - fetched).total_seconds()

    def label_names(self) -> set[str]:
        return {label.name for label in self.labels}

    def usernames(self) -> set[str]:
        return {member.username for member in self.members}

    def milestone_titles(self) -> set[str]:
        return {milestone.title for milestone in self.milestones}

    def to_prompt_context(self) -> str:
        """Render a Markdown summary suitable for an LLM system prompt."""

        parts = [f"## Project Context for {self.project_id}\n"]

        if self.labels:
            parts.append("**Available Labels:**")
            for label in self.labels[:_PROMPT_LABEL_LIMIT]:
                usage = f" ({label.open_issue_count})" if label.open_issue_count is not None else ""
                parts.append(
                    f"- `{label.name}`: {label.description or 'No description'}{usage}"
                )
            parts.append("")

        if self.members:
            parts.append("**Project Members:**")
            for member in self.members[:_PROMPT_MEMBER_LIMIT]:
                role = member.role or "Member"
                name = member.display_name or member.username
                parts.append(f"- `{member.username}` ({role}): {name}")
            parts.append("")

        if self.milestones:
            parts.append("**Milestones:**")
            for milestone in self.milestones:
                due = f", due {milestone.due_date}" if milestone.due_date else ""
                parts.append(f"- `{milestone.title}` ({milestone.state}{due})")
            parts.append("")

        parts.append(f"*Context last updated: {self.fetched_at.isoformat()}*")
        return "\n".join(parts) + "\n"
