"""GitHub tracker client backed by PyGithub.

Projects are repositories in the form "owner/repo". GitHub has no "opened" state
and lists pull requests as issues; both are normalized here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from github import Auth, Github, GithubException
from github.Milestone import Milestone as GithubMilestone
from github.Repository import Repository

from ken_assistant.context.models import Label, Member, Milestone
from ken_assistant.trackers.base import (
    STATE_ALL,
    STATE_CLOSED,
    STATE_OPENED,
    TrackerAPIError,
    TrackerIssue,
    preview,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STATE_TO_GITHUB: dict[str, str] = {
    STATE_OPENED: "open",
    STATE_CLOSED: "closed",
    STATE_ALL: "all",
}


def _role_from_permissions(permissions: object) -> str | None:
    if permissions is None:
        return None
    for attr, role in (
        ("admin", "Admin"),
        ("maintain", "Maintainer"),
        ("push", "Developer"),
        ("triage", "Triage"),
        ("pull", "Reader"),
    ):
        if getattr(permissions, attr, False):
            return role
    return None


class GitHubTrackerClient:
    """Read-only tracker operations over a GitHub repository."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        github_api: Github | None = None,
    ) -> None:
        if not token and github_api is None:
            raise ValueError("GitHub token is required")

        self._github = github_api or Github(
            auth=Auth.Token(token), base_url=base_url, timeout=int(timeout)
        )
        self._repos: dict[str, Repository] = {}

    def _call(self, what: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except GithubException as e:
            raise TrackerAPIError(f"GitHub API error while {what}: {e}", status_code=e.status) from e

    def _repo(self, project_id: str) -> Repository:
        name = project_id.strip()
        if not name:
            raise ValueError("project_id is required")
        repo = self._repos.get(name)
        if repo is None:
            repo = self._call("opening repository", lambda: self._github.get_repo(name))
            self._repos[name] = repo
        return repo

    def list_labels(self, project_id: str) -> list[Label]:
        repo = self._repo(project_id)
        logger.debug("Listing labels", extra={"project_id": project_id})
        return self._call(
            "listing labels",
            lambda: [
                Label(name=label.name, description=label.description or None)
                for label in repo.get_labels()
            ],
        )

    def list_members(self, project_id: str) -> list[Member]:
        repo = self._repo(project_id)
        logger.debug("Listing collaborators", extra={"project_id": project_id})
        return self._call(
            "listing collaborators",
            lambda: [
                Member(
                    username=user.login,
                    role=_role_from_permissions(user.permissions),
                    display_name=user.name or None,
                )
                for user in repo.get_collaborators()
            ],
        )

    def list_milestones(self, project_id: str) -> list[Milestone]:
        repo = self._repo(project_id)
        logger.debug("Listing milestones", extra={"project_id": project_id})
        return self._call(
            "listing milestones",
            lambda: [
                Milestone(
                    title=m.title,
                    due_date=m.due_on.date().isoformat() if m.due_on else None,
                    state="active" if m.state == "open" else m.state,
                )
                for m in repo.get_milestones(state="all")
            ],
        )

    def _find_milestone(self, repo: Repository, title: str) -> GithubMilestone:
        for m in repo.get_milestones(state="all"):
            if m.title == title:
                return m
        raise TrackerAPIError(f"Milestone not found: {title!r}", status_code=404)

    def search_issues(
        self,
        project_id: str,
        *,
        state: str = STATE_OPENED,
        labels: Sequence[str] = (),
        assignee: str | None = None,
        milestone: str | None = None,
        search: str | None = None,
        limit: int = 20,
        include_descriptions: bool = False,
    ) -> list[TrackerIssue]:
        repo = self._repo(project_id)
        gh_state = _STATE_TO_GITHUB.get(state, "open")
        # The issues listing has no text filter; match title and body locally.
        needle = (search or "").strip().lower()

        def run() -> list[TrackerIssue]:
            kwargs: dict[str, object] = {"state": gh_state}
            if labels:
                kwargs["labels"] = list(labels)
            if assignee:
                kwargs["assignee"] = assignee
            if milestone:
                kwargs["milestone"] = self._find_milestone(repo, milestone)

            found: list[TrackerIssue] = []
            for issue in repo.get_issues(**kwargs):  # type: ignore[arg-type]
                if issue.pull_request is not None:
                    continue
                if needle and needle not in f"{issue.title}\n{issue.body or ''}".lower():
                    continue
                found.append(
                    TrackerIssue(
                        id=issue.number,
                        title=issue.title,
                        state=STATE_OPENED if issue.state == "open" else issue.state,
                        assignees=tuple(a.login for a in issue.assignees),
                        labels=tuple(label.name for label in issue.labels),
                        milestone=issue.milestone.title if issue.milestone else None,
                        author=issue.user.login if issue.user else None,
                        web_url=issue.html_url,
                        created_at=issue.created_at.isoformat() if issue.created_at else None,
                        updated_at=issue.updated_at.isoformat() if issue.updated_at else None,
                        description=preview(issue.body) if include_descriptions else None,
                    )
                )
                if len(found) >= limit:
                    break
            return found

        logger.debug(
            "Searching issues",
            extra={"project_id": project_id, "state": gh_state, "labels": list(labels)},
        )
        return self._call("searching issues", run)

    def close(self) -> None:
        self._github.close()
        logger.info("GitHub client closed")
