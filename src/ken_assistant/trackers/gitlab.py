"""GitLab REST (v4) client.

Wraps a `requests.Session` so tracker calls stay out of the orchestration code and
tests can swap the client for a mock.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any
from urllib.parse import quote

import requests

from ken_assistant.context.models import Label, Member, Milestone
from ken_assistant.trackers.base import STATE_OPENED, TrackerAPIError, TrackerIssue, preview

logger = logging.getLogger(__name__)

_ACCESS_LEVEL_ROLES: dict[int, str] = {
    10: "Guest",
    20: "Reporter",
    30: "Developer",
    40: "Maintainer",
    50: "Owner",
}

_PAGE_SIZE = 100
_MAX_PAGES = 20


def access_level_to_role(level: object) -> str | None:
    if not isinstance(level, int):
        return None
    return _ACCESS_LEVEL_ROLES.get(level, "Unknown")


class GitLabClient:
    """Small wrapper around the GitLab v4 API for the operations we need."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://gitlab.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitLab token is required")

        self._api = base_url.rstrip("/") + "/api/v4"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "PRIVATE-TOKEN": token,
                "Accept": "application/json",
                "User-Agent": "ken-assistant",
            }
        )

    def _project_url(self, project_id: str, suffix: str) -> str:
        if not project_id.strip():
            raise ValueError("project_id is required")
        encoded = quote(project_id.strip(), safe="")
        return f"{self._api}/projects/{encoded}/{suffix.lstrip('/')}"

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise TrackerAPIError(f"GitLab request failed: {e}") from e
        if resp.status_code >= 400:
            raise TrackerAPIError(
                f"GitLab API error {resp.status_code} for {url}", status_code=resp.status_code
            )
        return resp

    def _paginate(self, url: str, params: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        page = 1
        while page:
            query = {"per_page": _PAGE_SIZE, "page": page, **(params or {})}
            resp = self._get(url, query)
            data = resp.json()
            if not isinstance(data, list):
                raise TrackerAPIError(f"Unexpected GitLab response shape for {url}")
            yield from (item for item in data if isinstance(item, dict))

            next_page = resp.headers.get("X-Next-Page", "").strip()
            page = int(next_page) if next_page.isdigit() else 0
            if page > _MAX_PAGES:
                raise TrackerAPIError(
                    f"GitLab listing at {url} exceeds {_MAX_PAGES * _PAGE_SIZE} entries"
                )

    def list_labels(self, project_id: str) -> list[Label]:
        logger.debug("Listing labels", extra={"project_id": project_id})
        url = self._project_url(project_id, "labels")
        return [
            Label(
                name=str(item.get("name") or ""),
                description=item.get("description") or None,
                open_issue_count=item.get("open_issues_count"),
            )
            for item in self._paginate(url, {"with_counts": "true"})
            if item.get("name")
        ]

    def list_members(self, project_id: str) -> list[Member]:
        logger.debug("Listing members", extra={"project_id": project_id})
        url = self._project_url(project_id, "members/all")
        return [
            Member(
                username=str(item["username"]),
                role=access_level_to_role(item.get("access_level")),
                display_name=item.get("name") or None,
            )
            for item in self._paginate(url)
            if item.get("username")
        ]

    def list_milestones(self, project_id: str) -> list[Milestone]:
        logger.debug("Listing milestones", extra={"project_id": project_id})
        url = self._project_url(project_id, "milestones")
        return [
            Milestone(
                title=str(item["title"]),
                due_date=item.get("due_date"),
                state=str(item.get("state") or "active"),
            )
            for item in self._paginate(url)
            if item.get("title")
        ]

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
        params: dict[str, Any] = {"state": state, "per_page": limit}
        if labels:
            params["labels"] = ",".join(labels)
        if assignee:
            params["assignee_username"] = assignee
        if milestone:
            params["milestone"] = milestone
        if search:
            params["search"] = search
            params["in"] = "title,description"

        logger.debug("Searching issues", extra={"project_id": project_id, "params": params})
        resp = self._get(self._project_url(project_id, "issues"), params)
        data = resp.json()
        if not isinstance(data, list):
            raise TrackerAPIError("Unexpected GitLab response shape for issue search")

        return [_parse_issue(item, include_descriptions) for item in data[:limit]]

    def close(self) -> None:
        self._session.close()


def _username(user: object) -> str | None:
    if isinstance(user, dict):
        name = user.get("username")
        return name if isinstance(name, str) else None
    return None


def _parse_issue(item: dict[str, Any], include_descriptions: bool) -> TrackerIssue:
    assignees = [u for u in (_username(a) for a in item.get("assignees") or []) if u]
    if not assignees and (single := _username(item.get("assignee"))):
        assignees = [single]

    milestone = item.get("milestone")
    return TrackerIssue(
        id=item["iid"],
        title=item.get("title") or "",
        state=item.get("state") or "",
        assignees=tuple(assignees),
        labels=tuple(item.get("labels") or ()),
        milestone=milestone.get("title") if isinstance(milestone, dict) else None,
        author=_username(item.get("author")),
        web_url=item.get("web_url"),
        created_at=item.get("created_at"),
        updated_at=item.get("updated_at"),
        description=preview(item.get("description")) if include_descriptions else None,
    )
