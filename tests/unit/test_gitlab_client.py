"""Unit tests for the GitLab REST client."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from ken_assistant.trackers.base import TrackerAPIError
from ken_assistant.trackers.gitlab import GitLabClient, access_level_to_role


def _response(data: Any, status_code: int = 200, next_page: str = "") -> Mock:
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.headers = {"X-Next-Page": next_page}
    return resp


def _client(*responses: Mock) -> tuple[GitLabClient, Mock]:
    session = Mock()
    session.headers = {}
    session.get.side_effect = list(responses)
    client = GitLabClient(
        token="glpat-test", base_url="https://gitlab.example.com/", timeout=5, session=session
    )
    return client, session


def test_token_is_required() -> None:
    with pytest.raises(ValueError):
        GitLabClient(token="", session=Mock())


def test_session_carries_private_token() -> None:
    _, session = _client()

    assert session.headers["PRIVATE-TOKEN"] == "glpat-test"


def test_project_path_is_url_encoded() -> None:
    client, session = _client(_response([]))

    client.list_labels("acme/app")

    url = session.get.call_args.args[0]
    assert url == "https://gitlab.example.com/api/v4/projects/acme%2Fapp/labels"
    assert session.get.call_args.kwargs["timeout"] == 5


def test_labels_follow_pagination() -> None:
    client, session = _client(
        _response(
            [{"name": "bug", "description": "Broken", "open_issues_count": 3}], next_page="2"
        ),
        _response([{"name": "feature", "description": ""}, {"description": "no name"}]),
    )

    labels = client.list_labels("acme/app")

    assert [label.name for label in labels] == ["bug", "feature"]
    assert labels[0].open_issue_count == 3
    assert labels[1].description is None
    assert session.get.call_count == 2
    assert session.get.call_args_list[1].kwargs["params"]["page"] == 2


def test_members_map_access_levels_to_roles() -> None:
    client, _ = _client(
        _response(
            [
                {"username": "alice", "name": "Alice Liddell", "access_level": 30},
                {"username": "bob", "name": "Bob Stone", "access_level": 40},
                {"username": "eve", "access_level": 15},
            ]
        )
    )

    members = client.list_members("acme/app")

    assert [(m.username, m.role) for m in members] == [
        ("alice", "Developer"),
        ("bob", "Maintainer"),
        ("eve", "Unknown"),
    ]
    assert members[0].display_name == "Alice Liddell"


def test_access_level_to_role_ignores_non_integers() -> None:
    assert access_level_to_role("40") is None
    assert access_level_to_role(50) == "Owner"


def test_search_issues_sends_filters_and_parses_records() -> None:
    client, session = _client(
        _response(
            [
                {
                    "iid": 42,
                    "title": "Crash on login",
                    "state": "opened",
                    "assignees": [{"username": "alice"}],
                    "labels": ["bug"],
                    "milestone": {"title": "v2.0"},
                    "author": {"username": "bob"},
                    "web_url": "https://gitlab.example.com/acme/app/-/issues/42",
                    "description": "x" * 150,
                }
            ]
        )
    )

    issues = client.search_issues(
        "acme/app",
        state="opened",
        labels=["bug", "feature"],
        assignee="alice",
        milestone="v2.0",
        limit=10,
        include_descriptions=True,
    )

    params = session.get.call_args.kwargs["params"]
    assert params == {
        "state": "opened",
        "per_page": 10,
        "labels": "bug,feature",
        "assignee_username": "alice",
        "milestone": "v2.0",
    }
    issue = issues[0]
    assert issue.id == 42
    assert issue.assignees == ("alice",)
    assert issue.milestone == "v2.0"
    assert issue.author == "bob"
    assert issue.description == "x" * 100 + "..."


def test_single_assignee_field_is_used_as_fallback() -> None:
    client, _ = _client(
        _response([{"iid": 1, "title": "t", "state": "closed", "assignee": {"username": "bob"}}])
    )

    issue = client.search_issues("acme/app", state="closed")[0]

    assert issue.assignees == ("bob",)
    assert issue.description is None


def test_error_status_raises_tracker_error() -> None:
    client, _ = _client(_response({"message": "404 Project Not Found"}, status_code=404))

    with pytest.raises(TrackerAPIError) as exc_info:
        client.list_milestones("acme/missing")

    assert exc_info.value.status_code == 404


def test_transport_failure_raises_tracker_error() -> None:
    session = Mock()
    session.headers = {}
    session.get.side_effect = requests.ConnectionError("connection refused")
    client = GitLabClient(token="glpat-test", session=session)

    with pytest.raises(TrackerAPIError, match="connection refused"):
        client.search_issues("acme/app")


def test_unexpected_payload_shape_raises_tracker_error() -> None:
    client, _ = _client(_response({"not": "a list"}))

    with pytest.raises(TrackerAPIError):
        client.search_issues("acme/app")


def test_close_closes_session() -> None:
    client, session = _client()

    client.close()

    session.close.assert_called_once_with()


def test_free_text_search_is_sent_to_gitlab() -> None:
    client, session = _client(_response([]))

    client.search_issues("acme/app", search="login crash")

    params = session.get.call_args.kwargs["params"]
    assert params["search"] == "login crash"
    assert params["in"] == "title,description"


def test_listing_beyond_page_cap_fails_instead_of_truncating() -> None:
    pages = [_response([{"name": f"label-{n}"}], next_page=str(n + 2)) for n in range(20)]
    client, session = _client(*pages)

    with pytest.raises(TrackerAPIError, match="exceeds"):
        client.list_labels("acme/app")

    assert session.get.call_count == 20
