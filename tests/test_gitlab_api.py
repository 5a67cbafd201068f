from __future__ import annotations

import json as jsonlib
from types import SimpleNamespace
from typing import Any

import pytest

from wellerman.config import GitLabSettings
from wellerman.errors import GitLabError
from wellerman.remote import gitlab_api
from wellerman.remote.gitlab_api import GitLabClient


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, headers: dict | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.content = b"" if payload is None else jsonlib.dumps(payload).encode()
        self.text = self.content.decode()

    def json(self) -> Any:
        return self._payload


class FakeRequestException(Exception):
    pass


class FakeRequests:
    RequestException = FakeRequestException

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[SimpleNamespace] = []

    def request(self, method, url, *, headers, params, json, timeout):
        self.calls.append(
            SimpleNamespace(
                method=method, url=url, headers=headers, params=params, json=json, timeout=timeout
            )
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_requests(monkeypatch):
    def install(*responses: Any) -> FakeRequests:
        fake = FakeRequests(list(responses))
        monkeypatch.setattr(gitlab_api, "_load_requests", lambda: fake)
        return fake

    return install


def _client() -> GitLabClient:
    return GitLabClient.from_settings(
        GitLabSettings(url="https://gitlab.example.org/", token="glpat-123", timeout=5.0)
    )


def test_search_groups_follows_next_page_header(fake_requests):
    fake = fake_requests(
        FakeResponse(200, [{"id": 1, "full_path": "org", "name": "org"}], {"X-Next-Page": "2"}),
        FakeResponse(200, [{"id": 2, "full_path": "other/org", "name": "org"}], {"X-Next-Page": ""}),
    )

    groups = _client().search_groups("org")

    assert [g.full_path for g in groups] == ["org", "other/org"]
    assert [c.params["page"] for c in fake.calls] == ["1", "2"]
    first = fake.calls[0]
    assert first.method == "GET"
    assert first.url == "https://gitlab.example.org/api/v4/groups"
    assert first.params["search"] == "org"
    assert first.params["per_page"] == 100
    assert first.headers["PRIVATE-TOKEN"] == "glpat-123"
    assert first.timeout == 5.0


def test_create_group_sends_parent_and_private_visibility(fake_requests):
    fake = fake_requests(FakeResponse(201, {"id": 7, "full_path": "org/team", "name": "team"}))

    group = _client().create_group(name="team", path="team", parent_id=3)

    assert group.id == 7
    assert group.full_path == "org/team"
    body = fake.calls[0].json
    assert body == {"name": "team", "path": "team", "visibility": "private", "parent_id": 3}


def test_create_project_without_namespace_omits_namespace_id(fake_requests):
    fake = fake_requests(
        FakeResponse(201, {"id": 9, "path_with_namespace": "root/api", "name": "api"})
    )

    project = _client().create_project(name="api", path="api", description="", namespace_id=None)

    assert project.path_with_namespace == "root/api"
    assert project.description == ""
    assert "namespace_id" not in fake.calls[0].json


def test_error_status_raises_gitlab_error(fake_requests):
    fake_requests(FakeResponse(403, {"message": "403 Forbidden"}))

    with pytest.raises(GitLabError) as excinfo:
        _client().edit_project(5, name="api", description="x")

    assert excinfo.value.status == 403
    assert excinfo.value.operation == "edit project"
    assert "403" in str(excinfo.value)


def test_transport_failure_raises_gitlab_error(fake_requests):
    fake_requests(FakeRequestException("connection refused"))

    with pytest.raises(GitLabError, match="connection refused") as excinfo:
        _client().delete_project(5)

    assert excinfo.value.status is None


def test_empty_response_body_is_accepted(fake_requests):
    fake = fake_requests(FakeResponse(202))

    _client().delete_project(5)

    assert fake.calls[0].method == "DELETE"
    assert fake.calls[0].url.endswith("/projects/5")


def test_archive_project_posts_to_archive_endpoint(fake_requests):
    fake = fake_requests(FakeResponse(201, {"id": 5, "archived": True}))

    _client().archive_project(5)

    assert fake.calls[0].method == "POST"
    assert fake.calls[0].url.endswith("/projects/5/archive")
