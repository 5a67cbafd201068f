from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..config import GitLabSettings
from ..errors import GitLabError

logger = logging.getLogger(__name__)

PRIVATE_VISIBILITY = "private"
PER_PAGE = 100


@dataclass(frozen=True)
class RemoteGroup:
    id: int
    full_path: str
    name: str


@dataclass(frozen=True)
class RemoteProject:
    id: int
    path_with_namespace: str
    name: str
    description: str
    archived: bool = False


class GitLabClient:
    """Thin GitLab REST v4 client covering groups and projects."""

    def __init__(self, url: str, token: str, *, timeout: float = 30.0) -> None:
        self._base_url = f"{url.rstrip('/')}/api/v4"
        self._token = token
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: GitLabSettings) -> "GitLabClient":
        return cls(settings.url, settings.token, timeout=settings.timeout)

    def search_groups(self, term: str) -> list[RemoteGroup]:
        return [
            RemoteGroup(
                id=int(item["id"]),
                full_path=str(item.get("full_path") or ""),
                name=str(item.get("name") or ""),
            )
            for item in self._paginate("/groups", {"search": term, "all_available": "true"})
        ]

    def create_group(
        self,
        *,
        name: str,
        path: str,
        parent_id: int | None,
        visibility: str = PRIVATE_VISIBILITY,
    ) -> RemoteGroup:
        body: dict[str, Any] = {"name": name, "path": path, "visibility": visibility}
        if parent_id is not None:
            body["parent_id"] = parent_id
        item = self._request("POST", "/groups", json=body, operation="create group", target=path)
        return RemoteGroup(
            id=int(item["id"]),
            full_path=str(item.get("full_path") or path),
            name=str(item.get("name") or name),
        )

    def search_projects(self, term: str) -> list[RemoteProject]:
        return [_to_project(item) for item in self._paginate("/projects", {"search": term})]

    def create_project(
        self,
        *,
        name: str,
        path: str,
        description: str,
        namespace_id: int | None,
        visibility: str = PRIVATE_VISIBILITY,
    ) -> RemoteProject:
        body: dict[str, Any] = {
            "name": name,
            "path": path,
            "description": description,
            "visibility": visibility,
        }
        if namespace_id is not None:
            body["namespace_id"] = namespace_id
        item = self._request(
            "POST", "/projects", json=body, operation="create project", target=path
        )
        return _to_project(item)

    def edit_project(self, project_id: int, *, name: str, description: str) -> RemoteProject:
        item = self._request(
            "PUT",
            f"/projects/{project_id}",
            json={"name": name, "description": description},
            operation="edit project",
            target=str(project_id),
        )
        return _to_project(item)

    def archive_project(self, project_id: int) -> None:
        self._request(
            "POST",
            f"/projects/{project_id}/archive",
            operation="archive project",
            target=str(project_id),
        )

    def delete_project(self, project_id: int) -> None:
        self._request(
            "DELETE",
            f"/projects/{project_id}",
            operation="delete project",
            target=str(project_id),
        )

    def _headers(self) -> dict[str, str]:
        return {"PRIVATE-TOKEN": self._token, "Accept": "application/json"}

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
        operation: str,
        target: str,
    ) -> Any:
        requests = _load_requests()
        url = f"{self._base_url}{path}"
        logger.debug("GitLab %s %s", method, url)
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise GitLabError(operation, target, str(exc)) from exc
        if response.status_code >= 400:
            raise GitLabError(
                operation,
                target,
                f"GitLab API error {response.status_code}: {response.text}",
                status=response.status_code,
            )
        return response

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        operation: str,
        target: str,
    ) -> dict[str, Any]:
        response = self._send(
            method, path, params=params, json=json, operation=operation, target=target
        )
        if response.status_code == 204 or not response.content:
            return {}
        data = response.json()
        if not isinstance(data, dict):
            raise GitLabError(operation, target, "GitLab API returned non-object response")
        return data

    def _paginate(self, path: str, params: dict[str, Any]) -> Iterable[dict[str, Any]]:
        page = "1"
        while page:
            query = dict(params, per_page=PER_PAGE, page=page)
            response = self._send(
                "GET",
                path,
                params=query,
                json=None,
                operation=f"list {path.strip('/')}",
                target=str(params.get("search", "")),
            )
            data = response.json()
            if not isinstance(data, list):
                break
            for item in data:
                if isinstance(item, dict):
                    yield item
            page = str(response.headers.get("X-Next-Page") or "").strip()


def _to_project(item: dict[str, Any]) -> RemoteProject:
    return RemoteProject(
        id=int(item["id"]),
        path_with_namespace=str(item.get("path_with_namespace") or ""),
        name=str(item.get("name") or ""),
        description=str(item.get("description") or ""),
        archived=bool(item.get("archived", False)),
    )


def _load_requests() -> Any:
    import importlib

    return importlib.import_module("requests")
