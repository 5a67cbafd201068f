from __future__ import annotations

from typing import Any

import pytest

from wellerman.errors import DirectoryError, GitLabError
from wellerman.remote.gitlab_api import RemoteGroup, RemoteProject
from wellerman.remote.ldap_api import DirectoryEntry
from wellerman.resources import parse_resource
from wellerman.store import FileResourceStore

READ_CALLS = {"search_groups", "search_projects", "search_group"}


class FakeGitLab:
    """In-memory GitLab group/project tree recording every call."""

    def __init__(self) -> None:
        self.groups: dict[str, RemoteGroup] = {}
        self.projects: dict[int, RemoteProject] = {}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, Exception] = {}
        self.on_mutation: Any = None
        self._next_id = 100

    def add_group(self, full_path: str) -> RemoteGroup:
        group = RemoteGroup(id=self._id(), full_path=full_path, name=full_path.split("/")[-1])
        self.groups[full_path] = group
        return group

    def add_project(self, path: str, *, name: str, description: str = "") -> RemoteProject:
        project = RemoteProject(
            id=self._id(), path_with_namespace=path, name=name, description=description
        )
        self.projects[project.id] = project
        return project

    def project_at(self, path: str) -> RemoteProject | None:
        for project in self.projects.values():
            if project.path_with_namespace == path:
                return project
        return None

    def mutations(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] not in READ_CALLS]

    def search_groups(self, term: str) -> list[RemoteGroup]:
        self._record("search_groups", term)
        return [g for g in self.groups.values() if term in g.name]

    def create_group(self, *, name: str, path: str, parent_id: int | None, visibility: str):
        self._record("create_group", path)
        assert visibility == "private"
        parent = None
        if parent_id is not None:
            parent = next(g for g in self.groups.values() if g.id == parent_id)
        full_path = f"{parent.full_path}/{path}" if parent else path
        return self.add_group(full_path)

    def search_projects(self, term: str) -> list[RemoteProject]:
        self._record("search_projects", term)
        return [p for p in self.projects.values() if term in p.path_with_namespace]

    def create_project(
        self,
        *,
        name: str,
        path: str,
        description: str,
        namespace_id: int | None,
        visibility: str,
    ) -> RemoteProject:
        self._record("create_project", path)
        assert visibility == "private"
        namespace = next(g for g in self.groups.values() if g.id == namespace_id).full_path
        return self.add_project(f"{namespace}/{path}", name=name, description=description)

    def edit_project(self, project_id: int, *, name: str, description: str) -> RemoteProject:
        self._record("edit_project", project_id)
        current = self.projects[project_id]
        updated = RemoteProject(
            id=project_id,
            path_with_namespace=current.path_with_namespace,
            name=name,
            description=description,
        )
        self.projects[project_id] = updated
        return updated

    def archive_project(self, project_id: int) -> None:
        self._record("archive_project", project_id)
        current = self.projects[project_id]
        self.projects[project_id] = RemoteProject(
            id=project_id,
            path_with_namespace=current.path_with_namespace,
            name=current.name,
            description=current.description,
            archived=True,
        )

    def delete_project(self, project_id: int) -> None:
        self._record("delete_project", project_id)
        del self.projects[project_id]

    def _record(self, operation: str, arg: Any) -> None:
        if operation not in READ_CALLS and self.on_mutation is not None:
            self.on_mutation(operation)
        if operation in self.failures:
            raise self.failures[operation]
        self.calls.append((operation, arg))

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id


class FakeDirectory:
    """Stand-in for DirectoryClient keyed by DN."""

    def __init__(self, base: str = "ou=groups,dc=example,dc=org") -> None:
        self.base = base
        self.entries: dict[str, DirectoryEntry] = {}
        self.calls: list[tuple[str, Any]] = []
        self.failures: dict[str, Exception] = {}
        self.on_mutation: Any = None

    def group_dn(self, name: str) -> str:
        return f"cn={name},{self.base}"

    def seed(self, name: str, *, description: str, members: list[str]) -> None:
        dn = self.group_dn(name)
        self.entries[dn] = DirectoryEntry(dn=dn, description=description, members=tuple(members))

    def mutations(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] not in READ_CALLS]

    def search_group(self, name: str) -> DirectoryEntry | None:
        self._record("search_group", name)
        return self.entries.get(self.group_dn(name))

    def add_group(self, dn: str, *, description: str, members: list[str]) -> None:
        self._record("add_group", dn)
        self.entries[dn] = DirectoryEntry(dn=dn, description=description, members=tuple(members))

    def modify_group(self, dn: str, *, description: str, members: list[str]) -> None:
        self._record("modify_group", dn)
        self.entries[dn] = DirectoryEntry(dn=dn, description=description, members=tuple(members))

    def delete_group(self, dn: str) -> None:
        self._record("delete_group", dn)
        del self.entries[dn]

    def _record(self, operation: str, arg: Any) -> None:
        if operation not in READ_CALLS and self.on_mutation is not None:
            self.on_mutation(operation)
        if operation in self.failures:
            raise self.failures[operation]
        self.calls.append((operation, arg))


def project_doc(name: str, paths: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "apiVersion": "app.wellerman.io/v1",
        "kind": "Project",
        "metadata": {"name": name},
        "spec": {"paths": paths},
    }


def team_doc(name: str, *, comment: str, subjects: list[str]) -> dict[str, Any]:
    return {
        "apiVersion": "app.wellerman.io/v1",
        "kind": "Team",
        "metadata": {"name": name},
        "spec": {"comment": comment, "subjects": subjects},
    }


def declare(store: FileResourceStore, doc: dict[str, Any]):
    return store.create_or_replace(parse_resource(doc))


@pytest.fixture
def store(tmp_path) -> FileResourceStore:
    return FileResourceStore(tmp_path / "store")


@pytest.fixture
def gitlab() -> FakeGitLab:
    return FakeGitLab()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def gitlab_failure() -> GitLabError:
    return GitLabError("create project", "org/api", "GitLab API error 500: boom", status=500)


@pytest.fixture
def directory_failure() -> DirectoryError:
    return DirectoryError("delete group", "core", "unavailable (52)")
