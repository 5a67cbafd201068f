from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from ..errors import GitLabError, ProjectNotFound
from ..resources import ProjectPath
from .gitlab_api import PRIVATE_VISIBILITY, RemoteProject

logger = logging.getLogger(__name__)


@dataclass
class ProjectSyncResult:
    path: str
    created: bool = False
    updated: bool = False
    archived: bool = False
    deleted: bool = False

    @property
    def changed(self) -> bool:
        return self.created or self.updated or self.archived or self.deleted


def split_path(path: str) -> tuple[str | None, str]:
    """Split ``a/b/c`` into (``a/b``, ``c``); a single segment has no parent."""
    parts = [p for p in path.strip().split("/") if p]
    if not parts:
        raise ValueError("path cannot be empty")
    parent = "/".join(parts[:-1]) or None
    return parent, parts[-1]


def ensure_group_path(client: Any, path: str) -> int:
    """Return the id of the group at ``path``, creating missing ancestors top-down.

    Every level is search-before-create, so repeated calls never duplicate a
    group. Nothing is cached between calls.
    """
    parent_path, name = split_path(path)
    for group in client.search_groups(name):
        if group.full_path == path:
            return group.id

    parent_id = ensure_group_path(client, parent_path) if parent_path else None
    try:
        group = client.create_group(
            name=name,
            path=name,
            parent_id=parent_id,
            visibility=PRIVATE_VISIBILITY,
        )
    except GitLabError as exc:
        raise GitLabError(exc.operation, path, exc.detail, status=exc.status) from exc
    logger.info("Created GitLab group %s (id=%s)", path, group.id)
    return group.id


def find_project(client: Any, path: str) -> RemoteProject | None:
    _, name = split_path(path)
    for project in client.search_projects(name):
        if project.path_with_namespace == path:
            return project
    return None


@contextmanager
def _acting_on(path: str) -> Iterator[None]:
    try:
        yield
    except GitLabError as exc:
        if exc.target == path:
            raise
        raise GitLabError(exc.operation, path, exc.detail, status=exc.status) from exc


def reconcile_project(client: Any, spec: ProjectPath) -> ProjectSyncResult:
    with _acting_on(spec.path):
        return _reconcile_project(client, spec)


def delete_project(client: Any, spec: ProjectPath) -> ProjectSyncResult:
    with _acting_on(spec.path):
        return _delete_project(client, spec)


def _reconcile_project(client: Any, spec: ProjectPath) -> ProjectSyncResult:
    existing = find_project(client, spec.path)
    if existing:
        if existing.name == spec.name and existing.description == spec.description:
            return ProjectSyncResult(path=spec.path)
        client.edit_project(existing.id, name=spec.name, description=spec.description)
        logger.info("Updated GitLab project %s", spec.path)
        return ProjectSyncResult(path=spec.path, updated=True)

    parent_path, leaf = split_path(spec.path)
    if parent_path is None:
        raise ValueError(f"project path {spec.path} has no group namespace")
    namespace_id = ensure_group_path(client, parent_path)
    client.create_project(
        name=spec.name,
        path=leaf,
        description=spec.description,
        namespace_id=namespace_id,
        visibility=PRIVATE_VISIBILITY,
    )
    logger.info("Created GitLab project %s", spec.path)
    return ProjectSyncResult(path=spec.path, created=True)


def _delete_project(client: Any, spec: ProjectPath) -> ProjectSyncResult:
    existing = find_project(client, spec.path)
    if existing is None:
        raise ProjectNotFound(spec.path)
    if spec.archive_on_delete:
        client.archive_project(existing.id)
        logger.info("Archived GitLab project %s", spec.path)
        return ProjectSyncResult(path=spec.path, archived=True)
    client.delete_project(existing.id)
    logger.info("Deleted GitLab project %s", spec.path)
    return ProjectSyncResult(path=spec.path, deleted=True)
