from __future__ import annotations

import logging
from typing import Any

from ..errors import ProjectNotFound
from ..remote.gitlab_projects import delete_project, reconcile_project
from ..resources import KIND_PROJECT, Project, ProjectPath
from ..store import FileResourceStore
from .drift import decode_project_snapshot, removed_paths
from .engine import ReconcileResult, Reconciler

logger = logging.getLogger(__name__)

PROJECT_FINALIZER = "app.wellerman.io/project-finalizer"


class ProjectReconciler(Reconciler):
    kind = KIND_PROJECT
    finalizer = PROJECT_FINALIZER

    def __init__(self, store: FileResourceStore, gitlab: Any) -> None:
        super().__init__(store)
        self.gitlab = gitlab

    def converge(self, resource: Project, result: ReconcileResult) -> bool:
        changed = False
        for path in self._drifted(resource):
            logger.info("Path %s was dropped from Project %s", path.path, resource.name)
            changed = self._remove(resource, path, result) or changed

        for path in resource.spec.paths:
            if path.external:
                continue
            sync = reconcile_project(self.gitlab, path)
            if sync.created:
                result.actions.append(f"created_project:{path.path}")
            elif sync.updated:
                result.actions.append(f"updated_project:{path.path}")
            changed = sync.changed or changed
        return changed

    def cleanup(self, resource: Project, result: ReconcileResult) -> None:
        # Paths dropped from the declaration but not yet removed are cleaned up too.
        for path in [*resource.spec.paths, *self._drifted(resource)]:
            if not path.external:
                self._remove(resource, path, result)

    def _drifted(self, resource: Project) -> list[ProjectPath]:
        previous = decode_project_snapshot(resource)
        if previous is None:
            return []
        return removed_paths(resource.spec.paths, previous.paths)

    def _remove(self, resource: Project, path: ProjectPath, result: ReconcileResult) -> bool:
        if path.external:
            return False
        try:
            sync = delete_project(self.gitlab, path)
        except ProjectNotFound:
            logger.info(
                "GitLab project %s of Project %s already absent", path.path, resource.name
            )
            return False
        result.actions.append(
            f"{'archived' if sync.archived else 'deleted'}_project:{path.path}"
        )
        return True
