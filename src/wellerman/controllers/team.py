from __future__ import annotations

import logging
from typing import Any

from ..errors import GroupNotFound
from ..remote.ldap_groups import delete_group, reconcile_group
from ..resources import KIND_TEAM, Team
from ..store import FileResourceStore
from .engine import ReconcileResult, Reconciler

logger = logging.getLogger(__name__)

TEAM_FINALIZER = "app.wellerman.io/team-finalizer"


class TeamReconciler(Reconciler):
    """Keeps one directory group per Team, named after the Team."""

    kind = KIND_TEAM
    finalizer = TEAM_FINALIZER

    def __init__(self, store: FileResourceStore, directory: Any) -> None:
        super().__init__(store)
        self.directory = directory

    def converge(self, resource: Team, result: ReconcileResult) -> bool:
        sync = reconcile_group(
            self.directory,
            name=resource.name,
            comment=resource.spec.comment,
            subjects=resource.spec.subjects,
        )
        resource.status.dn = sync.dn
        if sync.created:
            result.actions.append(f"created_group:{sync.dn}")
        elif sync.updated:
            result.actions.append(f"updated_group:{sync.dn}")
        return sync.changed

    def cleanup(self, resource: Team, result: ReconcileResult) -> None:
        try:
            dn = delete_group(self.directory, resource.name)
        except GroupNotFound:
            logger.info("Directory group %s already absent", resource.name)
            return
        result.actions.append(f"deleted_group:{dn}")
