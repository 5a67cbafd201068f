from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .. import conditions
from ..errors import ResourceNotFound, WellermanError
from ..resources import LAST_APPLIED_ANNOTATION, Resource
from ..store import FileResourceStore
from .drift import snapshot_of
from .finalizer import LifecycleState, lifecycle_state, register, release

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    kind: str
    name: str
    state: str = ""
    changed: bool = False
    requeue: bool = False
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "state": self.state,
            "changed": self.changed,
            "requeue": self.requeue,
            "actions": list(self.actions),
        }


class Reconciler:
    """Drives one declared resource kind toward its remote counterpart.

    ``reconcile`` is safe to call any number of times for the same name. It
    never retries or sleeps: any error is logged and raised, and the caller is
    expected to invoke it again later. Subclasses supply ``converge`` (create or
    update remote state, return whether anything was mutated) and ``cleanup``
    (remove remote state before the resource may disappear).
    """

    kind: ClassVar[str]
    finalizer: ClassVar[str]

    def __init__(self, store: FileResourceStore) -> None:
        self.store = store

    def reconcile(self, name: str) -> ReconcileResult:
        logger.info("Reconciling %s %s", self.kind, name)
        result = ReconcileResult(kind=self.kind, name=name)
        try:
            resource = self.store.get(self.kind, name)
        except ResourceNotFound:
            logger.info("%s %s not found, ignoring since it must be deleted", self.kind, name)
            result.state = LifecycleState.REMOVED.value
            return result

        state = lifecycle_state(resource, self.finalizer)
        if state is LifecycleState.REMOVED:
            result.state = state.value
            return result
        if state is LifecycleState.DELETING:
            self._finalize(resource, result)
            return result
        if state is LifecycleState.UNREGISTERED:
            self._initialize(resource, result)

        self._apply(resource, result)
        result.state = lifecycle_state(resource, self.finalizer).value
        return result

    def converge(self, resource: Any, result: ReconcileResult) -> bool:
        raise NotImplementedError

    def cleanup(self, resource: Any, result: ReconcileResult) -> None:
        raise NotImplementedError

    def _finalize(self, resource: Resource, result: ReconcileResult) -> None:
        try:
            self.cleanup(resource, result)
        except WellermanError as exc:
            logger.error("Cleanup of %s %s failed: %s", self.kind, resource.name, exc)
            raise
        result.changed = True
        result.state = release(resource, self.finalizer).value
        try:
            self.store.update(resource)
        except WellermanError as exc:
            logger.error("Failed to remove finalizer from %s %s: %s", self.kind, resource.name, exc)
            raise
        logger.info("Released %s %s", self.kind, resource.name)

    def _initialize(self, resource: Resource, result: ReconcileResult) -> None:
        register(resource, self.finalizer)
        conditions.upsert(resource.status.conditions, conditions.INITIALIZED, conditions.STATUS_TRUE)
        conditions.upsert(resource.status.conditions, conditions.CONFIGURED, conditions.STATUS_FALSE)
        try:
            self.store.update(resource)
        except WellermanError as exc:
            logger.error("Failed to initialize %s %s: %s", self.kind, resource.name, exc)
            raise
        result.actions.append("registered")
        logger.info("Registered %s %s for cleanup", self.kind, resource.name)

    def _apply(self, resource: Resource, result: ReconcileResult) -> None:
        status_before = resource.status.to_dict()
        try:
            changed = self.converge(resource, result)
        except WellermanError as exc:
            logger.error("Failed to converge %s %s: %s", self.kind, resource.name, exc)
            raise
        result.changed = changed

        if changed or not conditions.is_true(resource.status.conditions, conditions.CONFIGURED):
            conditions.upsert(
                resource.status.conditions, conditions.CONFIGURED, conditions.STATUS_TRUE
            )
        dirty = resource.status.to_dict() != status_before

        snapshot = snapshot_of(resource)
        if resource.metadata.annotations.get(LAST_APPLIED_ANNOTATION) != snapshot:
            resource.metadata.annotations[LAST_APPLIED_ANNOTATION] = snapshot
            dirty = True

        if not dirty:
            return
        try:
            self.store.update(resource)
        except WellermanError as exc:
            logger.error("Failed to update %s %s status: %s", self.kind, resource.name, exc)
            raise
