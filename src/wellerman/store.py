from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .errors import ResourceConflict, ResourceNotFound
from .resources import KINDS, Resource, clone, parse_resource

logger = logging.getLogger(__name__)


class FileResourceStore:
    """Declared resources kept as one YAML document per resource.

    Plays the host platform for the reconcilers: optimistic concurrency on
    ``resourceVersion``, and removal of a deleting resource only once its
    finalizer list is empty.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def get(self, kind: str, name: str) -> Resource:
        target = self._path(kind, name)
        if not target.exists():
            raise ResourceNotFound(kind, name)
        return self._read(target)

    def list(self, kind: str) -> list[Resource]:
        return [self.get(kind, name) for name in self.names(kind)]

    def names(self, kind: str) -> list[str]:
        folder = self.root / _kind_dir(kind)
        if not folder.exists():
            return []
        return [path.stem for path in sorted(folder.glob("*.yaml"))]

    def create_or_replace(self, resource: Resource) -> Resource:
        """Store a user declaration, keeping controller-owned fields."""
        target = self._path(resource.kind, resource.name)
        incoming = clone(resource)
        if target.exists():
            current = self._read(target)
            if current.metadata.marked_for_deletion:
                raise ValueError(f"{resource.kind} {resource.name} is being deleted")
            incoming.metadata.resource_version = current.metadata.resource_version + 1
            incoming.metadata.finalizers = list(current.metadata.finalizers)
            incoming.metadata.deletion_timestamp = None
            annotations = dict(current.metadata.annotations)
            annotations.update(resource.metadata.annotations)
            incoming.metadata.annotations = annotations
            incoming.status = current.status
        else:
            incoming.metadata.resource_version = 1
            incoming.metadata.finalizers = []
            incoming.metadata.deletion_timestamp = None
        self._write(target, incoming)
        return clone(incoming)

    def update(self, resource: Resource) -> Resource:
        target = self._path(resource.kind, resource.name)
        if not target.exists():
            raise ResourceNotFound(resource.kind, resource.name)
        current = self._read(target)
        expected = resource.metadata.resource_version
        actual = current.metadata.resource_version
        if expected != actual:
            raise ResourceConflict(resource.kind, resource.name, expected, actual)
        stored = clone(resource)
        stored.metadata.resource_version = actual + 1
        if stored.metadata.marked_for_deletion and not stored.metadata.finalizers:
            target.unlink()
            logger.info("Removed %s %s from store", resource.kind, resource.name)
        else:
            self._write(target, stored)
        resource.metadata.resource_version = stored.metadata.resource_version
        return clone(stored)

    def request_deletion(self, kind: str, name: str) -> Resource | None:
        """Mark a resource for deletion.

        Returns the marked resource, or None when it had no finalizer and was
        removed right away.
        """
        resource = self.get(kind, name)
        if resource.metadata.marked_for_deletion:
            return resource
        resource.metadata.deletion_timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        if not resource.metadata.finalizers:
            self._path(kind, name).unlink()
            logger.info("Removed %s %s from store", kind, name)
            return None
        return self.update(resource)

    def _path(self, kind: str, name: str) -> Path:
        if "/" in name or name.startswith("."):
            raise ValueError(f"invalid resource name {name!r}")
        return self.root / _kind_dir(kind) / f"{name}.yaml"

    def _read(self, path: Path) -> Resource:
        yaml = _load_yaml()
        try:
            return parse_resource(yaml.safe_load(path.read_text()))
        except (ValueError, yaml.YAMLError) as exc:
            raise ValueError(f"invalid stored document {path}: {exc}") from exc

    def _write(self, path: Path, resource: Resource) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload: dict[str, Any] = resource.to_dict()
        path.write_text(_load_yaml().safe_dump(payload, sort_keys=False))


def _kind_dir(kind: str) -> str:
    if kind not in KINDS:
        raise ValueError(f"kind must be one of {', '.join(KINDS)}")
    return kind.lower() + "s"


def _load_yaml() -> Any:
    import importlib

    return importlib.import_module("yaml")
