from __future__ import annotations

import json
import logging
from typing import Any

from ..resources import (
    LAST_APPLIED_ANNOTATION,
    ProjectPath,
    ProjectSpec,
    Resource,
    parse_project_spec,
)

logger = logging.getLogger(__name__)


def removed_paths(current: list[ProjectPath], previous: list[ProjectPath]) -> list[ProjectPath]:
    """Paths present in ``previous`` but not in ``current``, keyed by path.

    The previous entry is returned so its own ``external`` and
    ``archive_on_delete`` flags decide how it is cleaned up.
    """
    declared = {p.path for p in current}
    return [p for p in previous if p.path not in declared]


def encode_snapshot(spec_dict: dict[str, Any]) -> str:
    return json.dumps({"spec": spec_dict}, sort_keys=True, separators=(",", ":"))


def snapshot_of(resource: Resource) -> str:
    return encode_snapshot(resource.spec.to_dict())


def decode_project_snapshot(resource: Resource) -> ProjectSpec | None:
    """Best-effort decode of the last-applied Project spec.

    Any problem yields None, which disables removal for this reconcile.
    """
    raw = resource.metadata.annotations.get(LAST_APPLIED_ANNOTATION)
    if not raw:
        return None
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("snapshot must be an object")
        spec = data.get("spec")
        if not isinstance(spec, dict):
            raise ValueError("snapshot spec must be an object")
        return parse_project_spec(spec)
    except ValueError as exc:
        logger.warning(
            "Ignoring unreadable last-applied snapshot for %s %s: %s",
            resource.kind,
            resource.name,
            exc,
        )
        return None
