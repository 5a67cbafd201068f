from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar

API_VERSION = "app.wellerman.io/v1"
KIND_PROJECT = "Project"
KIND_TEAM = "Team"
KINDS = (KIND_PROJECT, KIND_TEAM)

LAST_APPLIED_ANNOTATION = "wellerman.io/last-applied"


@dataclass
class Condition:
    type: str
    status: str
    last_transition_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "status": self.status,
            "lastTransitionTime": self.last_transition_time,
        }


@dataclass
class ObjectMeta:
    name: str
    resource_version: int = 0
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: str | None = None
    annotations: dict[str, str] = field(default_factory=dict)

    @property
    def marked_for_deletion(self) -> bool:
        return self.deletion_timestamp is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "resourceVersion": self.resource_version}
        if self.finalizers:
            data["finalizers"] = list(self.finalizers)
        if self.deletion_timestamp:
            data["deletionTimestamp"] = self.deletion_timestamp
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        return data


@dataclass(frozen=True)
class ProjectPath:
    name: str
    path: str
    description: str = ""
    external: bool = False
    archive_on_delete: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "path": self.path}
        if self.description:
            data["description"] = self.description
        if self.external:
            data["external"] = True
        if self.archive_on_delete:
            data["archive-on-delete"] = True
        return data


@dataclass
class ProjectSpec:
    paths: list[ProjectPath] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"paths": [p.to_dict() for p in self.paths]}


@dataclass
class TeamSpec:
    subjects: list[str]
    comment: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"comment": self.comment, "subjects": list(self.subjects)}


@dataclass
class ProjectStatus:
    conditions: list[Condition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"conditions": [c.to_dict() for c in self.conditions]}


@dataclass
class TeamStatus:
    conditions: list[Condition] = field(default_factory=list)
    dn: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"conditions": [c.to_dict() for c in self.conditions]}
        if self.dn:
            data["dn"] = self.dn
        return data


@dataclass
class Project:
    kind: ClassVar[str] = KIND_PROJECT

    metadata: ObjectMeta
    spec: ProjectSpec
    status: ProjectStatus = field(default_factory=ProjectStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_dict(self) -> dict[str, Any]:
        return _resource_dict(self)


@dataclass
class Team:
    kind: ClassVar[str] = KIND_TEAM

    metadata: ObjectMeta
    spec: TeamSpec
    status: TeamStatus = field(default_factory=TeamStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_dict(self) -> dict[str, Any]:
        return _resource_dict(self)


Resource = Project | Team


def _resource_dict(resource: Resource) -> dict[str, Any]:
    return {
        "apiVersion": API_VERSION,
        "kind": resource.kind,
        "metadata": resource.metadata.to_dict(),
        "spec": resource.spec.to_dict(),
        "status": resource.status.to_dict(),
    }


def clone(resource: Resource) -> Resource:
    return copy.deepcopy(resource)


def parse_resource(data: dict[str, Any]) -> Resource:
    if not isinstance(data, dict):
        raise ValueError("resource must be an object")
    api_version = data.get("apiVersion", API_VERSION)
    if api_version != API_VERSION:
        raise ValueError(f"apiVersion must be {API_VERSION}")
    kind = _require_str(data, "kind")
    metadata = parse_metadata(_require_dict(data, "metadata"))
    spec = _require_dict(data, "spec")
    status = data.get("status") or {}
    if not isinstance(status, dict):
        raise ValueError("status must be an object")

    if kind == KIND_PROJECT:
        return Project(
            metadata=metadata,
            spec=parse_project_spec(spec),
            status=ProjectStatus(conditions=_parse_conditions(status)),
        )
    if kind == KIND_TEAM:
        return Team(
            metadata=metadata,
            spec=parse_team_spec(spec),
            status=TeamStatus(
                conditions=_parse_conditions(status),
                dn=_optional_str(status, "dn") or "",
            ),
        )
    raise ValueError(f"kind must be one of {', '.join(KINDS)}")


def parse_metadata(data: dict[str, Any]) -> ObjectMeta:
    finalizers = data.get("finalizers") or []
    if not isinstance(finalizers, list) or not all(isinstance(x, str) for x in finalizers):
        raise ValueError("metadata.finalizers must be a list of strings")
    annotations = data.get("annotations") or {}
    if not isinstance(annotations, dict):
        raise ValueError("metadata.annotations must be an object")
    version = data.get("resourceVersion", 0)
    if not isinstance(version, int):
        raise ValueError("metadata.resourceVersion must be an integer")
    return ObjectMeta(
        name=_require_str(data, "name"),
        resource_version=version,
        finalizers=list(finalizers),
        deletion_timestamp=_optional_str(data, "deletionTimestamp") or None,
        annotations={str(k): str(v) for k, v in annotations.items()},
    )


def parse_project_spec(data: dict[str, Any]) -> ProjectSpec:
    raw_paths = data.get("paths")
    if not isinstance(raw_paths, list):
        raise ValueError("spec.paths must be a list")
    paths: list[ProjectPath] = []
    seen: set[str] = set()
    for item in raw_paths:
        if not isinstance(item, dict):
            raise ValueError("spec.paths entries must be objects")
        project_path = ProjectPath(
            name=_require_str(item, "name"),
            path=_normalize_path(_require_str(item, "path")),
            description=_optional_str(item, "description") or "",
            external=_optional_bool(item, "external"),
            archive_on_delete=_optional_bool(item, "archive-on-delete"),
        )
        if project_path.path in seen:
            raise ValueError(f"spec.paths contains duplicate path {project_path.path}")
        seen.add(project_path.path)
        paths.append(project_path)
    return ProjectSpec(paths=paths)


def parse_team_spec(data: dict[str, Any]) -> TeamSpec:
    subjects = data.get("subjects")
    if not isinstance(subjects, list) or not all(isinstance(x, str) for x in subjects):
        raise ValueError("spec.subjects must be a list of strings")
    cleaned = [s.strip() for s in subjects if s.strip()]
    if not cleaned:
        raise ValueError("spec.subjects must contain at least one subject")
    return TeamSpec(subjects=cleaned, comment=_optional_str(data, "comment") or "")


def _parse_conditions(status: dict[str, Any]) -> list[Condition]:
    raw = status.get("conditions") or []
    if not isinstance(raw, list):
        raise ValueError("status.conditions must be a list")
    conditions: list[Condition] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError("status.conditions entries must be objects")
        conditions.append(
            Condition(
                type=_require_str(item, "type"),
                status=_require_str(item, "status"),
                last_transition_time=_optional_str(item, "lastTransitionTime") or "",
            )
        )
    return conditions


def _normalize_path(path: str) -> str:
    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"path {path!r} must name a group and a project, e.g. group/project")
    return "/".join(parts)


def _require_dict(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be an object")
    return value


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value.strip()


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip()


def _optional_bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value
