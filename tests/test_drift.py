from __future__ import annotations

import json
import logging

from wellerman.controllers.drift import decode_project_snapshot, removed_paths, snapshot_of
from wellerman.resources import (
    LAST_APPLIED_ANNOTATION,
    ObjectMeta,
    Project,
    ProjectPath,
    ProjectSpec,
)


def _project(paths: list[ProjectPath], snapshot: str | None = None) -> Project:
    annotations = {LAST_APPLIED_ANNOTATION: snapshot} if snapshot is not None else {}
    return Project(
        metadata=ObjectMeta(name="demo", annotations=annotations),
        spec=ProjectSpec(paths=paths),
    )


def test_removed_paths_keys_on_path_and_keeps_previous_flags():
    previous = [
        ProjectPath(name="a", path="org/a"),
        ProjectPath(name="b", path="org/b", archive_on_delete=True),
    ]
    current = [ProjectPath(name="renamed", path="org/a")]

    removed = removed_paths(current, previous)

    assert removed == [previous[1]]
    assert removed_paths(previous, previous) == []


def test_snapshot_round_trips_through_annotation():
    paths = [ProjectPath(name="api", path="org/api", external=True)]
    project = _project(paths)
    project.metadata.annotations[LAST_APPLIED_ANNOTATION] = snapshot_of(project)

    decoded = decode_project_snapshot(project)

    assert decoded is not None
    assert decoded.paths == paths
    assert json.loads(snapshot_of(project))["spec"]["paths"][0]["external"] is True


def test_missing_or_bad_snapshot_decodes_to_none(caplog):
    with caplog.at_level(logging.WARNING, logger="wellerman"):
        assert decode_project_snapshot(_project([])) is None
        assert decode_project_snapshot(_project([], snapshot="[1, 2]")) is None
        assert decode_project_snapshot(_project([], snapshot='{"spec": {"paths": "x"}}')) is None
    assert "unreadable last-applied snapshot" in caplog.text
