from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from . import config
from .controllers import ProjectReconciler, Reconciler, TeamReconciler
from .errors import WellermanError
from .logging_setup import configure_logging
from .remote.gitlab_api import GitLabClient
from .remote.ldap_api import DirectoryClient
from .report import ApplyReport, SyncReport
from .resources import KIND_PROJECT, KIND_TEAM, KINDS, parse_resource
from .store import FileResourceStore


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Wellerman GitLab/LDAP convergence controller")
    parser.add_argument("--store", default=None, help="Resource store directory")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    apply_cmd = sub.add_parser("apply", help="Store Project/Team declarations from YAML")
    apply_cmd.add_argument("-f", "--filename", required=True)

    delete_cmd = sub.add_parser("delete", help="Request deletion of a declaration")
    delete_cmd.add_argument("--kind", type=_kind, required=True)
    delete_cmd.add_argument("--name", required=True)

    reconcile_cmd = sub.add_parser("reconcile", help="Reconcile one declaration")
    reconcile_cmd.add_argument("--kind", type=_kind, required=True)
    reconcile_cmd.add_argument("--name", required=True)

    sync_cmd = sub.add_parser("sync", help="Reconcile every stored declaration once")
    sync_cmd.add_argument("--kind", type=_kind, default=None)

    get_cmd = sub.add_parser("get", help="Print a stored declaration")
    get_cmd.add_argument("--kind", type=_kind, required=True)
    get_cmd.add_argument("--name", required=True)

    args = parser.parse_args(argv)
    configure_logging(args.log_level or config.log_level())
    store = FileResourceStore(args.store or config.store_dir())

    if args.command == "apply":
        _cmd_apply(store, args.filename)
        return
    if args.command == "delete":
        _cmd_delete(store, args.kind, args.name)
        return
    if args.command == "reconcile":
        _cmd_reconcile(store, args.kind, args.name)
        return
    if args.command == "sync":
        _cmd_sync(store, args.kind)
        return
    if args.command == "get":
        _cmd_get(store, args.kind, args.name)
        return


def _cmd_apply(store: FileResourceStore, filename: str) -> None:
    yaml = _load_yaml()
    report = ApplyReport()
    try:
        documents = [d for d in yaml.safe_load_all(Path(filename).read_text()) if d]
        resources = [parse_resource(document) for document in documents]
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise SystemExit(f"Invalid manifest {filename}: {exc}") from exc
    for resource in resources:
        try:
            stored = store.create_or_replace(resource)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc
        report.applied.append(f"{stored.kind}/{stored.name}")
    _print(report.to_dict())


def _cmd_delete(store: FileResourceStore, kind: str, name: str) -> None:
    report = ApplyReport()
    try:
        remaining = store.request_deletion(kind, name)
    except (WellermanError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    if remaining is None:
        report.deleted.append(f"{kind}/{name}")
    else:
        report.pending.append(f"{kind}/{name}")
    _print(report.to_dict())


def _cmd_reconcile(store: FileResourceStore, kind: str, name: str) -> None:
    reconciler = _build_reconciler(kind, store)
    try:
        result = reconciler.reconcile(name)
    except (WellermanError, ValueError) as exc:
        raise SystemExit(f"Reconcile of {kind}/{name} failed: {exc}") from exc
    _print(result.to_dict())


def _cmd_sync(store: FileResourceStore, kind: str | None) -> None:
    report = SyncReport()
    for current in [kind] if kind else list(KINDS):
        names = store.names(current)
        if not names:
            continue
        reconciler = _build_reconciler(current, store)
        for name in names:
            try:
                report.reconciled.append(reconciler.reconcile(name))
            except (WellermanError, ValueError) as exc:
                report.errors.append(f"{current}/{name}: {exc}")
    _print(report.to_dict())
    if not report.ok:
        raise SystemExit(1)


def _cmd_get(store: FileResourceStore, kind: str, name: str) -> None:
    try:
        resource = store.get(kind, name)
    except (WellermanError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    _print(resource.to_dict())


def _build_reconciler(kind: str, store: FileResourceStore) -> Reconciler:
    try:
        if kind == KIND_PROJECT:
            return ProjectReconciler(store, GitLabClient.from_settings(config.gitlab_settings()))
        return TeamReconciler(store, DirectoryClient(config.ldap_settings()))
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def _kind(value: str) -> str:
    for kind in (KIND_PROJECT, KIND_TEAM):
        if value.strip().lower() in {kind.lower(), kind.lower() + "s"}:
            return kind
    raise argparse.ArgumentTypeError(f"kind must be one of {', '.join(KINDS)}")


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _load_yaml() -> Any:
    import importlib

    return importlib.import_module("yaml")
