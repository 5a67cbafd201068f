from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .controllers.engine import ReconcileResult


@dataclass
class SyncReport:
    reconciled: list[ReconcileResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "reconciled": [r.to_dict() for r in self.reconciled],
            "changed": [f"{r.kind}/{r.name}" for r in self.reconciled if r.changed],
            "errors": list(self.errors),
        }


@dataclass
class ApplyReport:
    applied: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": list(self.applied),
            "deleted": list(self.deleted),
            "pending": list(self.pending),
        }
