from .engine import ReconcileResult, Reconciler
from .project import PROJECT_FINALIZER, ProjectReconciler
from .team import TEAM_FINALIZER, TeamReconciler

__all__ = [
    "PROJECT_FINALIZER",
    "TEAM_FINALIZER",
    "ProjectReconciler",
    "ReconcileResult",
    "Reconciler",
    "TeamReconciler",
]
