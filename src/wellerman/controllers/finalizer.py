from __future__ import annotations

from enum import Enum

from ..errors import LifecycleError
from ..resources import Resource


class LifecycleState(str, Enum):
    UNREGISTERED = "Unregistered"
    REGISTERED = "Registered"
    DELETING = "Deleting"
    REMOVED = "Removed"


def lifecycle_state(resource: Resource | None, finalizer: str) -> LifecycleState:
    """Derive where a resource stands in the cleanup lifecycle.

    A resource that is gone from the store, or marked for deletion without our
    finalizer, is REMOVED: nothing is left for the controller to clean up.
    """
    if resource is None:
        return LifecycleState.REMOVED
    registered = finalizer in resource.metadata.finalizers
    if resource.metadata.marked_for_deletion:
        return LifecycleState.DELETING if registered else LifecycleState.REMOVED
    return LifecycleState.REGISTERED if registered else LifecycleState.UNREGISTERED


def register(resource: Resource, finalizer: str) -> LifecycleState:
    state = lifecycle_state(resource, finalizer)
    if state is not LifecycleState.UNREGISTERED:
        raise LifecycleError(f"cannot register {resource.kind} {resource.name} from {state.value}")
    resource.metadata.finalizers.append(finalizer)
    return LifecycleState.REGISTERED


def release(resource: Resource, finalizer: str) -> LifecycleState:
    state = lifecycle_state(resource, finalizer)
    if state is not LifecycleState.DELETING:
        raise LifecycleError(f"cannot release {resource.kind} {resource.name} from {state.value}")
    resource.metadata.finalizers = [f for f in resource.metadata.finalizers if f != finalizer]
    return LifecycleState.REMOVED
