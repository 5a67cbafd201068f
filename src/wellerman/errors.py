from __future__ import annotations


class WellermanError(Exception):
    pass


class RemoteError(WellermanError):
    """A remote system rejected or failed an operation.

    Always fatal to the current reconcile; the host is expected to retry.
    """

    def __init__(self, operation: str, target: str, detail: str) -> None:
        super().__init__(f"{operation} failed for {target}: {detail}")
        self.operation = operation
        self.target = target
        self.detail = detail


class GitLabError(RemoteError):
    def __init__(self, operation: str, target: str, detail: str, status: int | None = None) -> None:
        super().__init__(operation, target, detail)
        self.status = status


class DirectoryError(RemoteError):
    pass


class ProjectNotFound(WellermanError):
    def __init__(self, path: str) -> None:
        super().__init__(f"project {path} was not found")
        self.path = path


class GroupNotFound(WellermanError):
    def __init__(self, name: str) -> None:
        super().__init__(f"group {name} was not found")
        self.name = name


class ResourceNotFound(WellermanError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name} not found")
        self.kind = kind
        self.name = name


class ResourceConflict(WellermanError):
    def __init__(self, kind: str, name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{kind} {name} was modified concurrently "
            f"(resourceVersion {expected} != {actual})"
        )
        self.kind = kind
        self.name = name


class LifecycleError(WellermanError):
    pass
