"""Error kinds shared by trash backends and the manager.

Backend failures are raised as StorageError, which records the failing
operation and path and keeps the underlying error reachable through
``err`` and ``__cause__``.
"""


class TrashError(Exception):
    """Base exception for trash errors."""


class NotFoundError(TrashError):
    """Raised when an entry cannot be found in the trash."""


class CrossDeviceError(TrashError):
    """Raised when no trash location is on the same device and fallback is disabled."""


class DestinationExistsError(TrashError):
    """Raised when a move or restore target already exists."""


class StorageNotReadyError(TrashError):
    """Raised when a trash location is not in a usable state."""


class PermissionDeniedError(TrashError):
    """Raised when permission is denied for a trash operation."""


class MissingBackendError(TrashError):
    """Raised when an entry does not carry the backend that listed it."""


class ForbiddenPathError(TrashError):
    """Raised when a path is protected and must never be trashed."""


class StorageError(TrashError):
    """A backend operation failed.

    Attributes:
        op: Operation that failed (e.g., "put", "restore", "remove").
        path: Path the operation was working on (may be empty).
        err: The underlying error.
    """

    def __init__(self, op: str, path: str, err: BaseException) -> None:
        self.op = op
        self.path = path
        self.err = err
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.path:
            return f"{self.op}: {self.err}"
        return f"{self.op} {self.path}: {self.err}"


def error_is(exc: BaseException | None, kind: type[BaseException]) -> bool:
    """Check whether an error, or anything it wraps, is of the given kind.

    Follows StorageError.err, ``__cause__`` and ``__context__`` links.

    Args:
        exc: Error to inspect.
        kind: Exception class to look for.

    Returns:
        True if exc or one of its wrapped causes is an instance of kind.
    """
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, kind):
            return True
        seen.add(id(exc))
        if isinstance(exc, StorageError):
            exc = exc.err
        else:
            exc = exc.__cause__ or exc.__context__
    return False


def storage_error(op: str, path: str, err: BaseException) -> StorageError:
    """Wrap a backend failure as a StorageError.

    A PermissionError, raised directly or carried by a failed move step,
    is reported as PermissionDeniedError with the original error as its
    cause.

    Args:
        op: Operation that failed.
        path: Path the operation was working on.
        err: The underlying error.

    Returns:
        StorageError ready to be raised.
    """
    denied = err if isinstance(err, PermissionError) else getattr(err, "err", None)
    if isinstance(denied, PermissionError):
        wrapped = PermissionDeniedError(f"permission denied: {denied.filename or path}")
        wrapped.__cause__ = denied
        return StorageError(op, path, wrapped)
    return StorageError(op, path, err)
