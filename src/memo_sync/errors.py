"""Error taxonomy for memo-sync.

Every error raised by the reconciliation core derives from
``MemoSyncError`` and carries a human-readable ``message`` plus the
originating exception (``origin``) when one exists:

- ``FilesystemError`` -- a local resource is missing or unreadable.
- ``SerializationError`` -- decoding or schema validation failed for a
  record, local or remote.
- ``TransportError`` -- the remote document store rejected a read or a
  commit.

Errors are never swallowed inside the core; the CLI entry point is the
only place that catches and logs them.
"""

from __future__ import annotations


class MemoSyncError(Exception):
    """Base class for all memo-sync errors.

    Args:
        message: Human-readable description.
        origin: The underlying exception, if any.
    """

    kind = "memo_sync"

    def __init__(self, message: str, origin: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.origin = origin

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"


class FilesystemError(MemoSyncError):
    """A local file could not be read."""

    kind = "filesystem"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        origin: BaseException | None = None,
    ):
        super().__init__(message, origin=origin)
        self.path = path


class SerializationError(MemoSyncError):
    """A record failed to decode or to validate against its schema."""

    kind = "serialization"

    def __init__(
        self,
        message: str,
        record_id: str | None = None,
        origin: BaseException | None = None,
    ):
        super().__init__(message, origin=origin)
        self.record_id = record_id


class TransportError(MemoSyncError):
    """The remote document store failed a read or a commit."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        origin: BaseException | None = None,
    ):
        super().__init__(message, origin=origin)
        self.status_code = status_code
