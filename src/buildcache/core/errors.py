"""Core domain errors."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import FlushResult


class CacheError(Exception):
    """Base error for cache operations."""

    pass


class ConfigError(CacheError):
    """Invalid or missing configuration, raised before any I/O."""

    pass


class UsageError(CacheError):
    """Invalid use of a cache mode (e.g. rebuild without mounts)."""

    pass


class ModeConflictError(UsageError):
    """Zero or several of rebuild/restore/flush were selected."""

    pass


class ArchiveError(CacheError):
    """Bundling or extracting an archive failed."""

    pass


class StorageTransportError(CacheError):
    """Storage backend failure (network, auth, backend error)."""

    pass


class PartialFlushError(StorageTransportError):
    """Some deletions failed during a flush.

    The result still reports how many objects were deleted.
    """

    def __init__(self, result: "FlushResult"):
        self.result = result
        super().__init__(
            f"Failed to delete {result.failed_count} of "
            f"{result.deleted_count + result.failed_count} expired objects "
            f"under {result.prefix}"
        )
