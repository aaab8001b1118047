"""Core domain logic for buildcache."""

from .config import CacheConfig, parse_flush_age, parse_server, select_mode
from .errors import (
    ArchiveError,
    CacheError,
    ConfigError,
    ModeConflictError,
    PartialFlushError,
    StorageTransportError,
    UsageError,
)
from .models import (
    CachePaths,
    FlushMode,
    FlushResult,
    Mode,
    RebuildMode,
    RebuildSummary,
    RestoreMode,
    RestoreSummary,
    cache_key,
)
from .paths import resolve_paths
from .retention import RetentionSweeper
from .service import CacheService

__all__ = [
    "ArchiveError",
    "CacheConfig",
    "CacheError",
    "CachePaths",
    "CacheService",
    "ConfigError",
    "FlushMode",
    "FlushResult",
    "Mode",
    "ModeConflictError",
    "PartialFlushError",
    "RebuildMode",
    "RebuildSummary",
    "RestoreMode",
    "RestoreSummary",
    "RetentionSweeper",
    "StorageTransportError",
    "UsageError",
    "cache_key",
    "parse_flush_age",
    "parse_server",
    "resolve_paths",
    "select_mode",
]
