"""Core domain models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RebuildMode:
    """Archive the mounts and store them at the primary path."""

    mounts: tuple[str, ...]

    name = "rebuild"


@dataclass(frozen=True)
class RestoreMode:
    """Fetch the archive (primary, then fallback) and extract it."""

    name = "restore"


@dataclass(frozen=True)
class FlushMode:
    """Delete archives under the flush prefix older than age_days."""

    age_days: int

    name = "flush"


Mode = RebuildMode | RestoreMode | FlushMode


@dataclass(frozen=True)
class CachePaths:
    """Resolved storage locations for one invocation."""

    path: str
    fallback_path: str
    flush_path: str


def cache_key(path: str, filename: str) -> str:
    """Compose a storage key. The path is expected to carry its trailing slash."""
    return f"{path}{filename}"


@dataclass
class RebuildSummary:
    """Summary of a rebuild operation."""

    key: str
    mounts: list[str]
    members: int
    archive_size: int
    duration: float = 0.0


@dataclass
class RestoreSummary:
    """Summary of a restore operation.

    ``key`` is None when neither the primary nor the fallback archive existed.
    """

    key: str | None
    used_fallback: bool = False
    restored: list[str] = field(default_factory=list)
    archive_size: int = 0
    duration: float = 0.0

    @property
    def cache_miss(self) -> bool:
        return self.key is None


@dataclass
class FlushResult:
    """Result of a retention sweep."""

    prefix: str
    max_age_days: int
    deleted_count: int = 0
    failed_count: int = 0
    retained_count: int = 0
    deleted_keys: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration: float = 0.0
