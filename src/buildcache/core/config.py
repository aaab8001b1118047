"""Centralized configuration for buildcache."""

import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..ports import LoggerPort
from .errors import ConfigError, ModeConflictError, UsageError
from .models import CachePaths, FlushMode, Mode, RebuildMode, RestoreMode
from .paths import DEFAULT_BRANCH, resolve_paths

DEFAULT_FILENAME = "archive.tar"
DEFAULT_FLUSH_AGE = 30
DEFAULT_REGION = "us-east-1"

# Paths each mode reads; only these need owner/repo when left unset
MODE_PATHS = {
    "rebuild": ("path",),
    "restore": ("path", "fallback_path"),
    "flush": ("flush_path",),
}


def select_mode(
    rebuild: bool,
    restore: bool,
    flush: bool,
    mounts: Sequence[str] = (),
    flush_age: int = DEFAULT_FLUSH_AGE,
) -> Mode:
    """Map the independent mode flags onto a single Mode.

    Raises:
        ModeConflictError: If more than one or none of the flags is set.
        UsageError: If rebuild is selected without mounts.
    """
    selected = sum(1 for flag in (rebuild, restore, flush) if flag)
    if selected > 1:
        raise ModeConflictError("Must use a single mode: rebuild, restore or flush")
    if selected == 0:
        raise ModeConflictError("No action specified")

    if rebuild:
        mounts = tuple(m for m in mounts if m)
        if not mounts:
            raise UsageError("No mounts specified")
        return RebuildMode(mounts=mounts)
    if flush:
        return FlushMode(age_days=flush_age)
    return RestoreMode()


def parse_flush_age(value: str | int) -> int:
    """Parse the retention threshold in days.

    Raises:
        ConfigError: If value is not a non-negative integer.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid flush age: {value!r}")
    if isinstance(value, int):
        age = value
    else:
        try:
            age = int(str(value).strip())
        except ValueError as e:
            raise ConfigError(f"Invalid flush age: {value!r} is not an integer") from e
    if age < 0:
        raise ConfigError(f"Invalid flush age: {age} must not be negative")
    return age


def parse_server(server: str | None) -> str | None:
    """Validate an S3 server URI and return it as a boto3 endpoint URL.

    An empty server means the default AWS S3 endpoint (None).

    Raises:
        ConfigError: If the server is not an http:// or https:// URI.
    """
    if not server:
        return None
    if not server.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid server {server}. Needs to be a HTTP URI")
    return server.rstrip("/")


@dataclass(slots=True)
class CacheConfig:
    """All buildcache configuration in one place.

    Built once at the boundary (the CLI) and passed into the service.

    Environment variables (all optional):
        BC_LOG_LEVEL:       Logging level. Default "INFO".
        BC_METRICS:         Metrics backend: "noop" or "logging" (default).
        BC_STORAGE_BACKEND: "s3" (default) or "filesystem".
        BC_STORAGE_ROOT:    Root directory for the filesystem backend.
        BC_DELETE_WORKERS:  Parallel deletes during flush. Default 1.
    """

    mode: Mode
    paths: CachePaths
    filename: str = DEFAULT_FILENAME

    metrics_type: str = "logging"
    storage_backend: str = "s3"
    storage_root: str | None = None
    delete_workers: int = 1

    # S3 connection params
    endpoint_url: str | None = None
    region: str = DEFAULT_REGION
    access_key: str | None = field(default=None, repr=False)
    secret_key: str | None = field(default=None, repr=False)

    @classmethod
    def from_options(
        cls,
        *,
        rebuild: bool = False,
        restore: bool = False,
        flush: bool = False,
        mounts: Sequence[str] = (),
        filename: str | None = None,
        path: str | None = None,
        fallback_path: str | None = None,
        flush_path: str | None = None,
        flush_age: str | int = DEFAULT_FLUSH_AGE,
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = DEFAULT_BRANCH,
        server: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        logger: LoggerPort | None = None,
    ) -> "CacheConfig":
        """Validate raw options and build the config.

        Environment variables listed on the class fill in the remaining fields.

        Raises:
            ModeConflictError: If not exactly one mode is selected.
            UsageError: If rebuild is selected without mounts.
            ConfigError: For invalid flush age, server, credentials or paths.
        """
        age = parse_flush_age(flush_age)
        mode = select_mode(rebuild, restore, flush, mounts, age)

        paths = resolve_paths(
            path or "",
            fallback_path or "",
            flush_path or "",
            owner or "",
            repo or "",
            branch or DEFAULT_BRANCH,
            logger=logger,
            required=MODE_PATHS[mode.name],
        )

        if not filename:
            if logger is not None:
                logger.info("No filename specified. Creating default")
            filename = DEFAULT_FILENAME

        config = cls(
            mode=mode,
            paths=paths,
            filename=filename,
            metrics_type=os.environ.get("BC_METRICS", "logging"),
            storage_backend=os.environ.get("BC_STORAGE_BACKEND", "s3"),
            storage_root=os.environ.get("BC_STORAGE_ROOT"),
            delete_workers=_int_env("BC_DELETE_WORKERS", 1),
            endpoint_url=parse_server(server),
            region=region or DEFAULT_REGION,
            access_key=access_key,
            secret_key=secret_key,
        )
        config.validate_storage()
        return config

    def validate_storage(self) -> None:
        """Check that the selected storage backend has what it needs.

        Raises:
            ConfigError: On unknown backend or missing backend settings.
        """
        if self.storage_backend == "s3":
            if not self.access_key or not self.secret_key:
                raise ConfigError("No access credentials provided")
        elif self.storage_backend == "filesystem":
            if not self.storage_root:
                raise ConfigError("BC_STORAGE_ROOT is required for the filesystem backend")
        else:
            raise ConfigError(f"Unknown storage backend: {self.storage_backend}")


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value
