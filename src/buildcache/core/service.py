"""Core CacheService orchestration."""

import tempfile
from collections.abc import Sequence
from pathlib import Path

from ..ports import ArchivePort, ClockPort, LoggerPort, MetricsPort, StoragePort
from .config import CacheConfig
from .errors import ArchiveError, PartialFlushError, StorageTransportError, UsageError
from .models import (
    FlushMode,
    FlushResult,
    RebuildMode,
    RebuildSummary,
    RestoreMode,
    RestoreSummary,
    cache_key,
)
from .retention import RetentionSweeper


class CacheService:
    """Core service for cache rebuild, restore and flush."""

    def __init__(
        self,
        storage: StoragePort,
        archiver: ArchivePort,
        clock: ClockPort,
        logger: LoggerPort,
        metrics: MetricsPort,
        delete_workers: int = 1,
    ):
        self.storage = storage
        self.archiver = archiver
        self.clock = clock
        self.logger = logger
        self.metrics = metrics
        self.sweeper = RetentionSweeper(
            storage, clock, logger, metrics, max_workers=delete_workers
        )

    def execute(
        self, config: CacheConfig, destination: Path | None = None
    ) -> RebuildSummary | RestoreSummary | FlushResult:
        """Run the operation selected by config.mode."""
        mode = config.mode
        if isinstance(mode, RebuildMode):
            return self.rebuild(mode.mounts, config.filename, config.paths.path)
        if isinstance(mode, RestoreMode):
            return self.restore(
                config.filename,
                config.paths.path,
                config.paths.fallback_path,
                destination=destination,
            )
        if isinstance(mode, FlushMode):
            return self.flush(config.paths.flush_path, mode.age_days)
        raise UsageError(f"Unknown mode: {mode!r}")

    def rebuild(self, mounts: Sequence[str], filename: str, path: str) -> RebuildSummary:
        """Archive mounts and store the archive at path + filename.

        The upload overwrites whatever was stored at the key before. If the
        upload fails midway the previous archive may be lost.

        Raises:
            UsageError: If mounts is empty. Nothing is written.
            ArchiveError: If bundling fails.
            StorageTransportError: If the upload fails or the stored archive
                cannot be found afterwards.
        """
        mounts = [m for m in mounts if m]
        if not mounts:
            raise UsageError("No mounts specified")

        start_time = self.clock.now()
        key = cache_key(path, filename)

        self.logger.info("Starting rebuild operation", key=key, mounts=",".join(mounts))

        with tempfile.TemporaryDirectory() as tmpdir:
            archive_path = Path(tmpdir) / "archive"

            try:
                with open(archive_path, "wb") as f:
                    members = self.archiver.bundle(mounts, f)
            except OSError as e:
                raise ArchiveError(f"Failed to write archive: {e}") from e

            archive_size = archive_path.stat().st_size
            self.logger.debug("Archive built", members=len(members), size=archive_size)

            self.logger.info("Uploading archive", key=key)
            self.storage.put(key, archive_path)

        # Re-check that the upload landed
        stored = self.storage.head(key)
        if stored is None:
            raise StorageTransportError(f"Uploaded archive not found at {key}")
        self.logger.debug(
            "Archive stored", key=key, size=stored.size, modified=stored.last_modified.isoformat()
        )

        duration = (self.clock.now() - start_time).total_seconds()
        self.logger.log_operation(
            op="rebuild",
            key=key,
            sizes={"archive": archive_size},
            durations={"total": duration},
            members=len(members),
        )
        self.metrics.timing("buildcache.rebuild.duration", duration)
        self.metrics.gauge("buildcache.rebuild.archive_size", archive_size)

        return RebuildSummary(
            key=key,
            mounts=mounts,
            members=len(members),
            archive_size=archive_size,
            duration=duration,
        )

    def restore(
        self,
        filename: str,
        path: str,
        fallback_path: str,
        destination: Path | None = None,
    ) -> RestoreSummary:
        """Fetch the archive at path + filename (or the fallback) and extract it.

        The fallback is consulted only when the primary key is absent. When
        neither exists the restore succeeds with nothing restored and
        ``cache_miss`` set.

        Raises:
            StorageTransportError: If the backend fails or the download cannot
                be copied to a temporary file.
            ArchiveError: If extraction fails.
        """
        if destination is None:
            destination = Path.cwd()

        start_time = self.clock.now()
        key = cache_key(path, filename)
        fallback_key = cache_key(fallback_path, filename)

        self.logger.info("Starting restore operation", key=key)

        used_fallback = False
        stream = self.storage.get(key)
        if stream is None:
            self.logger.info("No cache found at path, trying fallback", key=key, fallback=fallback_key)
            stream = self.storage.get(fallback_key)
            used_fallback = True

        if stream is None:
            duration = (self.clock.now() - start_time).total_seconds()
            self.logger.info("Cache miss, nothing to restore", key=key, fallback=fallback_key)
            self.metrics.increment("buildcache.restore.miss")
            return RestoreSummary(key=None, duration=duration)

        hit_key = fallback_key if used_fallback else key

        with tempfile.TemporaryDirectory() as tmpdir:
            archive_path = Path(tmpdir) / "archive"

            # Download fully before touching the destination
            try:
                with stream, open(archive_path, "wb") as f:
                    for chunk in iter(lambda: stream.read(8192), b""):
                        f.write(chunk)
            except OSError as e:
                raise StorageTransportError(f"Failed to download archive {hit_key}: {e}") from e
            archive_size = archive_path.stat().st_size

            self.logger.info("Extracting archive", key=hit_key, destination=str(destination))
            with open(archive_path, "rb") as f:
                restored = self.archiver.extract(f, destination)

        duration = (self.clock.now() - start_time).total_seconds()
        self.logger.log_operation(
            op="restore",
            key=hit_key,
            sizes={"archive": archive_size},
            durations={"total": duration},
            fallback=used_fallback,
            restored=len(restored),
        )
        self.metrics.timing("buildcache.restore.duration", duration)
        self.metrics.increment(
            "buildcache.restore.fallback_hit" if used_fallback else "buildcache.restore.hit"
        )

        return RestoreSummary(
            key=hit_key,
            used_fallback=used_fallback,
            restored=restored,
            archive_size=archive_size,
            duration=duration,
        )

    def flush(self, flush_path: str, age_days: int | str) -> FlushResult:
        """Delete archives under flush_path older than age_days.

        Raises:
            ConfigError: If age_days is invalid. Nothing is listed or deleted.
            StorageTransportError: If listing fails.
            PartialFlushError: If some deletions failed. Carries the result.
        """
        result = self.sweeper.sweep(flush_path, age_days)
        if result.failed_count:
            raise PartialFlushError(result)
        return result
