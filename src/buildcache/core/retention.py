"""Age-based retention sweep over a storage prefix."""

import concurrent.futures
from datetime import timedelta

from ..ports import ClockPort, LoggerPort, MetricsPort, ObjectHead, StoragePort
from .config import parse_flush_age
from .models import FlushResult


class RetentionSweeper:
    """Delete stored archives older than a threshold."""

    def __init__(
        self,
        storage: StoragePort,
        clock: ClockPort,
        logger: LoggerPort,
        metrics: MetricsPort,
        max_workers: int = 1,
    ):
        self.storage = storage
        self.clock = clock
        self.logger = logger
        self.metrics = metrics
        self.max_workers = max(1, max_workers)

    def sweep(self, prefix: str, max_age_days: int | str) -> FlushResult:
        """Delete every object under prefix whose age strictly exceeds max_age_days.

        Individual delete failures do not stop the sweep; they are counted and
        recorded in the result. Listing failures propagate.

        Raises:
            ConfigError: If max_age_days is not a non-negative integer.
            StorageTransportError: If listing the prefix fails.
        """
        max_age_days = parse_flush_age(max_age_days)

        start_time = self.clock.now()
        cutoff = timedelta(days=max_age_days)
        result = FlushResult(prefix=prefix, max_age_days=max_age_days)

        self.logger.info("Starting flush", prefix=prefix, max_age_days=max_age_days)

        expired: list[ObjectHead] = []
        for obj in self.storage.list(prefix):
            age = start_time - obj.last_modified
            if age > cutoff:
                expired.append(obj)
            else:
                result.retained_count += 1
                self.logger.debug(f"Keeping {obj.key}", age_days=age.days)

        if self.max_workers > 1 and len(expired) > 1:
            self._delete_parallel(expired, result)
        else:
            for obj in expired:
                self._record(result, obj.key, self._delete_one(obj.key))

        result.duration = (self.clock.now() - start_time).total_seconds()
        self.logger.info(
            "Flush complete",
            prefix=prefix,
            deleted=result.deleted_count,
            failed=result.failed_count,
            retained=result.retained_count,
            duration=result.duration,
        )
        self.metrics.timing("buildcache.flush.duration", result.duration)
        self.metrics.gauge("buildcache.flush.deleted_count", result.deleted_count)
        if result.failed_count:
            self.metrics.increment("buildcache.flush.failed", result.failed_count)

        return result

    def _delete_one(self, key: str) -> Exception | None:
        try:
            self.storage.delete(key)
        except Exception as e:
            return e
        return None

    def _delete_parallel(self, expired: list[ObjectHead], result: FlushResult) -> None:
        # Workers only delete; the result is updated on this thread.
        workers = min(self.max_workers, len(expired))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._delete_one, obj.key): obj.key for obj in expired}
            for future in concurrent.futures.as_completed(futures):
                self._record(result, futures[future], future.result())

    def _record(self, result: FlushResult, key: str, error: Exception | None) -> None:
        if error is None:
            result.deleted_count += 1
            result.deleted_keys.append(key)
            self.logger.debug(f"Deleted {key}")
        else:
            result.failed_count += 1
            result.errors.append(f"Failed to delete {key}: {error}")
            self.logger.error(f"Failed to delete {key}: {error}")
