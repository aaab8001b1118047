"""Adapters implementing the buildcache ports."""

from .archive_tar import TarArchiveAdapter, archive_for_filename
from .clock_utc import UtcClockAdapter
from .logger_std import StdLoggerAdapter
from .metrics_logging import LoggingMetricsAdapter
from .metrics_noop import NoopMetricsAdapter
from .storage_fs import FsStorageAdapter
from .storage_memory import MemoryStorageAdapter
from .storage_s3 import S3StorageAdapter

__all__ = [
    "FsStorageAdapter",
    "LoggingMetricsAdapter",
    "MemoryStorageAdapter",
    "NoopMetricsAdapter",
    "S3StorageAdapter",
    "StdLoggerAdapter",
    "TarArchiveAdapter",
    "UtcClockAdapter",
    "archive_for_filename",
]
