"""Port interfaces for buildcache."""

from .archive import ArchivePort
from .clock import ClockPort
from .logger import LoggerPort
from .metrics import MetricsPort
from .storage import ObjectHead, StoragePort

__all__ = [
    "ArchivePort",
    "ClockPort",
    "LoggerPort",
    "MetricsPort",
    "ObjectHead",
    "StoragePort",
]
