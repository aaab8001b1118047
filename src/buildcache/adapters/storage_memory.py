"""In-memory storage adapter."""

import io
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from ..ports import ClockPort
from ..ports.storage import ObjectHead
from .clock_utc import UtcClockAdapter


@dataclass
class _StoredObject:
    data: bytes
    last_modified: datetime


class MemoryStorageAdapter:
    """Keep objects in a dict. Last-modified times come from the clock."""

    def __init__(self, clock: ClockPort | None = None):
        self.clock = clock or UtcClockAdapter()
        self.objects: dict[str, _StoredObject] = {}
        self._lock = threading.Lock()

    def head(self, key: str) -> ObjectHead | None:
        with self._lock:
            obj = self.objects.get(key)
        if obj is None:
            return None
        return ObjectHead(key=key, size=len(obj.data), last_modified=obj.last_modified)

    def list(self, prefix: str) -> Iterator[ObjectHead]:
        with self._lock:
            snapshot = list(self.objects.items())
        for key, obj in snapshot:
            if key.startswith(prefix):
                yield ObjectHead(key=key, size=len(obj.data), last_modified=obj.last_modified)

    def get(self, key: str) -> BinaryIO | None:
        with self._lock:
            obj = self.objects.get(key)
        if obj is None:
            return None
        return io.BytesIO(obj.data)

    def put(self, key: str, body: Path | BinaryIO) -> None:
        data = body.read_bytes() if isinstance(body, Path) else body.read()
        with self._lock:
            self.objects[key] = _StoredObject(data=data, last_modified=self.clock.now())

    def delete(self, key: str) -> None:
        with self._lock:
            self.objects.pop(key, None)
