"""Filesystem storage adapter."""

import os
import shutil
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from ..core.errors import ConfigError, StorageTransportError
from ..ports.storage import ObjectHead

TEMP_PREFIX = ".buildcache-tmp-"


def _raise(error: OSError) -> None:
    raise error


class FsStorageAdapter:
    """Store objects as files under a root directory.

    A key ``/owner/repo/branch/archive.tar`` lives at
    ``<root>/owner/repo/branch/archive.tar``.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        relative = PurePosixPath(key.lstrip("/"))
        if ".." in relative.parts:
            raise ConfigError(f"Storage key must not contain '..': {key!r}")
        return self.root.joinpath(*relative.parts)

    def _head(self, path: Path) -> ObjectHead:
        stat = path.stat()
        key = "/" + path.relative_to(self.root).as_posix()
        return ObjectHead(
            key=key,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
        )

    def head(self, key: str) -> ObjectHead | None:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return self._head(path)
        except OSError as e:
            raise StorageTransportError(f"Failed to stat {key}: {e}") from e

    def list(self, prefix: str) -> Iterator[ObjectHead]:
        if not prefix.startswith("/"):
            prefix = f"/{prefix}"
        if not self.root.exists():
            return
        try:
            # Unreadable directories must fail the listing, not vanish from it
            for dirpath, _dirnames, filenames in os.walk(self.root, onerror=_raise):
                for name in filenames:
                    if name.startswith(TEMP_PREFIX):
                        continue
                    head = self._head(Path(dirpath) / name)
                    if head.key.startswith(prefix):
                        yield head
        except OSError as e:
            raise StorageTransportError(f"Failed to list {prefix}: {e}") from e

    def get(self, key: str) -> BinaryIO | None:
        path = self._path(key)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageTransportError(f"Failed to read {key}: {e}") from e

    def put(self, key: str, body: Path | BinaryIO) -> None:
        """Write through a temporary file and rename it into place."""
        path = self._path(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=TEMP_PREFIX, delete=False
            ) as tmp:
                tmp_name = tmp.name
                if isinstance(body, Path):
                    with open(body, "rb") as src:
                        shutil.copyfileobj(src, tmp)
                else:
                    shutil.copyfileobj(body, tmp)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageTransportError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageTransportError(f"Failed to delete {key}: {e}") from e
