"""Storage port interface."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Protocol


@dataclass
class ObjectHead:
    """Stored object metadata."""

    key: str
    size: int
    last_modified: datetime


class StoragePort(Protocol):
    """Port for object storage operations.

    Keys are slash-delimited paths such as ``/owner/repo/branch/archive.tar``.
    Absence is never an error: ``get`` and ``head`` return None. Backend
    failures raise StorageTransportError.
    """

    def head(self, key: str) -> ObjectHead | None:
        """Get object metadata, or None if the key is absent."""
        ...

    def list(self, prefix: str) -> Iterator[ObjectHead]:
        """Lazily list all objects under prefix."""
        ...

    def get(self, key: str) -> BinaryIO | None:
        """Open an object for reading, or None if the key is absent."""
        ...

    def put(self, key: str, body: Path | BinaryIO) -> None:
        """Store an object, replacing any previous content at key."""
        ...

    def delete(self, key: str) -> None:
        """Delete an object. Deleting an absent key is not an error."""
        ...
