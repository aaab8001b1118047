"""Archive port interface."""

from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO, Protocol


class ArchivePort(Protocol):
    """Port for bundling mounts into a single blob and back."""

    def bundle(self, mounts: Sequence[str], out: BinaryIO) -> list[str]:
        """Write mounts to out. Returns the archived member names."""
        ...

    def extract(self, src: BinaryIO, destination: Path) -> list[str]:
        """Restore an archive under destination. Returns the restored member names."""
        ...
