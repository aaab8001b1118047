"""Tar archive adapter."""

import os
import tarfile
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from ..core.errors import ArchiveError

GZIP_SUFFIXES = (".tar.gz", ".tgz")


def archive_for_filename(filename: str) -> "TarArchiveAdapter":
    """Pick the archive codec from the cache filename."""
    if filename.lower().endswith(GZIP_SUFFIXES):
        return TarArchiveAdapter(compression="gz")
    return TarArchiveAdapter()


def member_name(mount: str) -> str:
    """Name a mount is stored under: its own path, made relative.

    Raises:
        ArchiveError: If the mount climbs out of its root with "..".
    """
    normalized = PurePosixPath(os.path.normpath(mount).replace(os.sep, "/"))
    if ".." in normalized.parts:
        raise ArchiveError(f"Mount must not contain '..': {mount}")
    if normalized.is_absolute():
        normalized = normalized.relative_to(normalized.anchor)
    return str(normalized)


class TarArchiveAdapter:
    """Bundle mounts into a tar stream and restore them."""

    def __init__(self, compression: str = ""):
        if compression not in ("", "gz"):
            raise ValueError(f"Unsupported compression: {compression}")
        self.compression = compression

    def bundle(self, mounts: Sequence[str], out: BinaryIO) -> list[str]:
        """Write mounts to out as a tar stream.

        Directories are walked recursively in sorted order. Ownership is not
        recorded.
        """
        members: list[str] = []

        def reset_owner(info: tarfile.TarInfo) -> tarfile.TarInfo:
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            members.append(info.name)
            return info

        mode = f"w|{self.compression}"
        try:
            with tarfile.open(fileobj=out, mode=mode) as tar:
                for mount in mounts:
                    if not os.path.lexists(mount):
                        raise ArchiveError(f"Mount not found: {mount}")
                    tar.add(mount, arcname=member_name(mount), filter=reset_owner)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveError(f"Failed to bundle mounts: {e}") from e

        return members

    def extract(self, src: BinaryIO, destination: Path) -> list[str]:
        """Restore an archive under destination, overwriting existing files.

        Members that would land outside destination are rejected.
        """
        destination = Path(destination)
        try:
            destination.mkdir(parents=True, exist_ok=True)
            with tarfile.open(fileobj=src, mode="r:*") as tar:
                members = [
                    tarfile.tar_filter(info, str(destination)) for info in tar.getmembers()
                ]
                for info in members:
                    if not info.isdir():
                        _clear_target(destination / info.name)
                tar.extractall(destination, members=members, filter="tar")
        except (OSError, EOFError, tarfile.TarError) as e:
            raise ArchiveError(f"Failed to extract archive: {e}") from e

        return [info.name for info in members]


def _clear_target(target: Path) -> None:
    # Read-only files from an earlier restore cannot be reopened for writing
    if target.is_symlink() or target.is_file():
        target.unlink()
