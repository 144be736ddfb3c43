"""Helpers shared by the archive decompressors.

Every decompressor places entries the same way: in directory mode an entry
lands at `dst/<name>`, in single-file mode the one file lands at `dst`
itself. Directory timestamps are collected while extracting and applied
only once everything else has been written, because creating anything
inside a directory bumps its modification time.
"""

import os
from dataclasses import dataclass
from typing import BinaryIO, Dict

from .Errors import IllegalEntryPathError


def entry_path(dst: str, name: str, src: str, dir: bool) -> str:
    """Return the on-disk path for the archive entry `name`.

    Args:
        dst (str): Destination root (directory mode) or file (single-file mode).
        name (str): Entry name as recorded in the archive.
        src (str): Archive path, used for error messages.
        dir (bool): Directory mode flag.

    Raises:
        IllegalEntryPathError: If the entry is absolute or climbs out of `dst`.
    """
    if not dir:
        return dst

    path = os.path.join(dst, name)
    root = os.path.abspath(dst)
    if os.path.isabs(name) or os.path.commonpath([root, os.path.abspath(path)]) != root:
        raise IllegalEntryPathError(src, name)
    return path


def ensure_parent(path: str, permissions: int) -> None:
    # There is no ordering guarantee that a file in a directory is listed
    # before the directory
    parent = os.path.dirname(path)
    if parent and not os.path.isdir(parent):
        os.makedirs(parent, permissions, exist_ok=True)


def copy_stream(source: BinaryIO, target_path: str, chunk_size: int) -> int:
    """Create/truncate `target_path` and copy `source` into it.

    Returns:
        int: Number of bytes written.
    """
    written = 0
    with open(target_path, "wb") as target_file:
        while chunk := source.read(chunk_size):
            target_file.write(chunk)
            written += len(chunk)
    return written


@dataclass
class PendingDirTimes:
    path: str
    atime: float
    mtime: float


class DirTimesRecorder:
    """Collect directory timestamps and apply them after extraction.

    A directory listed more than once keeps its first-seen position and the
    most recently recorded times, so each one is touched exactly once.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, PendingDirTimes] = {}

    def record(self, path: str, atime: float, mtime: float) -> None:
        key = os.path.normpath(path)
        if key in self._pending:
            self._pending[key].atime = atime
            self._pending[key].mtime = mtime
        else:
            self._pending[key] = PendingDirTimes(path, atime, mtime)

    def apply(self) -> None:
        for pending in self._pending.values():
            os.utime(pending.path, (pending.atime, pending.mtime))
