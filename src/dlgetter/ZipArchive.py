"""ZIP decompressor.

Provides a decompressor around the standard library `zipfile.ZipFile`
class. Unlike tar, zip has a central directory, so the member list is known
up front and the single-file contract can be checked before anything is
written.
"""

import logging
import os
import stat
import time
import zipfile

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import EmptyArchiveError, MultipleFilesError, UnexpectedEntryError
from .Extraction import DirTimesRecorder, copy_stream, ensure_parent, entry_path
from .Protocols import DecompressorProtocol

logger = logging.getLogger(__name__)

# ZipInfo.create_system value written by Unix zip tools
ZIP_SYSTEM_UNIX = 3


def _member_mtime(info: zipfile.ZipInfo) -> float:
    # Zip stores a naive local date-time
    return time.mktime(info.date_time + (0, 0, -1))


def _member_permissions(info: zipfile.ZipInfo) -> int | None:
    if info.create_system != ZIP_SYSTEM_UNIX:
        return None
    permissions = stat.S_IMODE(info.external_attr >> 16)
    return permissions or None


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    return info.create_system == ZIP_SYSTEM_UNIX and stat.S_ISLNK(info.external_attr >> 16)


class ZipDecompressor(DecompressorProtocol):
    """
    ZIP decompressor using the stdlib zipfile module.

    Attributes:
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, config: GetterConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        """
        Extract the ZIP archive `src` into `dst`.

        Args:
            dst (str): Destination root (directory mode) or file.
            src (str): Local path of the archive.
            dir (bool): Directory mode flag.

        Raises:
            EmptyArchiveError: If the archive holds no regular file.
            UnexpectedEntryError: If the single member is a directory in single-file mode.
            MultipleFilesError: If there is more than one member in single-file mode.
            zipfile.BadZipFile: If the archive is invalid or corrupted.
        """
        # If we're going into a directory we should make that first
        mkdir = dst if dir else os.path.dirname(dst)
        if mkdir:
            os.makedirs(mkdir, self.config.dir_permissions, exist_ok=True)

        with zipfile.ZipFile(src) as archive:
            members = archive.infolist()
            if not members:
                raise EmptyArchiveError(src)
            if not dir and len(members) > 1:
                raise MultipleFilesError(src)

            done = False
            dir_times = DirTimesRecorder()
            for info in members:
                path = entry_path(dst, info.filename, src, dir)
                mtime = _member_mtime(info)

                if info.is_dir():
                    if not dir:
                        raise UnexpectedEntryError(src)
                    os.makedirs(path, self.config.dir_permissions, exist_ok=True)
                    dir_times.record(path, mtime, mtime)
                    continue

                if _is_symlink(info):
                    logger.warning("Skipping symlink %s in %s", info.filename, src)
                    continue

                ensure_parent(path, self.config.dir_permissions)
                done = True

                logger.debug("Extracting %s to %s", info.filename, path)
                # The flow is ZipFile member -> local file
                with archive.open(info) as source:
                    copy_stream(source, path, self.config.chunk_size)

                permissions = _member_permissions(info)
                if permissions is not None:
                    os.chmod(path, permissions)
                os.utime(path, (mtime, mtime))

            # A symlink-only or directory-only archive leaves nothing behind
            if not done:
                raise EmptyArchiveError(src)
            dir_times.apply()
