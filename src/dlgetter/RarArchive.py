import logging
import os
import shutil
import time

import rarfile

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import EmptyArchiveError, MultipleFilesError, UnexpectedEntryError
from .Extraction import DirTimesRecorder, copy_stream, ensure_parent, entry_path
from .Protocols import DecompressorProtocol

logger = logging.getLogger(__name__)


def _check_unrar_in_path():
    """
    Checks if the 'unrar' executable is available in the system PATH.

    Raises:
        EnvironmentError: If 'unrar' is not found in the system PATH.
    """
    if not shutil.which("unrar"):
        raise EnvironmentError(
            "The 'unrar' executable is not found in PATH. Please install it or add it to PATH."
        )


class RarDecompressor(DecompressorProtocol):
    """
    A decompressor for RAR archives using the rarfile library.

    rarfile delegates the actual decoding to the external `unrar` tool, which
    is checked for on every call rather than at import time so the rest of
    the registry stays usable without it.

    Attributes:
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, config: GetterConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        """
        Extract the RAR archive `src` into `dst`.

        Raises:
            EnvironmentError: If `unrar` is not installed.
            EmptyArchiveError: If the archive holds no regular file.
            UnexpectedEntryError: If a directory is found in single-file mode.
            MultipleFilesError: If more than one member is found in single-file mode.
            rarfile.BadRarFile: If the RAR file is invalid.
        """
        _check_unrar_in_path()

        mkdir = dst if dir else os.path.dirname(dst)
        if mkdir:
            os.makedirs(mkdir, self.config.dir_permissions, exist_ok=True)

        with rarfile.RarFile(src) as archive:
            members = archive.infolist()
            if not members:
                raise EmptyArchiveError(src)
            if not dir and len(members) > 1:
                raise MultipleFilesError(src)

            done = False
            dir_times = DirTimesRecorder()
            for info in members:
                path = entry_path(dst, info.filename, src, dir)
                mtime = time.mktime(info.date_time + (0, 0, -1))

                if info.is_dir():
                    if not dir:
                        raise UnexpectedEntryError(src)
                    os.makedirs(path, self.config.dir_permissions, exist_ok=True)
                    dir_times.record(path, mtime, mtime)
                    continue

                if info.is_symlink():
                    logger.warning("Skipping symlink %s in %s", info.filename, src)
                    continue

                ensure_parent(path, self.config.dir_permissions)
                done = True

                logger.debug("Extracting %s to %s", info.filename, path)
                with archive.open(info) as source:
                    copy_stream(source, path, self.config.chunk_size)
                os.utime(path, (mtime, mtime))

            # A symlink-only or directory-only archive leaves nothing behind
            if not done:
                raise EmptyArchiveError(src)
            dir_times.apply()
