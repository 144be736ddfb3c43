"""TAR decompressor.

`untar` is the extraction engine shared by the plain and compressed tar
decompressors. It reads the archive strictly in stream order through the
stdlib `tarfile` module opened in pipe mode (`r|`, `r|gz`, ...), so a member
is only valid until the next one is requested.
"""

import logging
import os
import tarfile
from typing import BinaryIO

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import EmptyArchiveError, MultipleFilesError, UnexpectedEntryError
from .Extraction import DirTimesRecorder, copy_stream, ensure_parent, entry_path
from .Protocols import DecompressorProtocol

logger = logging.getLogger(__name__)

TAR_COMPRESSION_TYPES = (None, "gz", "bz2", "xz")


def _access_time(member: tarfile.TarInfo) -> float:
    # Plain ustar headers have no atime field; pax archives may record one
    atime = member.pax_headers.get("atime")
    return float(atime) if atime is not None else float(member.mtime)


def untar(input: BinaryIO, dst: str, src: str, dir: bool,
          compression: str | None = None, config: GetterConfig = DEFAULT_CONFIG) -> None:
    """Extract the tar stream `input` into `dst`.

    Args:
        input (BinaryIO): Readable stream positioned at the start of the archive.
        dst (str): Destination root in directory mode, destination file otherwise.
        src (str): Name of the archive, used in error messages.
        dir (bool): Directory mode flag.
        compression (str | None): Stream compression ('gz', 'bz2', 'xz') or None.
        config (GetterConfig): Chunk size and implicit directory permissions.

    Raises:
        EmptyArchiveError: If the archive holds no regular file.
        UnexpectedEntryError: If a directory is found in single-file mode.
        MultipleFilesError: If a second file is found in single-file mode.
        IllegalEntryPathError: If an entry would land outside `dst`.
        tarfile.TarError: If the stream is not a readable tar archive.
        OSError: On any filesystem failure.
    """
    mode = f"r|{compression}" if compression else "r|"
    try:
        archive = tarfile.open(fileobj=input, mode=mode)
    except tarfile.ReadError as e:
        # tarfile reports a stream with no bytes at all this way
        if str(e) == "empty file":
            raise EmptyArchiveError(src) from e
        raise

    done = False
    dir_times = DirTimesRecorder()
    with archive:
        for member in archive:
            path = entry_path(dst, member.name, src, dir)

            if member.isdir():
                if not dir:
                    raise UnexpectedEntryError(src)

                os.makedirs(path, config.dir_permissions, exist_ok=True)
                # Adding a file or subdirectory changes the mtime of a
                # directory, so its times are applied once everything is out
                dir_times.record(path, _access_time(member), float(member.mtime))
                continue

            if not member.isfile():
                logger.warning("Skipping unsupported entry %s (type %r) in %s",
                               member.name, member.type, src)
                continue

            ensure_parent(path, config.dir_permissions)

            if not dir and done:
                raise MultipleFilesError(src)
            done = True

            logger.debug("Extracting %s to %s", member.name, path)
            with archive.extractfile(member) as source:
                copy_stream(source, path, config.chunk_size)

            os.chmod(path, member.mode & 0o7777)
            os.utime(path, (_access_time(member), float(member.mtime)))

    # Directories alone do not make an archive non-empty
    if not done:
        raise EmptyArchiveError(src)

    dir_times.apply()


class TarDecompressor(DecompressorProtocol):
    """
    Decompressor for tar archives, optionally wrapped in a stream compression.

    Attributes:
        compression (str | None): One of `TAR_COMPRESSION_TYPES`.
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, compression: str | None = None, config: GetterConfig = DEFAULT_CONFIG) -> None:
        if compression not in TAR_COMPRESSION_TYPES:
            raise ValueError(f"Unknown tar compression: {compression}")
        self.compression = compression
        self.config = config

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        # If we're going into a directory we should make that first
        mkdir = dst if dir else os.path.dirname(dst)
        if mkdir:
            os.makedirs(mkdir, self.config.dir_permissions, exist_ok=True)

        with open(src, "rb") as f:
            untar(f, dst, src, dir, compression=self.compression, config=self.config)
