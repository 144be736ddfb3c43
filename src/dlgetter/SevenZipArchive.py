"""7z decompressor.

This module contains a decompressor around `py7zr.SevenZipFile`. Directory
mode hands the whole archive to py7zr; single-file mode streams the one
member through a custom writer so the data lands at the exact destination
path instead of at its archive-internal name.
"""

import logging
import os
from pathlib import Path

import py7zr
from py7zr.io import Py7zIO, WriterFactory

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import EmptyArchiveError, MultipleFilesError, UnexpectedEntryError
from .Extraction import entry_path
from .Protocols import DecompressorProtocol

logger = logging.getLogger(__name__)


class SevenZipWriter(Py7zIO):
    """A write-only file-like object used by py7zr to stream extracted data.

    Attributes:
        target_path (Path): Destination file path for the extracted data.
        _file (io.BufferedWriter): Underlying binary file handle.
        _length (int): Number of bytes written so far.
    """
    def __init__(self, target_path: Path):
        self.target_path = target_path
        self._file = open(target_path, 'wb')
        self._length = 0

    def write(self, data: bytes) -> int:
        written = self._file.write(data)
        self._length += written
        return written

    def read(self, size: int | None = None) -> bytes:
        """Return empty bytes because this writer is not readable.

        py7zr's IO abstractions expect writer objects to have a read method in
        some code paths, but for extraction we only need the write() side.
        """
        return b""

    def flush(self) -> None:
        self._file.flush()

    def close(self):
        if not self._file.closed:
            self._file.close()

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def size(self) -> int:
        return self._length


class SevenZipWriterFactory(WriterFactory):
    """Factory handing py7zr a `SevenZipWriter` for a fixed destination.

    py7zr asks for one writer per member; in single-file mode there is only
    one member, so the archive-internal filename is ignored.
    """
    def __init__(self, target_path: Path):
        self.target_path = target_path
        self.writers = []

    def create(self, filename: str) -> SevenZipWriter:
        writer = SevenZipWriter(self.target_path)
        self.writers.append(writer)
        return writer


class SevenZipDecompressor(DecompressorProtocol):
    """
    7z decompressor using py7zr.

    Attributes:
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, config: GetterConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        """
        Extract the 7z archive `src` into `dst`.

        Raises:
            EmptyArchiveError: If the archive holds no regular file.
            UnexpectedEntryError: If a directory is found in single-file mode.
            MultipleFilesError: If more than one member is found in single-file mode.
            IllegalEntryPathError: If a member would land outside `dst`.
            py7zr.exceptions.Bad7zFile: If the archive is invalid.
        """
        mkdir = dst if dir else os.path.dirname(dst)
        if mkdir:
            os.makedirs(mkdir, self.config.dir_permissions, exist_ok=True)

        with py7zr.SevenZipFile(src, mode="r") as archive:
            members = archive.list()
            if not members:
                raise EmptyArchiveError(src)

            if dir:
                if all(member.is_directory for member in members):
                    raise EmptyArchiveError(src)
                for member in members:
                    entry_path(dst, member.filename, src, dir)
                logger.debug("Extracting %d members of %s to %s", len(members), src, dst)
                archive.reset()
                archive.extractall(path=dst)
                return

            if any(member.is_directory for member in members):
                raise UnexpectedEntryError(src)
            if len(members) > 1:
                raise MultipleFilesError(src)

            member = members[0]
            factory = SevenZipWriterFactory(Path(dst))
            # Listing can leave py7zr's internal reader away from the start
            archive.reset()
            try:
                archive.extract(targets=[member.filename], factory=factory)
            finally:
                for writer in factory.writers:
                    writer.close()

        if member.creationtime is not None:
            mtime = member.creationtime.timestamp()
            os.utime(dst, (mtime, mtime))
