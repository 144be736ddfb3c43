"""Single-stream decompressors (gzip, bzip2, xz).

These formats wrap exactly one payload with no file names or directory
structure, so they can only ever produce a single file.
"""

import bz2
import gzip
import lzma
import logging
import os
from typing import BinaryIO, Callable, Dict

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import UnsupportedOperationError
from .Extraction import copy_stream
from .Protocols import DecompressorProtocol

logger = logging.getLogger(__name__)

STREAM_OPENERS: Dict[str, Callable[[str], BinaryIO]] = {
    "gzip": lambda path: gzip.open(path, "rb"),
    "bzip2": lambda path: bz2.open(path, "rb"),
    "xz": lambda path: lzma.open(path, "rb"),
}


class StreamDecompressor(DecompressorProtocol):
    """
    Decompressor for a single compressed stream.

    Attributes:
        format (str): Key into `STREAM_OPENERS`.
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, format: str, config: GetterConfig = DEFAULT_CONFIG) -> None:
        if format not in STREAM_OPENERS:
            raise ValueError(f"Unknown stream compression: {format}")
        self.format = format
        self.config = config

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        """
        Decompress `src` into the single file `dst`.

        Raises:
            UnsupportedOperationError: If called in directory mode.
            OSError: On filesystem failures or a corrupt gzip stream.
            lzma.LZMAError: If an xz stream is corrupt.
        """
        if dir:
            raise UnsupportedOperationError(
                f"{self.format}-style decompression to a directory is not supported")

        parent = os.path.dirname(dst)
        if parent:
            os.makedirs(parent, self.config.dir_permissions, exist_ok=True)

        logger.debug("Decompressing %s stream %s to %s", self.format, src, dst)
        with self._open(src) as source:
            copy_stream(source, dst, self.config.chunk_size)

    def _open(self, src: str) -> BinaryIO:
        return STREAM_OPENERS[self.format](src)
