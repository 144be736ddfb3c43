"""Decompressor registry.

Maps archive extensions to decompressor instances and picks the one a
source needs, either from an explicit `archive=` hint, from the file
extension, or, for `archive=auto`, from the file's magic bytes.
"""

import logging
from typing import Dict, Mapping

from .CompressedFile import STREAM_OPENERS, StreamDecompressor
from .Errors import UnknownSourceError
from .Protocols import DecompressorProtocol
from .RarArchive import RarDecompressor
from .SevenZipArchive import SevenZipDecompressor
from .TarArchive import TarDecompressor
from .ZipArchive import ZipDecompressor

logger = logging.getLogger(__name__)

# Hint value that turns decompression off for a source
ARCHIVE_DISABLED = "false"
# Hint value that asks for signature detection
ARCHIVE_AUTO = "auto"

# Archive file signatures, from Wikipedia
SIGNATURES = {
    # zip
    b"PK\x03\x04": "zip",
    b"PK\x05\x06": "zip",  # Empty archive
    b"PK\x07\x08": "zip",  # Spanned archive
    # compressed streams, which usually hold a tar
    b"\x1f\x8b": "gz",
    b"\xfd7zXZ\x00": "xz",
    b"BZh": "bz2",
    # 7z
    b"7z\xbc\xaf\x27\x1c": "7z",
    # RAR
    b"Rar!\x1a\x07\x00": "rar",  # >= v1.50
    b"Rar!\x1a\x07\x01\x00": "rar",  # >= v5.00
}

# ustar magic lives in the first header block, not at offset 0
TAR_MAGIC_OFFSET = 257
TAR_MAGIC = b"ustar"

# Compressed streams whose payload may be a tar archive: signature -> (stream, tar key)
TAR_WRAPPED = {"gz": ("gzip", "tar.gz"), "bz2": ("bzip2", "tar.bz2"), "xz": ("xz", "tar.xz")}


def default_decompressors() -> Dict[str, DecompressorProtocol]:
    """Build the default extension -> decompressor mapping."""
    tar_gzip = TarDecompressor("gz")
    tar_bzip2 = TarDecompressor("bz2")
    tar_xz = TarDecompressor("xz")
    return {
        "tar": TarDecompressor(),
        "tar.gz": tar_gzip,
        "tgz": tar_gzip,
        "tar.bz2": tar_bzip2,
        "tbz2": tar_bzip2,
        "tar.xz": tar_xz,
        "txz": tar_xz,
        "gz": StreamDecompressor("gzip"),
        "bz2": StreamDecompressor("bzip2"),
        "xz": StreamDecompressor("xz"),
        "zip": ZipDecompressor(),
        "7z": SevenZipDecompressor(),
        "rar": RarDecompressor(),
    }


DECOMPRESSORS = default_decompressors()


def match_extension(path: str, decompressors: Mapping[str, DecompressorProtocol] = DECOMPRESSORS) -> str | None:
    """Return the longest registered extension `path` ends with, if any."""
    matched = None
    for ext in decompressors:
        if path.endswith("." + ext) and (matched is None or len(ext) > len(matched)):
            matched = ext
    return matched


def _is_tar_stream(opener, path: str) -> bool:
    try:
        with opener(path) as f:
            header = f.read(TAR_MAGIC_OFFSET + len(TAR_MAGIC))
    except (OSError, EOFError, ValueError):
        return False
    return header[TAR_MAGIC_OFFSET:] == TAR_MAGIC


def sniff_format(path: str) -> str | None:
    """Detect the archive format of a local file from its magic bytes.

    Compressed streams are looked into so that a gzip-wrapped tar reports
    'tar.gz' rather than 'gz'.

    Returns:
        str | None: A key of `DECOMPRESSORS`, or None when nothing matched.
    """
    with open(path, "rb") as f:
        head = f.read(TAR_MAGIC_OFFSET + len(TAR_MAGIC))

    if head[TAR_MAGIC_OFFSET:] == TAR_MAGIC:
        return "tar"

    for signature, format in SIGNATURES.items():
        if head.startswith(signature):
            if format in TAR_WRAPPED:
                stream, tar_format = TAR_WRAPPED[format]
                if _is_tar_stream(STREAM_OPENERS[stream], path):
                    return tar_format
            logger.debug("Detected file format of %s: %s", path, format)
            return format
    return None


def get_decompressor(path: str, hint: str | None = None,
                     decompressors: Mapping[str, DecompressorProtocol] = DECOMPRESSORS) -> DecompressorProtocol | None:
    """Pick the decompressor for `path`.

    Args:
        path (str): Path (or URL path) of the artifact.
        hint (str | None): Value of the `archive` query parameter, if any.
            'false' disables decompression and 'auto' sniffs the local file
            at `path`; any other value must be a registered extension.
        decompressors (Mapping): Registry to look in.

    Returns:
        DecompressorProtocol | None: None when the artifact is not an archive.

    Raises:
        UnknownSourceError: If `hint` names an unregistered format.
    """
    if hint == ARCHIVE_DISABLED:
        return None

    if hint == ARCHIVE_AUTO:
        format = sniff_format(path)
        return decompressors.get(format) if format else None

    if hint:
        if hint not in decompressors:
            raise UnknownSourceError(f"unknown archive format: {hint}")
        return decompressors[hint]

    ext = match_extension(path, decompressors)
    return decompressors[ext] if ext else None
