"""Capability protocol definitions.

This module declares the interfaces that the pluggable parts of dlgetter
must implement. Getters know how to bring bytes from some kind of source to
the local disk, decompressors know how to unpack a local archive. Concrete
implementations satisfy these protocols structurally; they are looked up by
a discriminator string (URL scheme, forced getter name or file extension)
in the registries kept by `dlgetter.Client` and `dlgetter.ArchiveEngine`.
"""

from enum import Enum
from typing import Protocol


class ClientMode(Enum):
    """What a fetch is expected to produce at the destination."""

    ANY = "any"
    FILE = "file"
    DIR = "dir"

    @classmethod
    def parse(cls, raw: str) -> "ClientMode":
        """Return the mode named by `raw`.

        Raises:
            ValueError: If `raw` is not one of 'any', 'file' or 'dir'.
        """
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"Invalid client mode, must be 'any', 'file', or 'dir': {raw}") from None


class DecompressorProtocol(Protocol):
    """Unpack an archive that already lives on the local disk."""

    def decompress(self, dst: str, src: str, dir: bool) -> None:
        """Decompress `src` into `dst`.

        Args:
            dst (str): Destination path. A directory root when `dir` is True,
                otherwise the path of the single file to produce.
            src (str): Path of the local archive.
            dir (bool): Directory mode flag.

        Raises:
            dlgetter.Errors.ArchiveError: If the archive violates the
                requested single-file / directory contract.
            OSError: On any filesystem failure.
        """
        ...


class FileFetcherProtocol(Protocol):
    """Retrieve the bytes found at a URL into a local file."""

    def get_file(self, dst: str, url: str) -> None:
        ...


class GetterProtocol(FileFetcherProtocol, Protocol):
    """A source-type specific fetcher selected by the client."""

    def get(self, dst: str, url: str) -> None:
        """Download a whole directory tree to `dst`."""
        ...

    def client_mode(self, url: str) -> ClientMode:
        """Tell whether `url` denotes a single file or a directory."""
        ...
