"""dlgetter package initializer.

This module provides the package-level public surface for `dlgetter`, a
small library that fetches a named remote artifact into a local path and
unpacks it when it is a recognized archive:

- __version__: Package version string.
- Client: Orchestrates getter selection, download and decompression.
- DECOMPRESSORS / get_decompressor: Archive format registry.
- TarDecompressor, untar: The tar extraction engine.
- HttpGetter, FileGetter, MvnGetter: Source getters.
- ClientMode, GetterConfig: Modes and tunable defaults.

Example:
    from dlgetter import Client
    Client("https://example.com/release.tar.gz", "release").get()

"""

# Public version string
__version__ = "0.1.0"

from .ArchiveEngine import DECOMPRESSORS, get_decompressor
from .Client import Client, default_getters
from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import (ArchiveError, EmptyArchiveError, FetchError, GetterError, IllegalEntryPathError,
                     MetadataParseError, MissingParameterError, MultipleFilesError, NoSnapshotVersionsError,
                     UnexpectedEntryError, UnknownSourceError, UnsupportedOperationError)
from .FileIO import FileGetter, HttpGetter
from .MvnArtifact import MvnGetter
from .Protocols import ClientMode, DecompressorProtocol, FileFetcherProtocol, GetterProtocol
from .TarArchive import TarDecompressor, untar

# Define the public API
__all__ = [
    "__version__",
    "Client",
    "default_getters",
    "DECOMPRESSORS",
    "get_decompressor",
    "DEFAULT_CONFIG",
    "GetterConfig",
    "ClientMode",
    "DecompressorProtocol",
    "FileFetcherProtocol",
    "GetterProtocol",
    "TarDecompressor",
    "untar",
    "HttpGetter",
    "FileGetter",
    "MvnGetter",
    "GetterError",
    "ArchiveError",
    "EmptyArchiveError",
    "UnexpectedEntryError",
    "MultipleFilesError",
    "IllegalEntryPathError",
    "MissingParameterError",
    "NoSnapshotVersionsError",
    "MetadataParseError",
    "UnsupportedOperationError",
    "UnknownSourceError",
    "FetchError",
]
