"""Exceptions raised by dlgetter.

Filesystem failures are not wrapped: they surface as the builtin `OSError`
family. Corrupt archive streams surface as the error of the archive library
that read them (`tarfile.ReadError`, `zipfile.BadZipFile`, ...).
"""


class GetterError(Exception):
    """Base class for every error raised by dlgetter itself."""


class ArchiveError(GetterError):
    """The archive does not fit the requested extraction contract."""


class EmptyArchiveError(ArchiveError):
    def __init__(self, source: str):
        self.source = source
        super().__init__(f"empty archive: {source}")


class UnexpectedEntryError(ArchiveError):
    """A directory was found where a single file is required."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"expected a single file: {source}")


class MultipleFilesError(ArchiveError):
    def __init__(self, source: str):
        self.source = source
        super().__init__(f"expected a single file, got multiple: {source}")


class IllegalEntryPathError(ArchiveError):
    """An entry name would place a file outside the destination root."""

    def __init__(self, source: str, name: str):
        self.source = source
        self.name = name
        super().__init__(f"entry {name!r} escapes the destination: {source}")


class MissingParameterError(GetterError):
    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"query parameter '{parameter}' is required")


class NoSnapshotVersionsError(GetterError):
    def __init__(self, metadata_url: str):
        self.metadata_url = metadata_url
        super().__init__(f"no snapshot versions in the {metadata_url}")


class MetadataParseError(GetterError):
    """Repository metadata could not be parsed."""


class UnsupportedOperationError(GetterError):
    """The getter or decompressor cannot perform the requested operation."""


class UnknownSourceError(GetterError):
    """No getter or decompressor is registered for the requested name."""


class FetchError(GetterError):
    """A remote server refused to hand over the requested bytes."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"bad response code: {status_code} fetching {url}")
