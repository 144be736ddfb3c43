"""Fetch orchestration.

`Client` turns a (source, destination, mode) triple into calls on a getter
and, when the source is an archive, a decompressor:

- A source may force its getter with a `name::` prefix, e.g.
  `mvn::https://repo.example.com/maven2?groupId=...`.
- A source without a scheme is a local path, resolved against `pwd`.
- The `archive` query parameter selects the decompressor explicitly
  (`archive=zip`), disables decompression (`archive=false`) or asks for
  magic-byte detection (`archive=auto`); otherwise the URL path extension
  decides.
- Archives are downloaded into a scoped temporary directory first and
  unpacked into the destination from there.
"""

import logging
import os
import posixpath
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Mapping, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .ArchiveEngine import ARCHIVE_AUTO, DECOMPRESSORS, get_decompressor
from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import UnknownSourceError
from .FileIO import FileGetter, HttpGetter, ProgressCallback
from .MvnArtifact import MvnGetter
from .Protocols import ClientMode, DecompressorProtocol, GetterProtocol

logger = logging.getLogger(__name__)

FORCED_GETTER_RE = re.compile(r"^([A-Za-z0-9]+)::(.+)$")
SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

ARCHIVE_PARAM = "archive"


def default_getters(config: GetterConfig = DEFAULT_CONFIG,
                    progress_callback: ProgressCallback | None = None) -> Dict[str, GetterProtocol]:
    """Build the default name -> getter mapping.

    The Maven getter shares the HTTP getter as its byte fetcher.
    """
    http = HttpGetter(config, progress_callback=progress_callback)
    return {
        "file": FileGetter(config),
        "http": http,
        "https": http,
        "mvn": MvnGetter(http, config),
    }


def split_forced_getter(src: str) -> Tuple[str | None, str]:
    """Split `name::url` into (name, url); (None, src) when nothing is forced."""
    match = FORCED_GETTER_RE.match(src)
    if match:
        return match.group(1), match.group(2)
    return None, src


def detect(src: str, pwd: str) -> str:
    """Turn a bare local path into a file:// URL; leave real URLs alone."""
    if SCHEME_RE.match(src):
        return src
    path = src if os.path.isabs(src) else os.path.join(pwd, src)
    return Path(os.path.abspath(path)).as_uri()


def pop_archive_hint(url: str) -> Tuple[str | None, str]:
    """Remove the `archive` query parameter from `url`.

    Returns:
        Tuple[str | None, str]: The parameter value (None if absent) and the URL without it.
    """
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)
    if not any(key == ARCHIVE_PARAM for key, _ in params):
        return None, url

    hint = None
    remaining = []
    for key, value in params:
        if key == ARCHIVE_PARAM:
            hint = value
        else:
            remaining.append((key, value))
    return hint, urlunsplit(parts._replace(query=urlencode(remaining)))


class Client:
    """
    Fetch one source into one destination.

    Attributes:
        src (str): Source identifier (URL, forced-getter URL or local path).
        dst (str): Destination path.
        pwd (str): Directory relative local sources are resolved against.
        mode (ClientMode): Whether a file, a directory or either is expected.
        getters (Mapping[str, GetterProtocol]): Getters by scheme / forced name.
        decompressors (Mapping[str, DecompressorProtocol]): Decompressors by extension.
        config (GetterConfig): Shared tunables.
    """

    def __init__(self, src: str, dst: str, pwd: str | None = None, mode: ClientMode | None = None,
                 getters: Mapping[str, GetterProtocol] | None = None,
                 decompressors: Mapping[str, DecompressorProtocol] | None = None,
                 config: GetterConfig = DEFAULT_CONFIG) -> None:
        self.src = src
        self.dst = dst
        self.pwd = pwd or os.getcwd()
        self.mode = mode or config.default_mode
        self.getters = getters if getters is not None else default_getters(config)
        self.decompressors = decompressors if decompressors is not None else DECOMPRESSORS
        self.config = config

    def get(self) -> None:
        """Fetch the source into the destination.

        Raises:
            UnknownSourceError: If no getter handles the source, or the
                archive hint names an unknown format.
            dlgetter.Errors.GetterError: Whatever the getter or decompressor raised.
            OSError: On filesystem failures.
        """
        forced, src = split_forced_getter(self.src)
        url = detect(src, self.pwd)

        name = forced or urlsplit(url).scheme
        getter = self.getters.get(name)
        if getter is None:
            raise UnknownSourceError(f"download not supported for scheme '{name}'")

        hint, url = pop_archive_hint(url)
        decompressor = None
        if hint != ARCHIVE_AUTO:
            decompressor = get_decompressor(urlsplit(url).path, hint, self.decompressors)

        if decompressor is not None or hint == ARCHIVE_AUTO:
            self._get_archive(getter, url, decompressor)
            return

        mode = self.mode
        if mode == ClientMode.ANY:
            mode = getter.client_mode(url)

        if mode == ClientMode.FILE:
            getter.get_file(self.dst, url)
        else:
            getter.get(self.dst, url)

    def _get_archive(self, getter: GetterProtocol, url: str,
                     decompressor: DecompressorProtocol | None) -> None:
        # Anything but an explicit single-file request unpacks as a directory
        decompress_dir = self.mode != ClientMode.FILE

        with tempfile.TemporaryDirectory(prefix="dlgetter") as td:
            archive_path = os.path.join(td, "archive")
            getter.get_file(archive_path, url)
            downloaded = self._downloaded_file(td, archive_path)

            if decompressor is None:
                decompressor = get_decompressor(downloaded, ARCHIVE_AUTO, self.decompressors)
            if decompressor is None:
                logger.info("%s is not a recognized archive, keeping it as is", url)
                self._place_file(downloaded, url)
                return

            logger.info("Decompressing %s into %s", url, self.dst)
            decompressor.decompress(self.dst, downloaded, decompress_dir)

    @staticmethod
    def _downloaded_file(td: str, archive_path: str) -> str:
        # Delegating getters may name the file themselves (e.g. test-1.0.0.jar)
        if os.path.exists(archive_path):
            return archive_path
        entries = os.listdir(td)
        if len(entries) != 1:
            raise FileNotFoundError(f"getter did not produce a single file in {td}")
        return os.path.join(td, entries[0])

    def _place_file(self, downloaded: str, url: str) -> None:
        target = self.dst
        if self.mode == ClientMode.DIR:
            os.makedirs(self.dst, self.config.dir_permissions, exist_ok=True)
            target = os.path.join(self.dst, posixpath.basename(urlsplit(url).path) or "download")
        else:
            parent = os.path.dirname(self.dst)
            if parent:
                os.makedirs(parent, self.config.dir_permissions, exist_ok=True)
        shutil.move(downloaded, target)
