"""
Shared fixtures for the dlgetter test suite.

Archives are built on the fly from small entry descriptions so every test
states exactly which members, in which order, with which metadata it
extracts.
"""
import io
import os
import tarfile
from dataclasses import dataclass, field
from typing import Dict, List

import pytest

# Fixed, distinct timestamps far from "now" so extraction time never matches
FILE_MTIME = 1_500_000_000
FILE_ATIME = 1_500_000_100
DIR_MTIME = 1_400_000_000
DIR_ATIME = 1_400_000_200


@dataclass
class Entry:
    name: str
    type: bytes = tarfile.REGTYPE
    data: bytes = b""
    mode: int = 0o644
    mtime: int = FILE_MTIME
    pax_headers: Dict[str, str] = field(default_factory=dict)
    linkname: str = ""


def file_entry(name, data=b"hello", mode=0o644, mtime=FILE_MTIME, atime=None):
    headers = {"atime": str(atime)} if atime is not None else {}
    return Entry(name, tarfile.REGTYPE, data, mode, mtime, headers)


def dir_entry(name, mtime=DIR_MTIME, atime=None, mode=0o755):
    headers = {"atime": str(atime)} if atime is not None else {}
    return Entry(name, tarfile.DIRTYPE, b"", mode, mtime, headers)


def write_tar(path, entries: List[Entry], compression: str = "", global_headers=None):
    """Write `entries` in order to a (possibly compressed) tar file at `path`."""
    mode = f"w:{compression}" if compression else "w"
    with tarfile.open(path, mode, format=tarfile.PAX_FORMAT, pax_headers=global_headers or {}) as tar:
        for entry in entries:
            info = tarfile.TarInfo(entry.name)
            info.type = entry.type
            info.mode = entry.mode
            info.mtime = entry.mtime
            info.linkname = entry.linkname
            info.pax_headers = dict(entry.pax_headers)
            if entry.type == tarfile.REGTYPE:
                info.size = len(entry.data)
                tar.addfile(info, io.BytesIO(entry.data))
            else:
                tar.addfile(info)
    return path


@pytest.fixture
def make_tar(tmp_path):
    def _make(entries, name="archive.tar", compression="", global_headers=None):
        return str(write_tar(tmp_path / name, entries, compression, global_headers))
    return _make


class RecordingFetcher:
    """Byte fetcher double that records requests and serves canned bodies."""

    def __init__(self, bodies=None, error=None):
        self.bodies = bodies or {}
        self.error = error
        self.requests = []

    def get_file(self, dst, url):
        self.requests.append((dst, url))
        if self.error is not None:
            raise self.error
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        for suffix, body in self.bodies.items():
            if url.endswith(suffix):
                with open(dst, "wb") as f:
                    f.write(body)
                return
        with open(dst, "wb") as f:
            f.write(b"artifact")


@pytest.fixture
def fetcher():
    return RecordingFetcher()
