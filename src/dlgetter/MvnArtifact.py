"""Maven repository getter.

`MvnGetter` downloads one artifact from a Maven repository (Sonatype Nexus,
Artifactory, Maven Central, ...). It only works out *which* URL to fetch and
hands the transfer to an injected byte fetcher, so it runs over whatever
transport that fetcher speaks.

Source format::

    mvn::http://[username@]hostname[:port]/repo/path?groupId=org.example&artifactId=test&version=1.0.0-SNAPSHOT

Query parameters:
    groupId: the group id (required)
    artifactId: the artifact id (required)
    version: the artifact version (required); a `-SNAPSHOT` version is
        resolved to the latest snapshot build listed in maven-metadata.xml
    type: the artifact extension, 'jar' unless configured otherwise
"""

import logging
import os
import posixpath
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List
from urllib.parse import parse_qs, urlsplit, urlunsplit

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import (MetadataParseError, MissingParameterError, NoSnapshotVersionsError,
                     UnsupportedOperationError)
from .Protocols import ClientMode, FileFetcherProtocol, GetterProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MavenCoordinate:
    """Artifact coordinate parsed from a source URL's query string."""
    group_id: str
    artifact_id: str
    version: str
    type: str

    @classmethod
    def from_url(cls, url: str, default_type: str = DEFAULT_CONFIG.default_artifact_type) -> "MavenCoordinate":
        """Parse the coordinate query parameters of `url`.

        Raises:
            MissingParameterError: If groupId, artifactId or version is absent or empty.
        """
        query = parse_qs(urlsplit(url).query)

        def param(name: str) -> str:
            values = query.get(name)
            return values[0] if values else ""

        fields = {}
        for name in ("groupId", "artifactId", "version"):
            fields[name] = param(name)
            if not fields[name]:
                raise MissingParameterError(name)

        return cls(
            group_id=fields["groupId"],
            artifact_id=fields["artifactId"],
            version=fields["version"],
            type=param("type") or default_type,
        )

    def base_url(self, repository_url: str) -> str:
        """Return `<repository>/<group path>/<artifact>/<version>` without the query."""
        parts = urlsplit(repository_url)
        path = "/".join([parts.path.rstrip("/"), self.group_id.replace(".", "/"),
                         self.artifact_id, self.version])
        return urlunsplit(parts._replace(path=path, query="", fragment=""))

    def file_name(self, resolved_version: str) -> str:
        return f"{self.artifact_id}-{resolved_version}.{self.type}"


@dataclass(frozen=True)
class SnapshotVersion:
    extension: str
    value: str


def _local_name(tag: str) -> str:
    # maven-metadata.xml may or may not declare the METADATA namespace
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> str:
    for child in _children(element, name):
        return (child.text or "").strip()
    return ""


def parse_snapshot_versions(document: bytes) -> List[SnapshotVersion]:
    """Parse the `versioning/snapshotVersions` list of a maven-metadata.xml.

    Raises:
        MetadataParseError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise MetadataParseError(f"invalid maven metadata: {e}") from e

    versions = []
    for versioning in _children(root, "versioning"):
        for snapshot_versions in _children(versioning, "snapshotVersions"):
            for entry in _children(snapshot_versions, "snapshotVersion"):
                versions.append(SnapshotVersion(
                    extension=_child_text(entry, "extension"),
                    value=_child_text(entry, "value"),
                ))
    return versions


class MvnGetter(GetterProtocol):
    """Resolve Maven coordinates to an artifact URL and fetch it.

    Attributes:
        http_get (FileFetcherProtocol): Byte fetcher doing the actual transfers.
        config (GetterConfig): Default artifact type, snapshot suffix and
            metadata file name.
    """

    def __init__(self, http_get: FileFetcherProtocol, config: GetterConfig = DEFAULT_CONFIG):
        self.http_get = http_get
        self.config = config

    def client_mode(self, url: str) -> ClientMode:
        return ClientMode.FILE

    def get(self, dst: str, url: str) -> None:
        raise UnsupportedOperationError("MvnGetter does not support downloading a folder")

    def get_file(self, dst: str, url: str) -> None:
        """Download the artifact named by `url` next to `dst`.

        The file is written into the directory of `dst` under the artifact's
        own file name (e.g. `test-1.0.0.jar`), whatever the base name of
        `dst` is.

        Raises:
            MissingParameterError: If a required query parameter is missing.
            NoSnapshotVersionsError: If a snapshot has no listed builds.
            MetadataParseError: If the snapshot metadata is malformed.
        """
        coordinate = MavenCoordinate.from_url(url, self.config.default_artifact_type)
        base_url = coordinate.base_url(url)

        version = coordinate.version
        if version.endswith(self.config.snapshot_suffix):
            version = self.resolve_snapshot_version(base_url)

        artifact_url = f"{base_url}/{coordinate.file_name(version)}"
        dst_file = os.path.join(os.path.dirname(dst), posixpath.basename(urlsplit(artifact_url).path))

        logger.info("Downloading %s to %s", artifact_url, dst_file)
        self.http_get.get_file(dst_file, artifact_url)

    def resolve_snapshot_version(self, base_url: str) -> str:
        """Return the latest build of the snapshot rooted at `base_url`.

        The metadata document is fetched into a temporary file that is
        removed before returning, whether or not resolution succeeded.
        """
        metadata_url = f"{base_url}/{self.config.metadata_file_name}"

        with tempfile.NamedTemporaryFile(prefix="maven-metadata", delete=False) as tmp:
            metadata_file = tmp.name
        try:
            self.http_get.get_file(metadata_file, metadata_url)
            with open(metadata_file, "rb") as f:
                versions = parse_snapshot_versions(f.read())
        finally:
            if os.path.exists(metadata_file):
                os.remove(metadata_file)

        if not versions:
            raise NoSnapshotVersionsError(metadata_url)

        logger.debug("Resolved snapshot %s to %s", base_url, versions[0].value)
        return versions[0].value
