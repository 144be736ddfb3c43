"""
Unit tests for the Maven repository getter.
"""
import os

import pytest

from conftest import RecordingFetcher
from dlgetter.Config import GetterConfig
from dlgetter.Errors import (FetchError, MetadataParseError, MissingParameterError,
                             NoSnapshotVersionsError, UnsupportedOperationError)
from dlgetter.MvnArtifact import MavenCoordinate, MvnGetter, parse_snapshot_versions
from dlgetter.Protocols import ClientMode

REPO = "http://repo.example.com/maven2"

SNAPSHOT_METADATA = b"""<?xml version="1.0" encoding="UTF-8"?>
<metadata modelVersion="1.1.0">
  <groupId>org.example</groupId>
  <artifactId>test</artifactId>
  <version>1.0.0-SNAPSHOT</version>
  <versioning>
    <snapshot>
      <timestamp>20240101.010101</timestamp>
      <buildNumber>1</buildNumber>
    </snapshot>
    <lastUpdated>20240101010101</lastUpdated>
    <snapshotVersions>
      <snapshotVersion>
        <extension>jar</extension>
        <value>1.0.0-20240101.010101-1</value>
        <updated>20240101010101</updated>
      </snapshotVersion>
      <snapshotVersion>
        <extension>pom</extension>
        <value>1.0.0-20231231.010101-0</value>
        <updated>20240101010101</updated>
      </snapshotVersion>
    </snapshotVersions>
  </versioning>
</metadata>
"""

EMPTY_METADATA = b"""<metadata>
  <groupId>org.example</groupId>
  <artifactId>test</artifactId>
  <versioning><snapshotVersions></snapshotVersions></versioning>
</metadata>
"""


def test_release_version_fetches_one_url(fetcher, tmp_path):
    dst = tmp_path / "lib" / "whatever"

    MvnGetter(fetcher).get_file(str(dst), f"{REPO}?groupId=org.example&artifactId=test&version=1.0.0")

    assert fetcher.requests == [
        (str(tmp_path / "lib" / "test-1.0.0.jar"), f"{REPO}/org/example/test/1.0.0/test-1.0.0.jar"),
    ]


def test_snapshot_version_is_resolved_from_metadata(tmp_path):
    fetcher = RecordingFetcher(bodies={"maven-metadata.xml": SNAPSHOT_METADATA})
    dst = tmp_path / "test.jar"

    MvnGetter(fetcher).get_file(str(dst), f"{REPO}?groupId=org.example&artifactId=test&version=1.0.0-SNAPSHOT")

    assert len(fetcher.requests) == 2
    metadata_dst, metadata_url = fetcher.requests[0]
    assert metadata_url == f"{REPO}/org/example/test/1.0.0-SNAPSHOT/maven-metadata.xml"
    assert not os.path.exists(metadata_dst)
    assert fetcher.requests[1] == (
        str(tmp_path / "test-1.0.0-20240101.010101-1.jar"),
        f"{REPO}/org/example/test/1.0.0-SNAPSHOT/test-1.0.0-20240101.010101-1.jar",
    )


def test_snapshot_without_versions(tmp_path):
    fetcher = RecordingFetcher(bodies={"maven-metadata.xml": EMPTY_METADATA})

    with pytest.raises(NoSnapshotVersionsError) as excinfo:
        MvnGetter(fetcher).get_file(str(tmp_path / "x"),
                                    f"{REPO}?groupId=org.example&artifactId=test&version=2.0-SNAPSHOT")

    assert len(fetcher.requests) == 1
    assert "maven-metadata.xml" in str(excinfo.value)
    assert not os.path.exists(fetcher.requests[0][0])


def test_malformed_metadata_is_an_error(tmp_path):
    fetcher = RecordingFetcher(bodies={"maven-metadata.xml": b"<metadata><versioning>"})

    with pytest.raises(MetadataParseError):
        MvnGetter(fetcher).get_file(str(tmp_path / "x"),
                                    f"{REPO}?groupId=org.example&artifactId=test&version=2.0-SNAPSHOT")
    assert len(fetcher.requests) == 1


def test_metadata_fetch_failure_removes_temp_file(tmp_path):
    fetcher = RecordingFetcher(error=FetchError("http://x", 500))

    with pytest.raises(FetchError):
        MvnGetter(fetcher).get_file(str(tmp_path / "x"),
                                    f"{REPO}?groupId=org.example&artifactId=test&version=2.0-SNAPSHOT")
    assert not os.path.exists(fetcher.requests[0][0])


@pytest.mark.parametrize("query, missing", [
    ("artifactId=test&version=1.0", "groupId"),
    ("groupId=org.example&version=1.0", "artifactId"),
    ("groupId=org.example&artifactId=test", "version"),
    ("groupId=&artifactId=test&version=1.0", "groupId"),
])
def test_required_parameters(fetcher, tmp_path, query, missing):
    with pytest.raises(MissingParameterError) as excinfo:
        MvnGetter(fetcher).get_file(str(tmp_path / "x"), f"{REPO}?{query}")

    assert excinfo.value.parameter == missing
    assert f"'{missing}'" in str(excinfo.value)
    assert fetcher.requests == []


def test_type_parameter(fetcher, tmp_path):
    MvnGetter(fetcher).get_file(str(tmp_path / "x"),
                                f"{REPO}?groupId=com.acme.web&artifactId=shop&version=3.1&type=war")

    assert fetcher.requests[0][1] == f"{REPO}/com/acme/web/shop/3.1/shop-3.1.war"


def test_default_type_comes_from_config(fetcher, tmp_path):
    getter = MvnGetter(fetcher, GetterConfig(default_artifact_type="pom"))

    getter.get_file(str(tmp_path / "x"), f"{REPO}/?groupId=a&artifactId=b&version=1")

    assert fetcher.requests[0][1] == f"{REPO}/a/b/1/b-1.pom"


def test_get_directory_is_unsupported(fetcher, tmp_path):
    with pytest.raises(UnsupportedOperationError):
        MvnGetter(fetcher).get(str(tmp_path), f"{REPO}?groupId=a&artifactId=b&version=1")
    assert fetcher.requests == []


def test_client_mode_is_always_file(fetcher):
    assert MvnGetter(fetcher).client_mode(REPO) == ClientMode.FILE


def test_coordinate_base_url_drops_query():
    coordinate = MavenCoordinate.from_url(
        "https://user@host:8081/nexus/repo?groupId=org.example&artifactId=test&version=1.0.0")

    assert coordinate.type == "jar"
    assert coordinate.base_url("https://user@host:8081/nexus/repo?groupId=org.example") == \
        "https://user@host:8081/nexus/repo/org/example/test/1.0.0"
    assert coordinate.file_name("1.0.0") == "test-1.0.0.jar"


def test_parse_snapshot_versions_with_namespace():
    document = b"""<metadata xmlns="http://maven.apache.org/METADATA/1.1.0">
      <versioning><snapshotVersions>
        <snapshotVersion><extension>jar</extension><value>1.0-20240202.020202-7</value></snapshotVersion>
      </snapshotVersions></versioning>
    </metadata>"""

    versions = parse_snapshot_versions(document)

    assert [(v.extension, v.value) for v in versions] == [("jar", "1.0-20240202.020202-7")]
