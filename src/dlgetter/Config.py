"""Tunable defaults shared by the getters and decompressors."""

from dataclasses import dataclass

from .Protocols import ClientMode

DEFAULT_CHUNK_SIZE = 128 * 1024  # 128 KB


@dataclass(frozen=True)
class GetterConfig:
    """Explicit configuration for a fetch.

    Attributes:
        default_artifact_type (str): Maven artifact extension used when the
            coordinate URL has no `type` parameter.
        default_mode (ClientMode): Mode used by the CLI when none is given.
        snapshot_suffix (str): Version suffix that triggers latest-snapshot
            resolution.
        metadata_file_name (str): Name of the repository metadata document
            fetched for snapshot resolution.
        chunk_size (int): Copy buffer size for downloads and extraction.
        dir_permissions (int): Mode for directories created implicitly.
        connect_timeout (float): HTTP connect timeout in seconds.
        read_timeout (float): HTTP read timeout in seconds.
        max_attempts (int): Attempts per HTTP download before giving up.
        retry_backoff (float): Seconds added to the wait after each failed
            attempt (linear backoff).
        user_agent (str): User-Agent header sent by the HTTP getter.
    """
    default_artifact_type: str = "jar"
    default_mode: ClientMode = ClientMode.ANY
    snapshot_suffix: str = "-SNAPSHOT"
    metadata_file_name: str = "maven-metadata.xml"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    dir_permissions: int = 0o755
    connect_timeout: float = 10.0
    read_timeout: float = 300.0
    max_attempts: int = 5
    retry_backoff: float = 2.0
    user_agent: str = "dlgetter"


DEFAULT_CONFIG = GetterConfig()
