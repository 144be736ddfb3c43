"""Byte-fetch getters.

Provides the getters that move raw bytes to the local disk:

Classes:
    HttpGetter: Downloads a single file over HTTP(S) with httpx.
    FileGetter: Copies a local file or directory named by a file:// URL.

Both satisfy `GetterProtocol`, so either can be handed to a delegating
getter such as `dlgetter.MvnArtifact.MvnGetter` as its byte fetcher.
"""

import logging
import os
import shutil
import time
from typing import Callable
from urllib.parse import unquote, urlparse

import httpx

from .Config import DEFAULT_CONFIG, GetterConfig
from .Errors import FetchError, UnsupportedOperationError
from .Protocols import ClientMode, GetterProtocol

logger = logging.getLogger(__name__)

# Called with (bytes_advanced, total_bytes_or_None) while a body is written
ProgressCallback = Callable[[int, int | None], None]


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class HttpGetter(GetterProtocol):
    """Download a single remote file over HTTP(S).

    Attributes:
        config (GetterConfig): Timeouts, retry policy and chunk size.
        client (httpx.Client): HTTP client used for requests (keep-alive).
        progress_callback (ProgressCallback | None): Optional download progress hook.
    """

    def __init__(self, config: GetterConfig = DEFAULT_CONFIG, client: httpx.Client | None = None,
                 progress_callback: ProgressCallback | None = None):
        """Create an HttpGetter.

        Args:
            config (GetterConfig): Shared tunables.
            client (httpx.Client | None): Client to use. When omitted one is
                created with the configured timeouts and User-Agent and is
                closed by `close()`.
            progress_callback (ProgressCallback | None): Called for each
                chunk written to disk.
        """
        self.config = config
        self._owns_client = client is None
        if client is None:
            headers = {
                "User-Agent": config.user_agent,
                "Accept": "*/*",
                "Connection": "keep-alive"}
            client = httpx.Client(headers=headers, follow_redirects=True,
                                  timeout=httpx.Timeout(config.connect_timeout, read=config.read_timeout))
        self.client = client
        self.progress_callback = progress_callback

    def client_mode(self, url: str) -> ClientMode:
        return ClientMode.FILE

    def get(self, dst: str, url: str) -> None:
        raise UnsupportedOperationError("HttpGetter does not support downloading a folder")

    def get_file(self, dst: str, url: str) -> None:
        """Download `url` into the file `dst`.

        Transport errors, 5xx responses and 429 Too Many Requests are retried
        up to `config.max_attempts` times with a linear backoff; a 429 honours
        the server's Retry-After header when it is given in seconds.

        Raises:
            FetchError: On a non-retryable error status, or a retryable one
                on the final attempt.
            httpx.TransportError: If the connection keeps failing.
            OSError: If `dst` cannot be written.
        """
        parent = os.path.dirname(dst)
        if parent:
            os.makedirs(parent, self.config.dir_permissions, exist_ok=True)

        logger.info("Downloading %s to %s", url, dst)
        attempts = max(self.config.max_attempts, 1)
        for attempt in range(attempts):
            wait_time = (attempt + 1) * self.config.retry_backoff
            try:
                with self.client.stream("GET", url) as response:
                    if _is_retryable(response.status_code) and attempt < attempts - 1:
                        if response.status_code == 429:
                            wait_time = self._retry_after(response, wait_time)
                        logger.warning("Received %d from %s, retrying after %s seconds.",
                                       response.status_code, url, wait_time)
                        time.sleep(wait_time)
                        continue
                    if not response.is_success:
                        raise FetchError(url, response.status_code)
                    self._write_body(response, dst)
                return
            except httpx.TransportError as e:
                if attempt == attempts - 1:
                    raise e
                logger.warning("HTTP error on attempt %d: %s. Retrying after %s seconds.",
                               attempt + 1, e, wait_time)
                time.sleep(wait_time)

    @staticmethod
    def _retry_after(response: httpx.Response, default: float) -> float:
        try:
            return max(float(response.headers.get("Retry-After", default)), 0.0)
        except ValueError:
            # HTTP-date form
            return default

    @staticmethod
    def _content_length(response: httpx.Response) -> int | None:
        try:
            return int(response.headers.get("Content-Length", 0)) or None
        except ValueError:
            return None

    def _write_body(self, response: httpx.Response, dst: str) -> None:
        total = self._content_length(response)
        with open(dst, "wb") as target_file:
            for chunk in response.iter_bytes(self.config.chunk_size):
                target_file.write(chunk)
                if self.progress_callback:
                    self.progress_callback(len(chunk), total)

    def close(self):
        """Close the HTTP client if this getter created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpGetter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def local_path(url: str) -> str:
    """Return the filesystem path named by a file:// URL."""
    return unquote(urlparse(url).path)


class FileGetter(GetterProtocol):
    """Copy files and directories that already live on a local filesystem."""

    def __init__(self, config: GetterConfig = DEFAULT_CONFIG):
        self.config = config

    def client_mode(self, url: str) -> ClientMode:
        path = local_path(url)
        if not os.path.exists(path):
            raise FileNotFoundError(f"source path does not exist: {path}")
        return ClientMode.DIR if os.path.isdir(path) else ClientMode.FILE

    def get(self, dst: str, url: str) -> None:
        path = local_path(url)
        if not os.path.isdir(path):
            raise NotADirectoryError(f"source path must be a directory: {path}")

        logger.info("Copying directory %s to %s", path, dst)
        shutil.copytree(path, dst, dirs_exist_ok=True)

    def get_file(self, dst: str, url: str) -> None:
        path = local_path(url)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"source path must be a file: {path}")

        parent = os.path.dirname(dst)
        if parent:
            os.makedirs(parent, self.config.dir_permissions, exist_ok=True)

        logger.info("Copying %s to %s", path, dst)
        shutil.copy2(path, dst)
