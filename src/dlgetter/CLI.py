"""dlgetter CLI entrypoint.

This module provides the `get` click command which fetches a source into a
destination path, unpacking it on the way when it is an archive, while
displaying download progress.

Usage example (from shell):
    dlgetter "mvn::https://repo1.maven.org/maven2?groupId=org.example&artifactId=test&version=1.0.0" ./lib/
    dlgetter -mode dir https://example.com/release.tar.gz ./release

Archive handling and source dispatch are delegated to `dlgetter.Client`, so
this module focuses on argument handling, logging setup and progress
reporting.
"""

import logging
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, DownloadColumn, TransferSpeedColumn

from . import __version__
from .Client import Client, default_getters
from .Config import DEFAULT_CONFIG
from .Protocols import ClientMode

logger = logging.getLogger("dlgetter")

# Create a single console instance for the CLI UI; stdout stays free for --version
console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("src", type=str)
@click.argument("dst", type=click.Path(path_type=Path))
@click.option("--mode", "-mode",
              type=click.Choice([mode.value for mode in ClientMode]),
              default=DEFAULT_CONFIG.default_mode.value,
              show_default=True,
              help="get mode (any, file, dir)")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every extracted entry")
@click.version_option(__version__, "--version", "-version", message="version: %(version)s")
def get(src: str, dst: Path, mode: str, verbose: bool):
    """Fetch SRC into DST.

    SRC may be a URL, a local path, or a forced-getter source such as
    `mvn::https://host/repo?groupId=...&artifactId=...&version=...`.
    Archives (tar, tar.gz, zip, 7z, ...) are unpacked into DST.

    Args:

        src: Source identifier.

        dst: Destination file or directory.

        mode: 'file' to produce exactly one file, 'dir' for a directory,
        'any' to let the source decide.

        verbose: Enable debug logging.
    """
    _configure_logging(verbose)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Downloading...", total=None)

        # The HTTP getter reports each chunk it writes, along with the
        # Content-Length when the server sent one
        def progress_callback(advance: int, total: int | None):
            if total:
                progress.update(task, total=total)
            progress.update(task, advance=advance)

        getters = default_getters(progress_callback=progress_callback)
        client = Client(
            src=src,
            dst=str(dst),
            pwd=os.getcwd(),
            mode=ClientMode.parse(mode),
            getters=getters,
        )
        try:
            client.get()
        except Exception as e:
            logger.critical("Error downloading: %s", e)
            logger.debug("Traceback", exc_info=True)
            sys.exit(1)
        finally:
            # http and https share one HttpGetter and its connection pool
            getters["https"].close()

    logger.info("Success!")
