"""Transfer commands for the directupload CLI.

Commands:
- upload: Upload a local file to a storage path
- download: Download a storage path into a local directory
"""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Callable
from pathlib import Path

import click

from directupload.client.api import HTTPAuthorizationProvider
from directupload.client.cli.config import load_transfer_config, resolve_server_config
from directupload.client.transfer import (
    DirectorySink,
    DownloadRequest,
    TransferEngine,
    TransferHandle,
    TransferOutcome,
    UploadRequest,
    as_source,
)
from directupload.core.config import ServerConfig, TransferConfig

StartTransfer = Callable[[TransferEngine, Callable[[float], None] | None], TransferHandle]


class ProgressLine:
    """Single status line rewritten on every progress sample."""

    def __init__(self, label: str) -> None:
        self._label = label
        self._shown = False

    def update(self, percent: float) -> None:
        click.echo(f"\r  {self._label} {percent:5.1f}%", nl=False)
        self._shown = True

    def finish(self) -> None:
        if self._shown:
            click.echo()


async def run_transfer(
    server_config: ServerConfig,
    transfer_config: TransferConfig,
    start: StartTransfer,
    progress: ProgressLine | None,
) -> TransferOutcome:
    """Run one transfer to its outcome.

    Ctrl-C cancels the transfer instead of killing the process, so the
    outcome is still reported.
    """
    on_progress = progress.update if progress else None
    async with HTTPAuthorizationProvider(server_config) as provider, TransferEngine(
        provider, transfer_config
    ) as engine:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, engine.cancel_all)
            handles_signal = True
        except (NotImplementedError, RuntimeError):
            # No signal handlers on Windows event loops or outside the main thread
            handles_signal = False

        try:
            outcome = await start(engine, on_progress)
        finally:
            if handles_signal:
                loop.remove_signal_handler(signal.SIGINT)

    if progress:
        progress.finish()
    return outcome


def report(outcome: TransferOutcome, arrow: str) -> None:
    """Print the outcome and exit non-zero on failure."""
    error = outcome.error
    if error is None:
        click.echo(f"  {arrow} {outcome.path}")
        return
    detail = f" (HTTP {error.status_code})" if error.status_code else ""
    click.echo(f"Error: {error.kind.value}: {error.message}{detail}", err=True)
    sys.exit(1)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("path")
@click.option("--content-type", default=None, help="Content type (default: guessed).")
@click.option("--server", default=None, help="Backend URL (default: from config).")
@click.option("--token", default=None, help="Backend token (default: from config).")
@click.option("--no-progress", is_flag=True, help="Disable the progress line.")
def upload(
    file: Path,
    path: str,
    content_type: str | None,
    server: str | None,
    token: str | None,
    no_progress: bool,
) -> None:
    """Upload FILE to the storage PATH."""
    server_config = resolve_server_config(server, token)
    transfer_config = load_transfer_config()
    source = as_source(file)

    def start(
        engine: TransferEngine, on_progress: Callable[[float], None] | None
    ) -> TransferHandle:
        return engine.upload(
            UploadRequest(
                path=path,
                source=source,
                content_type=content_type,
                on_progress=on_progress,
            )
        )

    progress = None if no_progress else ProgressLine(f"↑ {path}")
    outcome = asyncio.run(run_transfer(server_config, transfer_config, start, progress))
    report(outcome, "↑")


@click.command()
@click.argument("path")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to save into.",
)
@click.option("--filename", default=None, help="Name to save as (default: last path segment).")
@click.option("--no-clobber", is_flag=True, help="Fail instead of overwriting files.")
@click.option("--server", default=None, help="Backend URL (default: from config).")
@click.option("--token", default=None, help="Backend token (default: from config).")
@click.option("--no-progress", is_flag=True, help="Disable the progress line.")
def download(
    path: str,
    output: Path,
    filename: str | None,
    no_clobber: bool,
    server: str | None,
    token: str | None,
    no_progress: bool,
) -> None:
    """Download the storage PATH into a local directory."""
    server_config = resolve_server_config(server, token)
    transfer_config = load_transfer_config()
    sink = DirectorySink(output, overwrite=not no_clobber)

    def start(
        engine: TransferEngine, on_progress: Callable[[float], None] | None
    ) -> TransferHandle:
        return engine.download(
            DownloadRequest(
                path=path,
                sink=sink,
                filename=filename,
                on_progress=on_progress,
            )
        )

    progress = None if no_progress else ProgressLine(f"↓ {path}")
    outcome = asyncio.run(run_transfer(server_config, transfer_config, start, progress))
    report(outcome, "↓")
    for saved in sink.saved:
        click.echo(f"    saved to {saved}")
