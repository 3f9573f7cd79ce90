"""Command-line interface for directupload.

This module provides the main CLI entry point and assembles all commands.

Commands:
- upload: Upload a file through a signed URL
- download: Download a file through a signed URL
- config: Show or change saved settings
"""

from __future__ import annotations

import click

from directupload.client.cli.config import (
    config_group,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
    setup_logging,
)
from directupload.client.cli.transfer import download, upload


@click.group()
@click.version_option(package_name="directupload")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """directupload - File transfers through short-lived signed URLs."""
    setup_logging(verbose)


# Transfer commands
cli.add_command(upload)
cli.add_command(download)

# Settings
cli.add_command(config_group)

__all__ = [
    "cli",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]


if __name__ == "__main__":
    cli()
