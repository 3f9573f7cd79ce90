"""Configuration utilities for the directupload CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from directupload.core.config import DEFAULT_CHUNK_SIZE, ServerConfig, TransferConfig

# Keys accepted by `directupload config set`
CONFIG_KEYS: dict[str, type] = {
    "server_url": str,
    "token": str,
    "chunk_size": int,
    "timeout": float,
    "expires_in": int,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for directupload.

    Returns:
        Path to ~/.directupload or equivalent.
    """
    return Path.home() / ".directupload"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def mask_token(token: str) -> str:
    """Hide all but the last four characters of a token."""
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]


def resolve_server_config(server: str | None, token: str | None) -> ServerConfig:
    """Build the backend configuration from options and the config file.

    Command-line values win over the config file. Exits with an error if the
    server URL or token is missing.
    """
    config = load_config()
    server_url = server or config.get("server_url")
    auth_token = token or config.get("token")
    if not server_url or not auth_token:
        click.echo(
            "Error: No server configured. Use --server/--token or "
            "'directupload config set'.",
            err=True,
        )
        sys.exit(1)

    timeout = float(config.get("timeout", 30.0))
    server_config = ServerConfig(server_url=server_url, token=auth_token, timeout=timeout)
    if not server_config.is_secure:
        click.echo("Warning: Token is sent over plain HTTP.", err=True)
    return server_config


def load_transfer_config() -> TransferConfig:
    """Build the transfer configuration from the config file."""
    config = load_config()
    try:
        return TransferConfig(
            chunk_size=int(config.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            timeout=float(config.get("timeout", 30.0)),
            expires_in=int(config["expires_in"]) if "expires_in" in config else None,
        )
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)


def setup_logging(verbose: bool = False) -> None:
    """Configure the directupload logger to write to stderr.

    Args:
        verbose: Log DEBUG and up instead of WARNING and up.
    """
    root_logger = logging.getLogger("directupload")
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.propagate = False


@click.group("config")
def config_group() -> None:
    """Show or change saved settings."""


@config_group.command("set")
@click.argument("key", type=click.Choice(sorted(CONFIG_KEYS)))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Save a setting to the config file."""
    try:
        CONFIG_KEYS[key](value)
    except ValueError:
        click.echo(f"Error: Invalid value for {key}: {value!r}", err=True)
        sys.exit(1)

    config = load_config()
    config[key] = value
    save_config(config)
    click.echo(f"Saved {key}")


@config_group.command("show")
def config_show() -> None:
    """Print the saved settings."""
    config = load_config()
    if not config:
        click.echo("No configuration saved.")
        return
    for key in sorted(config):
        value = config[key]
        if key == "token":
            value = mask_token(value)
        click.echo(f"{key}: {value}")
