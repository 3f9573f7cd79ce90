"""Shared configuration classes for directupload.

This module defines configuration classes used by the transfer engine and the
authorization client.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass
class ServerConfig:
    """Configuration for connecting to the signed URL backend.

    Attributes:
        server_url: Base URL of the backend (e.g., "https://files.example.com").
        token: Bearer token identifying the client.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    token: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if the backend uses HTTPS.
        """
        return self.server_url.startswith("https://")


@dataclass
class TransferConfig:
    """Configuration for the transfer engine.

    Attributes:
        chunk_size: Bytes read from a source or response per chunk.
        timeout: Timeout in seconds for each network operation.
        verify_ssl: Whether to verify SSL certificates of the object store.
        expires_in: Requested lifetime of signed URLs in seconds
            (None lets the backend decide).
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    timeout: float = 30.0
    verify_ssl: bool = True
    expires_in: int | None = None

    def __post_init__(self) -> None:
        """Validate values."""
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.expires_in is not None and self.expires_in <= 0:
            raise ValueError(f"expires_in must be positive, got {self.expires_in}")
