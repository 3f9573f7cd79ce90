"""Transfer engine facade.

This module provides:
- TransferEngine: Owns the HTTP client, starts uploads and downloads, and
  keeps track of the transfers still running
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from directupload.client.transfer.download import DownloadTransfer
from directupload.client.transfer.upload import UploadTransfer
from directupload.core.config import TransferConfig

if TYPE_CHECKING:
    from directupload.client.api import AuthorizationProvider
    from directupload.client.transfer.base import TransferHandle
    from directupload.client.transfer.types import DownloadRequest, UploadRequest

logger = logging.getLogger(__name__)


class TransferEngine:
    """Entry point for signed URL transfers.

    Transfers are independent: each has its own token, progress and outcome.
    The only shared state is the read-only provider and the HTTP client.

    Usage:
        async with TransferEngine(provider) as engine:
            handle = engine.upload(UploadRequest("uploads/x.bin", FileSource(p)))
            outcome = await handle
    """

    def __init__(
        self,
        provider: AuthorizationProvider,
        config: TransferConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            provider: Source of signed URLs.
            config: Transfer settings (chunk size, timeouts, URL expiry).
            client: Optional client used for object store requests. The engine
                does not close a client it did not create.
        """
        self._provider = provider
        self._config = config or TransferConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
        )
        self._uploader = UploadTransfer(self._client, provider, self._config)
        self._downloader = DownloadTransfer(self._client, provider, self._config)
        self._active: set[TransferHandle] = set()

    @property
    def config(self) -> TransferConfig:
        return self._config

    def upload(self, request: UploadRequest) -> TransferHandle:
        """Start uploading `request.source` to `request.path`."""
        return self._track(self._uploader.start(request))

    def download(self, request: DownloadRequest) -> TransferHandle:
        """Start downloading `request.path` into `request.sink`."""
        return self._track(self._downloader.start(request))

    def active(self) -> list[TransferHandle]:
        """Get all transfers without an outcome yet."""
        return [h for h in self._active if not h.done()]

    def cancel_all(self) -> int:
        """Cancel all active transfers.

        Returns:
            Number of transfers cancellation was requested for.
        """
        count = sum(1 for handle in self.active() if handle.cancel())
        if count:
            logger.info(f"Cancelling {count} active transfer(s)")
        return count

    async def aclose(self) -> None:
        """Cancel active transfers, wait for their outcomes and close the client."""
        pending = self.active()
        self.cancel_all()
        if pending:
            await asyncio.gather(*(h.wait() for h in pending), return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> TransferEngine:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _track(self, handle: TransferHandle) -> TransferHandle:
        self._active.add(handle)
        handle.add_done_callback(self._active.discard)
        return handle
