"""Download engine.

This module provides:
- DownloadTransfer: Reads a signed URL into memory and hands it to a sink
"""

from __future__ import annotations

import inspect
import logging
from pathlib import PurePosixPath

import httpx

from directupload.client.api import SignedUrlOptions
from directupload.client.transfer.base import BaseTransfer, TransferContext
from directupload.client.transfer.types import DownloadRequest, StreamError, TransferType
from directupload.core.types import Operation

logger = logging.getLogger(__name__)


class DownloadTransfer(BaseTransfer):
    """Download a storage path through a signed URL.

    The body is pulled chunk by chunk into memory. Progress is reported only
    when the response advertises Content-Length. On success the content and a
    suggested filename go to the request's sink. Once the sink has been
    called, cancelling no longer changes the outcome.
    """

    @property
    def transfer_type(self) -> TransferType:
        return TransferType.DOWNLOAD

    @property
    def operation(self) -> Operation:
        return Operation.DOWNLOAD

    def _suggested_filename(self, request: DownloadRequest) -> str:
        return request.filename or PurePosixPath(request.path).name or request.path

    async def _do_transfer(self, ctx: TransferContext) -> None:
        request: DownloadRequest = ctx.request
        url = await self._authorize(
            request.path, SignedUrlOptions(expires_in=self._config.expires_in)
        )

        buffer = bytearray()
        async with self._client.stream("GET", url) as response:
            # Body is left unread on error
            self._check_response(response)
            ctx.progress.set_total(content_length(response))

            async for chunk in response.aiter_bytes(self._config.chunk_size):
                buffer += chunk
                ctx.progress.advance(len(chunk))

        ctx.progress.complete()
        content = bytes(buffer)
        filename = self._suggested_filename(request)
        logger.debug(f"Downloaded {len(content)} bytes of {request.path}")

        # The sink handoff is not interruptible: its result is the outcome
        ctx.token.raise_if_cancelled()
        ctx.committed = True
        try:
            result = request.sink(content, filename)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise StreamError(f"Failed to hand off {filename}: {e}") from e


def content_length(response: httpx.Response) -> int | None:
    """Return the advertised body size, None if missing or invalid."""
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None
