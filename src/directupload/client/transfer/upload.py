"""Upload engine.

This module provides:
- UploadTransfer: Streams a byte source to a signed URL in one PUT
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from directupload.client.api import SignedUrlOptions
from directupload.client.transfer.base import BaseTransfer, TransferContext
from directupload.client.transfer.sources import ByteSource
from directupload.client.transfer.types import StreamError, TransferType, UploadRequest
from directupload.core.types import Operation

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadTransfer(BaseTransfer):
    """Upload a source through a signed URL.

    The source must declare its size: it is sent as Content-Length and used
    for progress. Exactly one PUT is attempted.

    Usage:
        uploader = UploadTransfer(client, provider, config)
        handle = uploader.start(UploadRequest(path="uploads/x.bin", source=src))
        outcome = await handle
    """

    @property
    def transfer_type(self) -> TransferType:
        return TransferType.UPLOAD

    @property
    def operation(self) -> Operation:
        return Operation.UPLOAD

    async def _do_transfer(self, ctx: TransferContext) -> None:
        request: UploadRequest = ctx.request
        source = request.source
        size = source.size
        if size is None:
            raise StreamError(f"Size of {source!r} is unknown, cannot upload")

        content_type = request.content_type or source.content_type or DEFAULT_CONTENT_TYPE
        url = await self._authorize(
            request.path,
            SignedUrlOptions(expires_in=self._config.expires_in, content_type=content_type),
        )

        ctx.progress.set_total(size)
        logger.debug(f"PUT {size} bytes of {content_type} for {request.path}")
        response = await self._client.put(
            url,
            content=self._count(source, size, ctx),
            headers={"Content-Type": content_type, "Content-Length": str(size)},
        )
        self._check_response(response)
        ctx.progress.complete()

    async def _count(
        self, source: ByteSource, size: int, ctx: TransferContext
    ) -> AsyncIterator[bytes]:
        """Forward source chunks unchanged, counting them for progress."""
        sent = 0
        chunks = source.chunks(self._config.chunk_size)
        while True:
            try:
                chunk = await chunks.__anext__()
            except StopAsyncIteration:
                break
            except OSError as e:
                raise StreamError(f"Failed to read upload source: {e}") from e

            sent += len(chunk)
            if sent > size:
                raise StreamError(f"Source produced more than its declared {size} bytes")
            ctx.progress.advance(len(chunk))
            yield chunk

        if sent != size:
            raise StreamError(f"Source produced {sent} bytes, expected {size}")
