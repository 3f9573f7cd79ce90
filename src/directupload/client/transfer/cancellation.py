"""Cooperative cancellation for transfers.

This module provides:
- CancellationToken: One-shot stop signal shared by a handle and its engine
"""

from __future__ import annotations

import asyncio

from directupload.client.transfer.types import TransferCancelledError


class CancellationToken:
    """One-shot cancellation signal.

    The token starts untriggered. `cancel()` triggers it once; later calls are
    no-ops.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> bool:
        """Trigger the token.

        Returns:
            True if this call triggered it, False if it already was.
        """
        if self._event.is_set():
            return False
        self._event.set()
        return True

    async def wait(self) -> None:
        """Block until the token is triggered."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise TransferCancelledError if the token was triggered."""
        if self._event.is_set():
            raise TransferCancelledError("Transfer cancelled")
