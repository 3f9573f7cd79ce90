"""Test doubles for transfer engine tests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from directupload.client.api import SignedUrlOptions
from directupload.client.transfer import TransferEngine
from directupload.core.config import TransferConfig
from directupload.core.types import Operation

BUCKET_URL = "https://bucket.test"


class FakeProvider:
    """Authorization provider recording its calls.

    Attributes:
        calls: (operation, path, options) for every request.
        error: Raised instead of returning a URL when set.
        gate: When set, requests block until the event fires.
    """

    def __init__(
        self,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        url: str | None = None,
    ) -> None:
        self.calls: list[tuple[Operation, str, SignedUrlOptions | None]] = []
        self.error = error
        self.gate = gate
        self.url = url

    async def get_authorized_url(
        self,
        operation: Operation,
        path: str,
        options: SignedUrlOptions | None = None,
    ) -> str:
        self.calls.append((operation, path, options))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.url is not None:
            return self.url
        return f"{BUCKET_URL}/{path}?X-Signature={operation.value}"


Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


class RecordingTransport(httpx.MockTransport):
    """Mock transport keeping every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        async def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return await handler(request)

        super().__init__(record)


def respond(status_code: int = 200, **kwargs: Any) -> Handler:
    """Build a handler returning a fixed response."""

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return handler


async def hang(request: httpx.Request) -> httpx.Response:
    """Handler that never answers."""
    await asyncio.Event().wait()
    raise AssertionError("unreachable")


def make_engine(
    provider: FakeProvider,
    handler: Handler,
    chunk_size: int = 4,
) -> tuple[TransferEngine, RecordingTransport]:
    """Create an engine whose object store requests go to `handler`."""
    transport = RecordingTransport(handler)
    client = httpx.AsyncClient(transport=transport)
    engine = TransferEngine(provider, TransferConfig(chunk_size=chunk_size), client=client)
    return engine, transport


