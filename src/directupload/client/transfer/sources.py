"""Byte sources for uploads.

This module provides:
- ByteSource: Interface of anything that can be uploaded
- FileSource: A local file, read off the event loop
- BytesSource: Data already in memory
- as_source: Coerce bytes and paths into sources
"""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteSource(Protocol):
    """Something that can be uploaded.

    `size` is the number of bytes `chunks()` will yield, None if unknown.
    """

    @property
    def size(self) -> int | None: ...

    @property
    def content_type(self) -> str | None: ...

    def chunks(self, chunk_size: int) -> AsyncIterator[bytes]: ...


class FileSource:
    """Upload source reading a local file.

    The size is captured when the source is created.
    """

    def __init__(self, path: Path | str, content_type: str | None = None) -> None:
        self._path = Path(path)
        self._size = self._path.stat().st_size
        self._content_type = content_type or mimetypes.guess_type(self._path.name)[0]

    @property
    def path(self) -> Path:
        return self._path

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> str | None:
        return self._content_type

    async def chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield the file contents in `chunk_size` pieces."""
        f = await asyncio.to_thread(self._path.open, "rb")
        try:
            while True:
                data = await asyncio.to_thread(f.read, chunk_size)
                if not data:
                    break
                yield data
        finally:
            f.close()

    def __repr__(self) -> str:
        return f"FileSource({str(self._path)!r}, size={self._size})"


class BytesSource:
    """Upload source over in-memory data."""

    def __init__(self, data: bytes, content_type: str | None = None) -> None:
        self._data = bytes(data)
        self._content_type = content_type

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def content_type(self) -> str | None:
        return self._content_type

    async def chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        view = memoryview(self._data)
        for offset in range(0, len(view), chunk_size):
            yield bytes(view[offset:offset + chunk_size])

    def __repr__(self) -> str:
        return f"BytesSource(size={len(self._data)})"


def as_source(value: ByteSource | bytes | bytearray | str | Path) -> ByteSource:
    """Coerce bytes or a filesystem path into a ByteSource.

    Raises:
        TypeError: If the value cannot be uploaded.
        OSError: If a path cannot be read.
    """
    if isinstance(value, (bytes, bytearray)):
        return BytesSource(bytes(value))
    if isinstance(value, (str, Path)):
        return FileSource(value)
    if isinstance(value, ByteSource):
        return value
    raise TypeError(f"Cannot upload object of type {type(value).__name__}")
