"""Shared types and dataclasses for transfers.

This module provides:
- TransferError and subclasses: Exceptions raised inside the engine
- ErrorInfo: Normalized failure description placed in outcomes
- TransferOutcome: Terminal result of a transfer
- UploadRequest, DownloadRequest: Transfer requests
- TransferType, TransferStatus: Handle state machine types
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import TYPE_CHECKING, Union

from directupload.core.types import ErrorKind

if TYPE_CHECKING:
    from directupload.client.transfer.sources import ByteSource


class TransferError(Exception):
    """Base exception for transfer failures."""

    kind = ErrorKind.STREAM

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(TransferError):
    """The authorization provider failed to issue a URL."""

    kind = ErrorKind.AUTHORIZATION


class TransportError(TransferError):
    """The object store answered with a non-2xx status or was unreachable."""

    kind = ErrorKind.TRANSPORT


class StreamError(TransferError):
    """Reading or writing the transferred bytes failed."""

    kind = ErrorKind.STREAM


class TransferCancelledError(TransferError):
    """The transfer was cancelled before it completed."""

    kind = ErrorKind.CANCELLED


@dataclass(frozen=True)
class ErrorInfo:
    """Why a transfer failed.

    Attributes:
        kind: Failure category.
        message: Human readable description.
        operation: "upload" or "download".
        status_code: HTTP status when the failure came from a response.
    """

    kind: ErrorKind
    message: str
    operation: str
    status_code: int | None = None


@dataclass(frozen=True)
class TransferOutcome:
    """Terminal result of a transfer."""

    success: bool
    path: str
    error: ErrorInfo | None = None
    filename: str | None = None  # Suggested filename (downloads only)

    def __post_init__(self) -> None:
        if self.success == (self.error is not None):
            raise ValueError("An outcome carries an error exactly when it failed")


# Type aliases for callbacks
ProgressCallback = Callable[[float], None]
ErrorCallback = Callable[[ErrorInfo], None]
DownloadSink = Callable[[bytes, str], Union[Awaitable[None], None]]


@dataclass(frozen=True)
class UploadRequest:
    """Request to upload a byte source to a storage path."""

    path: str
    source: ByteSource
    content_type: str | None = None
    on_progress: ProgressCallback | None = None
    on_error: ErrorCallback | None = None


@dataclass(frozen=True)
class DownloadRequest:
    """Request to download a storage path and hand it to a sink."""

    path: str
    sink: DownloadSink
    filename: str | None = None
    on_progress: ProgressCallback | None = None
    on_error: ErrorCallback | None = None


class TransferType(IntEnum):
    """Type of transfer operation."""

    UPLOAD = auto()
    DOWNLOAD = auto()


class TransferStatus(IntEnum):
    """Status of a transfer."""

    PENDING = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()
    CANCELLED = auto()
    FAILED = auto()
