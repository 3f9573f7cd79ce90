"""Signed URL transfer engine.

Architecture:
    TransferEngine → UploadTransfer / DownloadTransfer → AuthorizationProvider
                                                       → httpx transport

Components:
- **TransferEngine**: Starts transfers and tracks the active ones
- **UploadTransfer**: One streamed PUT of a ByteSource, with progress
- **DownloadTransfer**: Streamed GET pulled into memory, handed to a sink
- **TransferHandle**: Cancel trigger plus a future yielding the outcome
- **CancellationToken**: Cooperative stop signal of one transfer
- **ProgressReporter**: Non-decreasing percentage samples

Failures never raise out of a transfer: they resolve the outcome with
`success=False` and an ErrorInfo, and are passed to `on_error` if given.
"""

from directupload.client.transfer.base import (
    BaseTransfer,
    InvalidTransitionError,
    TransferContext,
    TransferHandle,
)
from directupload.client.transfer.cancellation import CancellationToken
from directupload.client.transfer.download import DownloadTransfer
from directupload.client.transfer.engine import TransferEngine
from directupload.client.transfer.progress import ProgressReporter
from directupload.client.transfer.sinks import DirectorySink
from directupload.client.transfer.sources import (
    ByteSource,
    BytesSource,
    FileSource,
    as_source,
)
from directupload.client.transfer.types import (
    AuthorizationError,
    DownloadRequest,
    DownloadSink,
    ErrorCallback,
    ErrorInfo,
    ProgressCallback,
    StreamError,
    TransferCancelledError,
    TransferError,
    TransferOutcome,
    TransferStatus,
    TransferType,
    TransportError,
    UploadRequest,
)
from directupload.client.transfer.upload import UploadTransfer

__all__ = [
    # Base
    "BaseTransfer",
    "InvalidTransitionError",
    "TransferContext",
    "TransferHandle",
    "CancellationToken",
    "ProgressReporter",
    # Engines
    "DownloadTransfer",
    "TransferEngine",
    "UploadTransfer",
    # Sources and sinks
    "ByteSource",
    "BytesSource",
    "DirectorySink",
    "FileSource",
    "as_source",
    # Types
    "AuthorizationError",
    "DownloadRequest",
    "DownloadSink",
    "ErrorCallback",
    "ErrorInfo",
    "ProgressCallback",
    "StreamError",
    "TransferCancelledError",
    "TransferError",
    "TransferOutcome",
    "TransferStatus",
    "TransferType",
    "TransportError",
    "UploadRequest",
]
