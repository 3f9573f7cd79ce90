"""Base transfer class with cancellation support.

This module provides:
- TransferHandle: Value returned to callers (cancel trigger + outcome future)
- TransferContext: Per-transfer state passed to implementations
- BaseTransfer: Abstract base class driving one transfer to its outcome

Handle states:
    PENDING -> IN_PROGRESS -> COMPLETED
                           -> CANCELLED
                           -> FAILED
    PENDING -> CANCELLED

All state transitions are validated.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from directupload.client.api import SignedUrlOptions
from directupload.client.transfer.cancellation import CancellationToken
from directupload.client.transfer.progress import ProgressReporter
from directupload.client.transfer.types import (
    AuthorizationError,
    ErrorInfo,
    TransferCancelledError,
    TransferError,
    TransferOutcome,
    TransferStatus,
    TransferType,
    TransportError,
)
from directupload.core.types import ErrorKind, Operation

if TYPE_CHECKING:
    from directupload.client.api import AuthorizationProvider
    from directupload.core.config import TransferConfig

logger = logging.getLogger(__name__)

# Valid state transitions
VALID_TRANSITIONS: dict[TransferStatus, set[TransferStatus]] = {
    TransferStatus.PENDING: {TransferStatus.IN_PROGRESS, TransferStatus.CANCELLED},
    TransferStatus.IN_PROGRESS: {
        TransferStatus.COMPLETED,
        TransferStatus.CANCELLED,
        TransferStatus.FAILED,
    },
    TransferStatus.COMPLETED: set(),  # Terminal
    TransferStatus.CANCELLED: set(),  # Terminal
    TransferStatus.FAILED: set(),  # Terminal
}


class InvalidTransitionError(Exception):
    """Raised when attempting invalid state transition."""


class TransferHandle:
    """A running transfer, as seen by the caller.

    Attributes:
        path: Storage path being transferred.
        transfer_type: Upload or download.
        outcome: Future resolving to the TransferOutcome. It never raises for
            transfer failures. Cancelling it (e.g. a timeout in
            `asyncio.wait_for`) cancels the transfer; `await handle` still
            returns the final outcome afterwards.
    """

    def __init__(
        self,
        path: str,
        transfer_type: TransferType,
        token: CancellationToken,
    ) -> None:
        self.path = path
        self.transfer_type = transfer_type
        self._token = token
        self._status = TransferStatus.PENDING
        self.outcome: asyncio.Future[TransferOutcome]
        self._task: asyncio.Task[TransferOutcome]

    @property
    def status(self) -> TransferStatus:
        return self._status

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_terminal(self) -> bool:
        """Check if transfer is in a terminal state."""
        return self._status in (
            TransferStatus.COMPLETED,
            TransferStatus.CANCELLED,
            TransferStatus.FAILED,
        )

    def transition_to(self, new_status: TransferStatus) -> None:
        """Transition to a new status with validation."""
        if new_status not in VALID_TRANSITIONS[self._status]:
            raise InvalidTransitionError(
                f"Cannot transition from {self._status.name} to {new_status.name}"
            )
        self._status = new_status

    def cancel(self) -> bool:
        """Request cancellation of this transfer.

        Safe to call any number of times. Does nothing once the transfer
        has finished.

        Returns:
            True if this call requested cancellation.
        """
        if self.is_terminal:
            return False
        return self._token.cancel()

    def bind(
        self, outcome: asyncio.Future[TransferOutcome], task: asyncio.Task[TransferOutcome]
    ) -> None:
        """Attach the outcome future and the task running the transfer."""
        self.outcome = outcome
        self._task = task
        outcome.add_done_callback(self._outcome_done)

    def _outcome_done(self, outcome: asyncio.Future[TransferOutcome]) -> None:
        if outcome.cancelled():
            self.cancel()

    def resolve(self, outcome: TransferOutcome) -> None:
        """Publish the outcome unless the caller already gave up on it."""
        if not self.outcome.done():
            self.outcome.set_result(outcome)

    def done(self) -> bool:
        """Check if the transfer task has finished."""
        return self._task.done()

    def add_done_callback(self, callback: Callable[[TransferHandle], None]) -> None:
        """Run `callback` with this handle once the transfer task finishes."""
        self._task.add_done_callback(lambda _: callback(self))

    async def wait(self) -> TransferOutcome:
        """Wait for the outcome.

        Cancelling the waiter cancels the transfer but not the task finishing
        it, so waiting again returns the CancelledError outcome.
        """
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            self.cancel()
            raise

    def __await__(self) -> Generator[Any, None, TransferOutcome]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return (
            f"TransferHandle({self.transfer_type.name.lower()} {self.path!r}, "
            f"{self._status.name})"
        )


@dataclass
class TransferContext:
    """Context passed to transfer execution.

    Attributes:
        request: The request being served.
        token: Cancellation token of the transfer.
        progress: Progress reporter of the transfer.
        committed: Set by the implementation once its side effect has begun
            and must run to completion; later cancellation is then ignored.
    """

    request: Any
    token: CancellationToken
    progress: ProgressReporter
    committed: bool = False


class BaseTransfer(ABC):
    """Abstract base class for transfers.

    `start()` returns a handle right away and schedules `_run()` on the
    running event loop. `_run()` races the subclass's `_do_transfer()` against
    the handle's cancellation token and turns whatever happens into exactly
    one TransferOutcome.

    Subclasses must implement:
    - _do_transfer(): The network exchange
    - transfer_type / operation: What kind of transfer this is
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        provider: AuthorizationProvider,
        config: TransferConfig,
    ) -> None:
        self._client = client
        self._provider = provider
        self._config = config

    @property
    @abstractmethod
    def transfer_type(self) -> TransferType:
        """Return the transfer type."""
        ...

    @property
    @abstractmethod
    def operation(self) -> Operation:
        """Return the operation signed URLs are requested for."""
        ...

    def start(self, request: Any) -> TransferHandle:
        """Start a transfer.

        Must be called from a running event loop. No I/O happens before the
        handle is returned.
        """
        token = CancellationToken()
        handle = TransferHandle(request.path, self.transfer_type, token)
        loop = asyncio.get_running_loop()
        handle.bind(
            loop.create_future(),
            loop.create_task(
                self._run(handle, request),
                name=f"{self.operation.value}:{request.path}",
            ),
        )
        return handle

    @abstractmethod
    async def _do_transfer(self, ctx: TransferContext) -> None:
        """Perform the actual transfer.

        Implementations raise TransferError subclasses (or let httpx and I/O
        errors through) on failure and return normally on success.
        """
        ...

    def _suggested_filename(self, request: Any) -> str | None:
        return None

    async def _run(self, handle: TransferHandle, request: Any) -> TransferOutcome:
        token = handle.token
        if token.cancelled:
            return self._finish(
                handle, request, TransferCancelledError("Transfer cancelled before start")
            )

        handle.transition_to(TransferStatus.IN_PROGRESS)
        logger.info(f"{self.operation.value} started: {request.path}")
        start_time = time.monotonic()

        progress = ProgressReporter(request.on_progress, token)
        ctx = TransferContext(request=request, token=token, progress=progress)
        work = asyncio.ensure_future(self._do_transfer(ctx))
        try:
            await self._wait_for_work(work, ctx)
        except asyncio.CancelledError:
            # Runner itself cancelled (e.g. loop shutdown): still publish an outcome
            token.cancel()
            work.cancel()
            progress.close()
            self._finish(
                handle,
                request,
                TransferCancelledError("Transfer interrupted"),
                time.monotonic() - start_time,
            )
            raise
        progress.close()

        error = self._work_error(work, ctx)
        elapsed = time.monotonic() - start_time
        return self._finish(handle, request, error, elapsed)

    async def _wait_for_work(
        self, work: asyncio.Future[None], ctx: TransferContext
    ) -> None:
        """Wait for `work`, cancelling it if the token fires before it commits."""
        stop = asyncio.ensure_future(ctx.token.wait())
        try:
            done, _ = await asyncio.wait(
                {work, stop}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop.cancel()

        if work in done:
            return
        if not ctx.committed:
            # Cancelled while in flight: abort the request
            work.cancel()
        await asyncio.wait({work})

    def _work_error(
        self, work: asyncio.Future[None], ctx: TransferContext
    ) -> BaseException | None:
        """Pick the error to report for a finished work task.

        A completed transfer is a success even if cancel arrived afterwards.
        A failure racing with cancellation is reported as a cancellation,
        unless the work had committed.
        """
        if work.cancelled():
            return TransferCancelledError("Transfer cancelled")
        error = work.exception()
        if error is not None and ctx.token.cancelled and not ctx.committed:
            return TransferCancelledError("Transfer cancelled")
        return error

    def _finish(
        self,
        handle: TransferHandle,
        request: Any,
        error: BaseException | None,
        elapsed: float = 0.0,
    ) -> TransferOutcome:
        filename = self._suggested_filename(request)
        if error is None:
            handle.transition_to(TransferStatus.COMPLETED)
            logger.info(
                f"{self.operation.value} completed: {request.path} ({elapsed:.2f}s)"
            )
            outcome = TransferOutcome(success=True, path=request.path, filename=filename)
            handle.resolve(outcome)
            return outcome

        info = self._error_info(error)
        if info.kind == ErrorKind.CANCELLED:
            handle.transition_to(TransferStatus.CANCELLED)
            logger.info(f"{self.operation.value} cancelled: {request.path}")
        else:
            handle.transition_to(TransferStatus.FAILED)
            logger.warning(
                f"{self.operation.value} failed: {request.path}: "
                f"{info.kind.value}: {info.message}"
            )

        if request.on_error:
            try:
                request.on_error(info)
            except Exception:
                logger.exception(f"on_error callback failed for {request.path}")

        outcome = TransferOutcome(
            success=False, path=request.path, error=info, filename=filename
        )
        handle.resolve(outcome)
        return outcome

    def _error_info(self, error: BaseException) -> ErrorInfo:
        """Normalize an exception into ErrorInfo."""
        status_code = None
        if isinstance(error, TransferError):
            kind = error.kind
            status_code = error.status_code
        elif isinstance(error, (httpx.ReadError, httpx.WriteError, httpx.StreamError)):
            kind = ErrorKind.STREAM
        elif isinstance(error, httpx.RequestError):
            kind = ErrorKind.TRANSPORT
        elif isinstance(error, OSError):
            kind = ErrorKind.STREAM
        else:
            logger.error(
                f"Unexpected error during {self.operation.value}", exc_info=error
            )
            kind = ErrorKind.STREAM
        message = str(error) or type(error).__name__
        return ErrorInfo(
            kind=kind,
            message=message,
            operation=self.operation.value,
            status_code=status_code,
        )

    async def _authorize(self, path: str, options: SignedUrlOptions) -> str:
        """Ask the provider for a URL for this transfer.

        Raises:
            AuthorizationError: If the provider fails or returns no URL.
        """
        try:
            url = await self._provider.get_authorized_url(self.operation, path, options)
        except Exception as e:
            raise AuthorizationError(
                f"Could not authorize {self.operation.value} of {path}: {e}"
            ) from e
        if not isinstance(url, str) or not url:
            raise AuthorizationError(
                f"No URL issued for {self.operation.value} of {path}"
            )
        return url

    def _check_response(self, response: httpx.Response) -> None:
        """Raise TransportError for non-2xx responses."""
        if not response.is_success:
            raise TransportError(
                f"{self.operation.value} failed with HTTP {response.status_code}",
                response.status_code,
            )
