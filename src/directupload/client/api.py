"""HTTP client for the signed URL backend.

This module provides:
- AuthorizationProvider: Interface consumed by the transfer engine
- SignedUrlOptions: Options forwarded with a signed URL request
- HTTPAuthorizationProvider: Provider asking the backend API for signed URLs
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from directupload.core.config import ServerConfig
from directupload.core.types import Operation

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed or the operation is not allowed."""


@dataclass(frozen=True)
class SignedUrlOptions:
    """Options for a signed URL request.

    Attributes:
        expires_in: Requested URL lifetime in seconds.
        content_type: Content type the upload will be sent with.
    """

    expires_in: int | None = None
    content_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize set fields for the API request body."""
        data: dict[str, Any] = {}
        if self.expires_in is not None:
            data["expires_in"] = self.expires_in
        if self.content_type is not None:
            data["content_type"] = self.content_type
        return data


class AuthorizationProvider(Protocol):
    """Source of signed URLs.

    Implementations must be safe to call concurrently.
    """

    async def get_authorized_url(
        self,
        operation: Operation,
        path: str,
        options: SignedUrlOptions | None = None,
    ) -> str:
        """Return a URL allowing `operation` on `path` until it expires."""
        ...


class HTTPAuthorizationProvider:
    """Authorization provider backed by the signed URL API."""

    def __init__(
        self,
        config: ServerConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Server configuration (URL, token, timeout, SSL).
            client: Optional pre-configured client (mainly for tests). The
                provider does not close a client it did not create.
        """
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"Authorization": f"Bearer {config.token}"},
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HTTPAuthorizationProvider:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code in (401, 403):
            raise AuthenticationError(
                _error_detail(response, "Not authorized"), response.status_code
            )
        if response.status_code >= 400:
            raise APIError(
                _error_detail(response, "Unknown error"), response.status_code
            )
        return response

    async def get_authorized_url(
        self,
        operation: Operation,
        path: str,
        options: SignedUrlOptions | None = None,
    ) -> str:
        """Request a signed URL from the backend.

        Args:
            operation: Operation the URL is for.
            path: Storage path of the object.
            options: Optional expiry and content type.

        Returns:
            The signed URL.

        Raises:
            AuthenticationError: If the token is rejected.
            APIError: If the backend fails or returns no URL.
            httpx.RequestError: If the backend cannot be reached.
        """
        operation = Operation(operation)
        payload: dict[str, Any] = {"operation": operation.value, "path": path}
        if options is not None:
            payload.update(options.to_dict())

        logger.debug(f"Requesting signed URL for {operation.value} {path}")
        response = self._handle_response(
            await self._client.post(
                f"{self._config.server_url}/api/signed-urls", json=payload
            )
        )
        try:
            data = response.json()
        except ValueError as e:
            raise APIError("Invalid signed URL response", response.status_code) from e
        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise APIError("Signed URL missing from response", response.status_code)
        return url


def _error_detail(response: httpx.Response, default: str) -> str:
    """Extract the `detail` field from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or default
    if isinstance(data, dict):
        return str(data.get("detail", default))
    return default
