"""Shared types for directupload.

This module defines enums used by both the engine and the authorization client.
"""

from __future__ import annotations

from enum import Enum


class Operation(str, Enum):
    """Operation a signed URL is issued for.

    The value is the name sent to the authorization backend.
    """

    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"


class ErrorKind(str, Enum):
    """Kind of a transfer failure, as reported in outcomes."""

    AUTHORIZATION = "AuthorizationError"
    TRANSPORT = "TransportError"
    STREAM = "StreamError"
    CANCELLED = "CancelledError"
