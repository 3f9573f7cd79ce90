"""Core module - Shared configuration and types."""

from directupload.core.config import DEFAULT_CHUNK_SIZE, ServerConfig, TransferConfig
from directupload.core.types import ErrorKind, Operation

__all__ = [
    # Config
    "DEFAULT_CHUNK_SIZE",
    "ServerConfig",
    "TransferConfig",
    # Types
    "ErrorKind",
    "Operation",
]
