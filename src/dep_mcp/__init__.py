"""DEP MCP Package

An authenticated, multi-tenant client for the Apple Device Enrollment Program
(DEP) API, with an MCP server exposing profile and device operations.
"""

from .auth import SessionCache, SessionManager
from .client import DEPClient
from .config import Config, get_config
from .consts import PACKAGE_VERSION
from .decoder import ExpirySignal, decode
from .exceptions import (
    APIError,
    AuthError,
    ConfigNotFoundError,
    DEPError,
    ErrorKind,
    NotFoundError,
    ProtocolError,
    ServerError,
    StoreError,
    TransportError,
    ValidationError,
)
from .operations import OPERATIONS, Operation
from .service import DEPService
from .store import FileCredentialStore, MemoryCredentialStore

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "decode",
    "Config",
    "DEPClient",
    "DEPService",
    "SessionManager",
    "SessionCache",
    "ExpirySignal",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "Operation",
    "OPERATIONS",
    "DEPError",
    "ErrorKind",
    "ConfigNotFoundError",
    "StoreError",
    "AuthError",
    "TransportError",
    "ProtocolError",
    "APIError",
    "ValidationError",
    "NotFoundError",
    "ServerError",
]
