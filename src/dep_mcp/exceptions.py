"""DEP MCP custom exceptions.

Exception Design Principles:
1. Every failure the client can observe surfaces as a DEPError subclass; library
   exceptions (httpx, pydantic, OSError) are wrapped with ``raise ... from e``
2. The only local recovery is a single re-authentication after an expiry signal
3. Split on domain of actionable information:
   - Recoverable by reconfiguration (ConfigNotFoundError, StoreError, AuthError)
   - Possibly transient, caller decides (TransportError, ServerError)
   - Caller must change the request (ValidationError, NotFoundError)
   - Server broke the contract (ProtocolError)
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Discriminator carried by every DEPError."""

    CONFIG = "config"
    STORE = "store"
    TRANSPORT = "transport"
    AUTHENTICATION = "authentication"
    PROTOCOL = "protocol"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SERVER = "server"
    UNKNOWN = "unknown"


class DEPError(Exception):
    """Base exception for all DEP MCP errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    All DEP MCP custom exceptions inherit from this base class.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        """Initialize DEPError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigNotFoundError(DEPError):
    """No credentials exist for the requested configuration name.

    Raised before any network I/O, including for empty names. Recoverable by
    adding the server tokens for that name to the credential store.
    """

    kind = ErrorKind.CONFIG


class StoreError(DEPError):
    """The credential store could not be read or written."""

    kind = ErrorKind.STORE


class AuthError(DEPError):
    """Credentials or session rejected.

    Covers malformed server tokens, a refused /session handshake, and a session
    that is still rejected after the one re-authentication the client performs.
    """

    kind = ErrorKind.AUTHENTICATION


class TransportError(DEPError):
    """Network-level failure: DNS, connection refused, timeout."""

    kind = ErrorKind.TRANSPORT


class ProtocolError(DEPError):
    """The server answered 2xx with a body that does not match the expected shape.

    Not retried; indicates either an API change or a misbehaving server.
    """

    kind = ErrorKind.PROTOCOL


class APIError(DEPError):
    """An HTTP response the client does not treat as success.

    Carries the status code and the raw body verbatim so callers can diagnose
    without a network capture.
    """

    def __init__(self, message: str, *, status_code: int, body: str = "", **kwargs):
        context = {"status_code": status_code, "body": body, **kwargs.pop("context", {})}
        super().__init__(message, context=context, **kwargs)
        self.status_code = status_code
        self.body = body


class ValidationError(APIError):
    """The server rejected the request (4xx other than 404)."""

    kind = ErrorKind.VALIDATION


class NotFoundError(APIError):
    """The server does not know the requested resource (404)."""

    kind = ErrorKind.NOT_FOUND


class ServerError(APIError):
    """The server failed (5xx). Never retried by the client."""

    kind = ErrorKind.SERVER
