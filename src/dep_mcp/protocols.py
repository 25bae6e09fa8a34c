"""Protocol definitions for dependency injection and interface contracts."""

from collections.abc import Mapping
from typing import Any, Protocol


class CredentialStore(Protocol):
    """Key-value contract for per-name credentials and persisted sessions.

    Implementations must be linearizable per name and raise StoreError when
    the backend itself fails. A missing name is not an error.
    """

    def get(self, name: str) -> Mapping[str, Any] | None:
        """Return the raw server tokens for ``name``, or None if unknown."""
        ...

    def get_session(self, name: str) -> str | None:
        """Return a previously persisted session token, or None."""
        ...

    def put_session(self, name: str, token: str) -> None:
        """Persist a newly obtained session token."""
        ...


class SessionProvider(Protocol):
    """Protocol for per-name session token providers."""

    async def ensure_session(self, name: str) -> str:
        """Get a session token for ``name``, authenticating if needed.

        Raises:
            ConfigNotFoundError: If no credentials exist for the name.
            StoreError: If the credential store fails.
            AuthError: If credentials are malformed or rejected.
            TransportError: If the handshake cannot reach the server.
        """
        ...

    def invalidate(self, name: str, token: str | None = None) -> None:
        """Drop the cached token for ``name``."""
        ...

    def replace(self, name: str, token: str) -> None:
        """Install a rotated token handed back by the server."""
        ...
