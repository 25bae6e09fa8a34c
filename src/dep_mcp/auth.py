"""Session management with per-name token caching and reactive refresh."""

import asyncio
import functools
import logging
import os

import httpx
from authlib.integrations.httpx_client import OAuth1Auth
from authlib.oauth1.rfc5849.errors import OAuth1Error
from pydantic import ValidationError as PydanticValidationError

from .config import Config
from .consts import (
    OAUTH_REALM,
    PROTOCOL_VERSION,
    PROTOCOL_VERSION_HEADER,
    SESSION_URL_PATH,
    USER_AGENT,
)
from .decoder import decode
from .exceptions import AuthError, ConfigNotFoundError, TransportError
from .models import OAuth1Tokens, SessionResponse
from .protocols import CredentialStore

logger = logging.getLogger("dep-mcp.auth")


class SessionCache:
    """Session tokens and in-flight authentications, keyed by configuration name.

    Owned by a SessionManager and injectable so several managers (or tests) can
    share one. All mutation happens on the event loop thread; coordination
    between callers of the same name goes through the in-flight task.
    """

    def __init__(self):
        self._tokens: dict[str, str] = {}
        self.inflight: dict[str, asyncio.Task] = {}

    def get(self, name: str) -> str | None:
        return self._tokens.get(name)

    def set(self, name: str, token: str) -> None:
        self._tokens[name] = token

    def discard(self, name: str) -> None:
        self._tokens.pop(name, None)


class SessionManager:
    """Per-name DEP session manager.

    Responsibilities:
    - Return the cached session token for a name, or authenticate once for it
    - Collapse concurrent authentications for the same name into one attempt
    - Drop tokens the server rejected so the next call re-authenticates

    Expiry is never predicted; a token lives until the server rejects it.
    """

    def __init__(
        self,
        config: Config,
        store: CredentialStore,
        http_client: httpx.AsyncClient,
        cache: SessionCache | None = None,
    ):
        """Initialize SessionManager.

        Args:
            config: Config instance with base URLs.
            store: Credential store for server tokens and persisted sessions.
            http_client: HTTP client (for /session requests only).
            cache: Token cache. If None, a private one is created.
        """
        self.config = config
        self.store = store
        self.http_client = http_client
        self.cache = cache if cache is not None else SessionCache()
        # Names whose session was rejected since their last handshake
        self._invalidated: set[str] = set()

    async def ensure_session(self, name: str) -> str:
        """Get a session token for a configuration name.

        Returns:
            Session token string.

        Raises:
            ConfigNotFoundError: If the name is empty or has no credentials.
            StoreError: If the credential store fails.
            AuthError: If credentials are malformed or the handshake is refused.
            TransportError: If the handshake cannot reach the server.
            ServerError: If the server fails the handshake with a 5xx.
            ProtocolError: If the handshake response is malformed.
        """
        if not name or not name.strip():
            raise ConfigNotFoundError("Configuration name must not be empty")

        token = self.cache.get(name)
        if token is not None:
            return token

        task = self.cache.inflight.get(name)
        if task is None:
            task = asyncio.create_task(
                self._authenticate(name), name=f"dep-auth-{name}"
            )
            self.cache.inflight[name] = task
            task.add_done_callback(functools.partial(self._authentication_done, name))
        else:
            logger.debug(f"Joining in-flight authentication for {name}")

        # A cancelled caller must not cancel the shared attempt.
        return await asyncio.shield(task)

    def invalidate(self, name: str, token: str | None = None) -> None:
        """Drop the cached session for a name.

        Args:
            name: Configuration name.
            token: The token the server rejected. If given and a different
                token is already cached, that newer token is kept.
        """
        current = self.cache.get(name)
        if token is not None and current is not None and current != token:
            logger.debug(f"Session for {name} already replaced; keeping it")
            return
        self.cache.discard(name)
        self._invalidated.add(name)
        logger.info(f"Invalidated session for {name}")

    def replace(self, name: str, token: str) -> None:
        """Install a rotated session token handed back by the server."""
        if self.cache.get(name) != token:
            logger.debug(f"Server rotated session for {name}")
            self.cache.set(name, token)

    def _authentication_done(self, name: str, task: asyncio.Task) -> None:
        if self.cache.inflight.get(name) is task:
            del self.cache.inflight[name]
        if not task.cancelled():
            # Retrieve so a failure nobody awaited does not warn at shutdown.
            task.exception()

    async def _authenticate(self, name: str) -> str:
        stored = self.store.get_session(name)
        if stored and name not in self._invalidated:
            logger.debug(f"Reusing persisted session for {name}")
            self.cache.set(name, stored)
            return stored

        tokens = self._load_credentials(name)
        url = f"{self.config.base_url_for(name)}{SESSION_URL_PATH}"
        auth = OAuth1Auth(
            tokens.consumer_key,
            client_secret=tokens.consumer_secret,
            token=tokens.access_token,
            token_secret=tokens.access_secret,
            realm=OAUTH_REALM,
        )

        if url.startswith("http://"):
            # authlib refuses to sign plain http unless told otherwise
            os.environ.setdefault("AUTHLIB_INSECURE_TRANSPORT", "1")

        logger.debug(f"Authenticating {name} against {url}")
        try:
            response = await self.http_client.get(
                url,
                auth=auth,
                headers={
                    "User-Agent": USER_AGENT,
                    PROTOCOL_VERSION_HEADER: PROTOCOL_VERSION,
                },
            )
        except httpx.RequestError as e:
            raise TransportError(
                f"Session request failed: {e}",
                errors=[str(e)],
                suggestions=["Check network access to the DEP server"],
                context={"name": name, "url": url},
            ) from e
        except OAuth1Error as e:
            raise AuthError(
                f"Could not sign session request for {name}: {e}",
                errors=[str(e)],
                suggestions=["Check the base URL and server tokens for this name"],
                context={"name": name, "url": url},
            ) from e

        if 400 <= response.status_code < 500:
            raise AuthError(
                f"Server tokens rejected for {name} ({response.status_code}): "
                f"{response.text.strip()}",
                suggestions=[
                    "Download fresh server tokens from Apple Business Manager",
                    "Check that the server clock is correct",
                ],
                context={
                    "name": name,
                    "status_code": response.status_code,
                    "body": response.text.strip(),
                },
            )

        session = decode(response.status_code, response.content, SessionResponse)
        token = session.auth_session_token
        self.store.put_session(name, token)
        self.cache.set(name, token)
        self._invalidated.discard(name)
        logger.info(f"Session established for {name}")
        return token

    def _load_credentials(self, name: str) -> OAuth1Tokens:
        raw = self.store.get(name)
        if raw is None:
            raise ConfigNotFoundError(
                f"No DEP configuration named {name!r}",
                suggestions=[f"Add server tokens for {name!r} to the credential store"],
                context={"name": name},
            )
        try:
            return OAuth1Tokens.model_validate(raw)
        except PydanticValidationError as e:
            raise AuthError(
                f"Malformed server tokens for {name!r}",
                errors=[f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()],
                suggestions=["Re-download the server token file"],
                context={"name": name},
            ) from e
