"""DEP client: authenticated low-level API calls."""

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from .auth import SessionCache, SessionManager
from .config import Config, get_config
from .consts import (
    JSON_CONTENT_TYPE,
    PROTOCOL_VERSION,
    PROTOCOL_VERSION_HEADER,
    SESSION_HEADER,
    USER_AGENT,
)
from .decoder import decode
from .exceptions import AuthError, TransportError
from .operations import Operation, resolve_operation
from .protocols import CredentialStore, SessionProvider
from .store import FileCredentialStore

logger = logging.getLogger("dep-mcp.client")


class DEPClient:
    """DEP API client with per-name session handling.

    Responsibilities:
    - Attach the session for the requested configuration name
    - Re-authenticate once when the server signals an expired session
    - Decode responses into typed values or raise DEPError subclasses
    """

    def __init__(
        self,
        config: Config | None = None,
        store: CredentialStore | None = None,
        session_provider: SessionProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        cache: SessionCache | None = None,
    ):
        """Initialize DEPClient.

        Args:
            config: Config instance. If None, uses get_config().
            store: Credential store. If None, a FileCredentialStore on
                config.store_dir.
            session_provider: Session provider. If None, creates SessionManager.
            http_client: HTTP client. If None, creates (and later closes) one.
            cache: Token cache handed to the default SessionManager.
        """
        self.config = config or get_config()
        self.store = store or FileCredentialStore(self.config.store_dir)

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
        )

        self.session_provider = session_provider or SessionManager(
            self.config, self.store, self.http_client, cache
        )
        self.expiry = self.config.expiry_signal()

        logger.info(f"DEP client created for {self.config.base_url}")

    async def __aenter__(self) -> "DEPClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def execute_operation(
        self,
        name: str,
        operation: Operation,
        body: BaseModel | Mapping[str, Any] | None = None,
        *,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Run a logical operation, honouring per-deployment overrides.

        Args:
            name: Configuration name.
            operation: Operation from the OPERATIONS table.
            body: Request body, or None for operations without one.
            params: Query string parameters.

        Returns:
            Instance of the operation's response shape.
        """
        op = resolve_operation(operation, self.config.operation_overrides)
        if isinstance(body, Mapping) and op.request_shape is not None:
            # raises pydantic.ValidationError before anything is sent
            body = op.request_shape.model_validate(body)
        return await self.execute(
            name, op.method, op.path, body, params=params, shape=op.response_shape
        )

    async def execute(
        self,
        name: str,
        method: str,
        path: str,
        body: BaseModel | Mapping[str, Any] | None = None,
        *,
        params: Mapping[str, str] | None = None,
        shape: type[BaseModel] | None = None,
    ) -> Any:
        """Send an authenticated request for a configuration name.

        The method is sent exactly as given. On an expiry signal the session
        is invalidated and the request is sent once more; a second expiry
        signal raises AuthError.

        Args:
            name: Configuration name.
            method: HTTP method.
            path: Path relative to the name's base URL.
            body: Pydantic model, mapping, or None for no body.
            params: Query string parameters.
            shape: Model to decode a 2xx body into.

        Returns:
            Decoded response value.

        Raises:
            ConfigNotFoundError, StoreError, AuthError: From session handling.
            TransportError: For network errors, timeouts, DNS failures.
            ProtocolError: For malformed 2xx bodies.
            ValidationError, NotFoundError, ServerError: For HTTP 4xx/5xx.
        """
        content = _encode_body(body)

        for attempt in (1, 2):
            token = await self.session_provider.ensure_session(name)
            response = await self._send(name, method, path, content, params, token)

            if not self.expiry.matches(response.status_code, response.content):
                break
            if attempt == 2:
                raise AuthError(
                    f"Session rejected again after re-authentication "
                    f"({response.status_code}): {response.text.strip()}",
                    suggestions=["Check that the server tokens are still valid"],
                    context={
                        "name": name,
                        "status_code": response.status_code,
                        "body": response.text.strip(),
                        "method": method,
                        "path": path,
                    },
                )
            logger.info(f"Session for {name} expired; re-authenticating")
            self.session_provider.invalidate(name, token)

        rotated = response.headers.get(SESSION_HEADER)
        if rotated:
            self.session_provider.replace(name, rotated)

        return decode(response.status_code, response.content, shape, expiry=self.expiry)

    async def _send(
        self,
        name: str,
        method: str,
        path: str,
        content: bytes | None,
        params: Mapping[str, str] | None,
        token: str,
    ) -> httpx.Response:
        url = f"{self.config.base_url_for(name)}{path}"
        headers = {
            "User-Agent": USER_AGENT,
            SESSION_HEADER: token,
            PROTOCOL_VERSION_HEADER: PROTOCOL_VERSION,
        }
        if content is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE

        logger.debug(f"{method} {url}")
        try:
            response = await self.http_client.request(
                method, url, content=content, params=params, headers=headers
            )
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {path} failed: {e}",
                errors=[str(e)],
                suggestions=[
                    "Check your internet connection",
                    "Verify the DEP base URL is correct",
                ],
                context={"name": name, "method": method, "url": url},
            ) from e
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response


def _encode_body(body: BaseModel | Mapping[str, Any] | None) -> bytes | None:
    if body is None:
        return None
    if isinstance(body, BaseModel):
        return body.model_dump_json(exclude_none=True).encode()
    return json.dumps(dict(body)).encode()
