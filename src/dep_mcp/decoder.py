"""Response decoding and error mapping."""

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .consts import AUTH_EXPIRED_MARKERS, AUTH_EXPIRED_STATUSES
from .exceptions import (
    APIError,
    AuthError,
    NotFoundError,
    ProtocolError,
    ServerError,
    ValidationError,
)


@dataclass(frozen=True)
class ExpirySignal:
    """What an "expired or invalid session" response looks like.

    Matches when the status is one of ``statuses`` and, if any ``markers`` are
    configured, at least one of them occurs in the body. The DEP service answers
    401 ``UNAUTHORIZED`` for an expired session and 403 ``FORBIDDEN`` for an
    invalid one.
    """

    statuses: tuple[int, ...] = AUTH_EXPIRED_STATUSES
    markers: tuple[str, ...] = AUTH_EXPIRED_MARKERS

    def matches(self, status: int, body: bytes) -> bool:
        if status not in self.statuses:
            return False
        if not self.markers:
            return True
        text = body.decode("utf-8", errors="replace")
        return any(marker in text for marker in self.markers)


def _text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace").strip()


def decode(
    status: int,
    body: bytes,
    shape: type[BaseModel] | None = None,
    *,
    expiry: ExpirySignal = ExpirySignal(),
) -> Any:
    """Turn a raw response into a value or raise the matching DEPError.

    Args:
        status: HTTP status code.
        body: Raw response body.
        shape: Pydantic model to validate a 2xx body against. If None, the
            parsed JSON (or None for an empty body) is returned.
        expiry: Signal identifying an auth-expired response.

    Returns:
        Decoded value. Per-item failures inside a 2xx body are left for the
        caller to inspect.

    Raises:
        ProtocolError: 2xx body not parseable as ``shape``.
        AuthError: Response matches the expiry signal.
        NotFoundError: 404.
        ValidationError: Any other 4xx.
        ServerError: 5xx.
        APIError: Any other non-2xx status.
    """
    if 200 <= status < 300:
        return _decode_success(status, body, shape)

    text = _text(body)
    if expiry.matches(status, body):
        raise AuthError(
            f"Session rejected ({status}): {text}",
            suggestions=["Check that the server tokens are current"],
            context={"status_code": status, "body": text},
        )
    if status == 404:
        raise NotFoundError(
            f"Not found ({status}): {text}", status_code=status, body=text
        )
    if 400 <= status < 500:
        raise ValidationError(
            f"Request rejected ({status}): {text}", status_code=status, body=text
        )
    if status >= 500:
        raise ServerError(
            f"DEP server error ({status}): {text}", status_code=status, body=text
        )
    raise APIError(f"Unexpected HTTP status {status}", status_code=status, body=text)


def _decode_success(status: int, body: bytes, shape: type[BaseModel] | None) -> Any:
    if not body.strip():
        if shape is None:
            return None
        raise ProtocolError(
            f"Empty response body, expected {shape.__name__}",
            context={"status_code": status},
        )

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(
            "Response body is not valid JSON",
            errors=[str(e)],
            context={"status_code": status, "body": _text(body)[:500]},
        ) from e

    if shape is None:
        return data

    try:
        return shape.model_validate(data)
    except PydanticValidationError as e:
        raise ProtocolError(
            f"Response body does not match {shape.__name__}",
            errors=[err["msg"] for err in e.errors()],
            context={"status_code": status, "body": _text(body)[:500]},
        ) from e
