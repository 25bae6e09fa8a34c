"""Credential store backends."""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .exceptions import StoreError

logger = logging.getLogger("dep-mcp.store")

TOKENS_FILENAME = "tokens.json"
SESSION_FILENAME = "session.json"


class FileCredentialStore:
    """Credentials and sessions kept as JSON files, one directory per name.

    Layout::

        <directory>/<name>/tokens.json   # server tokens as issued by Apple
        <directory>/<name>/session.json  # {"auth_session_token": "..."}
    """

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(os.path.expanduser(directory))

    def _path(self, name: str, filename: str) -> Path:
        # Names become directory names; refuse anything that could escape.
        if not name or name in (".", "..") or "/" in name or os.sep in name:
            raise StoreError(
                f"Invalid configuration name for file store: {name!r}",
                suggestions=["Use a plain name without path separators"],
                context={"name": name},
            )
        return self.directory / name / filename

    def _read(self, path: Path) -> Any | None:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except PermissionError as e:
            raise StoreError(
                f"Cannot read {path}",
                errors=[str(e)],
                suggestions=["Check file permissions"],
                context={"path": str(path)},
            ) from e
        except json.JSONDecodeError as e:
            raise StoreError(
                f"Invalid JSON in {path}",
                errors=[f"JSON error: {e.msg}"],
                suggestions=["Fix or remove the file"],
                context={"path": str(path)},
            ) from e
        except OSError as e:
            raise StoreError(
                f"Cannot read {path}", errors=[str(e)], context={"path": str(path)}
            ) from e

    def get(self, name: str) -> Mapping[str, Any] | None:
        path = self._path(name, TOKENS_FILENAME)
        logger.debug(f"Loading credentials from {path}")
        data = self._read(path)
        if data is not None and not isinstance(data, dict):
            raise StoreError(
                f"Expected a JSON object in {path}", context={"path": str(path)}
            )
        return data

    def get_session(self, name: str) -> str | None:
        data = self._read(self._path(name, SESSION_FILENAME))
        if isinstance(data, dict):
            return data.get("auth_session_token") or None
        return None

    def put_session(self, name: str, token: str) -> None:
        path = self._path(name, SESSION_FILENAME)
        tmp = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump({"auth_session_token": token}, f)
            os.replace(tmp, path)
        except OSError as e:
            raise StoreError(
                f"Cannot write session to {path}",
                errors=[str(e)],
                suggestions=["Check that the store directory is writable"],
                context={"path": str(path)},
            ) from e
        logger.debug(f"Persisted session for {name}")


class MemoryCredentialStore:
    """In-process store, for embedding and tests."""

    def __init__(
        self,
        credentials: Mapping[str, Mapping[str, Any]] | None = None,
        sessions: Mapping[str, str] | None = None,
    ):
        self.credentials = dict(credentials or {})
        self.sessions = dict(sessions or {})

    def get(self, name: str) -> Mapping[str, Any] | None:
        return self.credentials.get(name)

    def get_session(self, name: str) -> str | None:
        return self.sessions.get(name)

    def put_session(self, name: str, token: str) -> None:
        self.sessions[name] = token
