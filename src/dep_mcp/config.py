"""Configuration management."""

import logging
from functools import cache

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from .consts import AUTH_EXPIRED_MARKERS, AUTH_EXPIRED_STATUSES, DEFAULT_BASE_URL
from .decoder import ExpirySignal
from .exceptions import ConfigNotFoundError
from .operations import OPERATIONS, OperationOverride


class Config(BaseSettings):
    """Configuration shared by every DEP name served by this process."""

    model_config = ConfigDict(
        env_prefix="DEPMCP_", case_sensitive=False, extra="ignore"
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="DEP API base URL used when a name has no override",
    )
    base_urls: dict[str, str] = Field(
        default_factory=dict,
        description="Per-name base URL overrides, e.g. a depsim simulator",
    )
    store_dir: str = Field(
        default="~/.dep-mcp",
        description="Directory holding <name>/tokens.json and session files",
    )
    default_name: str | None = Field(
        default=None, description="Configuration name used when a call omits one"
    )
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )
    auth_expired_statuses: list[int] = Field(
        default_factory=lambda: list(AUTH_EXPIRED_STATUSES),
        description="HTTP statuses that may signal an expired session",
    )
    auth_expired_markers: list[str] = Field(
        default_factory=lambda: list(AUTH_EXPIRED_MARKERS),
        description="Body markers confirming an expired session; empty matches on status",
    )
    operation_overrides: dict[str, OperationOverride] = Field(
        default_factory=dict,
        description="Per-deployment method/path overrides keyed by operation name",
    )

    @field_validator("operation_overrides")
    @classmethod
    def _known_operations(cls, value: dict[str, OperationOverride]):
        unknown = sorted(set(value) - set(OPERATIONS))
        if unknown:
            raise ValueError(f"unknown operations: {', '.join(unknown)}")
        return value

    def base_url_for(self, name: str) -> str:
        """Base URL for a configuration name, without trailing slash."""
        return self.base_urls.get(name, self.base_url).rstrip("/")

    def resolve_name(self, name: str | None) -> str:
        """Pick the configuration name for a call.

        Raises:
            ConfigNotFoundError: If neither ``name`` nor ``default_name`` is set.
        """
        resolved = name or self.default_name
        if not resolved or not resolved.strip():
            raise ConfigNotFoundError(
                "No DEP configuration name given",
                suggestions=["Pass a name or set DEPMCP_DEFAULT_NAME"],
            )
        return resolved

    def expiry_signal(self) -> ExpirySignal:
        return ExpirySignal(
            statuses=tuple(self.auth_expired_statuses),
            markers=tuple(self.auth_expired_markers),
        )


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("dep-mcp")
