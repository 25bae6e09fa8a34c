"""MCP server resources describing the DEP client setup."""

import logging
from typing import Any

from .config import Config
from .operations import OPERATIONS, resolve_operation

logger = logging.getLogger("dep-mcp.resources")


def get_endpoints_resource(config: Config | None = None) -> dict[str, Any]:
    """Base URLs in use, default and per configuration name.

    Args:
        config: Config instance. If None, creates new instance.

    Returns:
        Dict with the default base URL and per-name overrides.
    """
    if config is None:
        config = Config()

    return {
        "base_url": config.base_url,
        "per_name": {
            name: config.base_url_for(name) for name in sorted(config.base_urls)
        },
    }


def get_operations_resource(config: Config | None = None) -> dict[str, dict[str, Any]]:
    """Effective method and path of every operation, after overrides.

    Args:
        config: Config instance. If None, creates new instance.
    """
    if config is None:
        config = Config()

    result = {}
    for name, operation in OPERATIONS.items():
        op = resolve_operation(operation, config.operation_overrides)
        result[name] = {
            "method": op.method,
            "path": op.path,
            "overridden": name in config.operation_overrides,
        }
    return result


def get_info_resource(config: Config | None = None) -> str:
    """Basic information about this DEP MCP server.

    Args:
        config: Config instance. If None, creates new instance.

    Returns:
        Info string.
    """
    if config is None:
        config = Config()

    return f"""DEP MCP Server

Default endpoint: {config.base_url}
Default name: {config.default_name or "(none, pass name to every tool)"}
Credential store: {config.store_dir}
Log Level: {config.log_level}

Each tool takes an optional configuration name selecting which server token
to use. Sessions are established on first use and renewed automatically when
the DEP service reports them expired.

Per-device results (e.g. NOT_ACCESSIBLE) are returned inside successful
responses; inspect the devices map after assign_profile and remove_profile."""


def register_resources(mcp, config: Config | None = None) -> None:
    """Register all resources with the MCP server.

    Args:
        mcp: FastMCP instance to register resources with.
        config: Config instance. If None, creates new instance.
    """
    logger.debug("Registering MCP resources")

    @mcp.resource("dep://endpoints")
    def endpoints_resource() -> dict[str, Any]:
        """Base URLs in use, default and per configuration name."""
        return get_endpoints_resource(config)

    @mcp.resource("dep://operations")
    def operations_resource() -> dict[str, dict[str, Any]]:
        """Effective method and path of every DEP operation."""
        return get_operations_resource(config)

    @mcp.resource("dep://info")
    def info_resource() -> str:
        """Basic information about this DEP MCP server."""
        return get_info_resource(config)

    logger.info("Registered 3 MCP resources")
