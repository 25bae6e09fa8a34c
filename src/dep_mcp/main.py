"""Main MCP server implementation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError as PydanticValidationError

from .client import DEPClient
from .config import Config, setup_logging
from .exceptions import DEPError
from .models import Profile, Response
from .resources import register_resources
from .service import DEPService

logger = logging.getLogger("dep-mcp.main")

# Global state
_config: Config | None = None
_client: DEPClient | None = None
_service: DEPService | None = None

ServiceCall = Callable[[DEPService, str], Awaitable[Any]]


async def _respond(message: str, name: str | None, call: ServiceCall) -> dict:
    """Run a service call for a configuration name and wrap the outcome.

    DEP errors (including an unresolvable name) and invalid tool input become
    error responses; anything else propagates to the MCP runtime.
    """
    try:
        service = await get_service()
        result = await call(service, _config.resolve_name(name))
    except (DEPError, PydanticValidationError) as e:
        logger.warning(f"{message} failed: {e}")
        return Response.from_error(e).model_dump()
    logger.info(f"{message} completed")
    return Response.from_result(message, result).model_dump()


def create_mcp_server() -> FastMCP:
    """Create and configure the MCP server.

    Returns:
        Configured FastMCP server instance.
    """
    logger.debug("Creating MCP server")
    mcp = FastMCP("dep")

    # Register resources
    register_resources(mcp, _config)

    # ===== ACCOUNT =====

    @mcp.tool()
    async def account_detail(name: str | None = None) -> dict:
        """Get DEP account details (organization, server name and UUID).

        Args:
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "account_detail", name, lambda s, n: s.account_detail(n)
        )

    # ===== PROFILES =====

    @mcp.tool()
    async def define_profile(profile: dict, name: str | None = None) -> dict:
        """Define an enrollment profile; returns the new profile UUID

        Args:
            profile: Profile fields (profile_name and url are required)
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "define_profile",
            name,
            lambda s, n: s.define_profile(n, Profile.model_validate(profile)),
        )

    @mcp.tool()
    async def get_profile(profile_uuid: str, name: str | None = None) -> dict:
        """Fetch a defined profile by UUID

        Args:
            profile_uuid: UUID returned by define_profile
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "get_profile", name, lambda s, n: s.get_profile(n, profile_uuid)
        )

    @mcp.tool()
    async def assign_profile(
        profile_uuid: str, serials: list[str], name: str | None = None
    ) -> dict:
        """Assign a profile to devices. Check the per-device status map in the
        result: individual devices may fail (e.g. NOT_ACCESSIBLE) while the call succeeds.

        Args:
            profile_uuid: Profile to assign
            serials: Device serial numbers
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "assign_profile",
            name,
            lambda s, n: s.assign_profile(n, profile_uuid, *serials),
        )

    @mcp.tool()
    async def remove_profile(serials: list[str], name: str | None = None) -> dict:
        """Remove the assigned profile from devices

        Args:
            serials: Device serial numbers
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "remove_profile", name, lambda s, n: s.remove_profile(n, serials)
        )

    # ===== DEVICES =====

    @mcp.tool()
    async def fetch_devices(
        cursor: str | None = None, limit: int | None = None, name: str | None = None
    ) -> dict:
        """Fetch a page of devices assigned to the server. Pass the returned
        cursor back while more_to_follow is true.

        Args:
            cursor: Cursor from a previous page
            limit: Page size (1-1000)
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "fetch_devices", name, lambda s, n: s.fetch_devices(n, cursor, limit)
        )

    @mcp.tool()
    async def sync_devices(
        cursor: str, limit: int | None = None, name: str | None = None
    ) -> dict:
        """Fetch device changes since a cursor from fetch_devices or sync_devices

        Args:
            cursor: Cursor from a previous fetch or sync
            limit: Page size (1-1000)
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "sync_devices", name, lambda s, n: s.sync_devices(n, cursor, limit)
        )

    @mcp.tool()
    async def device_details(serials: list[str], name: str | None = None) -> dict:
        """Get details for specific devices by serial number

        Args:
            serials: Device serial numbers
            name: Configuration name; defaults to the configured default name
        """
        return await _respond(
            "device_details", name, lambda s, n: s.device_details(n, serials)
        )

    logger.info("MCP server created")
    return mcp


async def get_service() -> DEPService:
    """Get or create the DEPService instance.

    Returns:
        DEPService instance.
    """
    global _service

    if _service is None:
        logger.debug("Creating new DEPService")
        await _get_ready()
        _service = DEPService(_client)
        logger.info("Initialized DEPService")

    return _service


async def cleanup() -> None:
    """Clean up global resources."""
    global _client, _service

    logger.debug("Starting cleanup")

    if _client:
        try:
            await _client.__aexit__(None, None, None)
            logger.info("Client disconnected")
        finally:
            _client = None
            _service = None

    logger.debug("Cleanup completed")


def main() -> None:
    """Main entry point."""
    logger.debug("Starting main")

    try:
        mcp = create_mcp_server()
        logger.info("Starting MCP server")
        mcp.run(transport="stdio")
    except Exception as e:
        logger.error(f"Server failed: {e}")
        raise
    finally:
        logger.debug("Running final cleanup")
        asyncio.run(cleanup())


async def _get_ready() -> None:
    """Lazy and idempotent initialization of config and client dependencies.

    Ensures _config and _client globals are initialized.
    """
    global _config, _client

    if _config is None:
        logger.debug("Initializing config")
        _config = Config()
        setup_logging(_config.log_level)
        logger.info(f"Config initialized for {_config.base_url}")

    if _client is None:
        logger.debug("Initializing client")
        _client = DEPClient(_config)
        await _client.__aenter__()
        logger.info(f"DEP client ready, credential store at {_config.store_dir}")


if __name__ == "__main__":
    main()
