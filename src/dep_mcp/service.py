"""DEP operations: profiles, account and devices."""

import logging

from .client import DEPClient
from .models import (
    AccountDetail,
    AssignProfileRequest,
    ClearProfileResponse,
    DefineProfileResponse,
    DeviceDetailsRequest,
    DeviceDetailsResponse,
    DeviceListRequest,
    DeviceListResponse,
    Profile,
    ProfileResponse,
    RemoveProfileRequest,
)
from .operations import OPERATIONS

logger = logging.getLogger("dep-mcp.service")


class DEPService:
    """One method per DEP API action.

    Every method takes the configuration name first and raises the DEPError
    subclasses documented on DEPClient.execute.
    """

    def __init__(self, client: DEPClient):
        self.client = client

    async def account_detail(self, name: str) -> AccountDetail:
        """Fetch the DEP account details for the server token."""
        return await self.client.execute_operation(name, OPERATIONS["account_detail"])

    async def define_profile(self, name: str, profile: Profile) -> DefineProfileResponse:
        """Define an enrollment profile with Apple.

        Args:
            name: Configuration name.
            profile: Profile to create; ``devices`` may pre-assign serials.

        Returns:
            The new profile UUID and any per-device results.
        """
        logger.info(f"Defining profile {profile.profile_name!r} for {name}")
        return await self.client.execute_operation(
            name, OPERATIONS["define_profile"], profile
        )

    async def get_profile(self, name: str, profile_uuid: str) -> Profile:
        """Fetch a previously defined profile by UUID."""
        return await self.client.execute_operation(
            name, OPERATIONS["get_profile"], params={"profile_uuid": profile_uuid}
        )

    async def assign_profile(
        self, name: str, profile_uuid: str, *serials: str
    ) -> ProfileResponse:
        """Assign a profile UUID to devices.

        Per-device outcomes come back in ``ProfileResponse.devices``; a device
        that fails (e.g. NOT_ACCESSIBLE) does not fail the call.
        """
        logger.info(f"Assigning profile {profile_uuid} to {len(serials)} devices")
        request = AssignProfileRequest(profile_uuid=profile_uuid, devices=list(serials))
        return await self.client.execute_operation(
            name, OPERATIONS["assign_profile"], request
        )

    async def remove_profile(
        self, name: str, serials: list[str]
    ) -> ClearProfileResponse:
        """Unassign whatever profile the devices have.

        The documented ``profile_uuid`` parameter is not sent; the server
        ignores it.
        """
        logger.info(f"Removing profile from {len(serials)} devices")
        return await self.client.execute_operation(
            name, OPERATIONS["remove_profile"], RemoveProfileRequest(devices=serials)
        )

    async def fetch_devices(
        self, name: str, cursor: str | None = None, limit: int | None = None
    ) -> DeviceListResponse:
        """Fetch one page of all devices assigned to the server."""
        return await self.client.execute_operation(
            name,
            OPERATIONS["fetch_devices"],
            DeviceListRequest(cursor=cursor, limit=limit),
        )

    async def sync_devices(
        self, name: str, cursor: str, limit: int | None = None
    ) -> DeviceListResponse:
        """Fetch device changes since the cursor from a previous fetch or sync."""
        return await self.client.execute_operation(
            name,
            OPERATIONS["sync_devices"],
            DeviceListRequest(cursor=cursor, limit=limit),
        )

    async def device_details(
        self, name: str, serials: list[str]
    ) -> DeviceDetailsResponse:
        """Fetch details for specific serial numbers."""
        return await self.client.execute_operation(
            name, OPERATIONS["device_details"], DeviceDetailsRequest(devices=serials)
        )
