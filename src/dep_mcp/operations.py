"""DEP API operations as data.

Each operation pins its HTTP method and path. Deployments whose server expects
a different pairing (e.g. a newer server wanting POST for profile assignment)
override it through ``Config.operation_overrides`` rather than code changes.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace

from pydantic import BaseModel, Field

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


@dataclass(frozen=True)
class Operation:
    """One DEP API action."""

    name: str
    method: str
    path: str
    request_shape: type[BaseModel] | None
    response_shape: type[BaseModel] | None


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("account_detail", "GET", "/account", None, AccountDetail),
        Operation("define_profile", "POST", "/profile", Profile, DefineProfileResponse),
        Operation("get_profile", "GET", "/profile", None, Profile),
        # Historically a PUT and the depsim simulator still requires it, although
        # current Apple documentation lists POST.
        Operation(
            "assign_profile",
            "PUT",
            "/profile/devices",
            AssignProfileRequest,
            ProfileResponse,
        ),
        Operation(
            "remove_profile",
            "DELETE",
            "/profile/devices",
            RemoveProfileRequest,
            ClearProfileResponse,
        ),
        Operation(
            "fetch_devices",
            "POST",
            "/server/devices",
            DeviceListRequest,
            DeviceListResponse,
        ),
        Operation(
            "sync_devices", "POST", "/devices/sync", DeviceListRequest, DeviceListResponse
        ),
        Operation(
            "device_details",
            "POST",
            "/devices",
            DeviceDetailsRequest,
            DeviceDetailsResponse,
        ),
    )
}


class OperationOverride(BaseModel):
    """Replacement method and/or path for one operation."""

    method: str | None = Field(None, pattern=r"^(GET|POST|PUT|DELETE|PATCH)$")
    path: str | None = Field(None, pattern=r"^/")


def resolve_operation(
    operation: Operation, overrides: Mapping[str, OperationOverride] | None
) -> Operation:
    """Apply a per-deployment method/path override, if one is configured."""
    override = (overrides or {}).get(operation.name)
    if override is None:
        return operation
    return replace(
        operation,
        method=override.method or operation.method,
        path=override.path or operation.path,
    )
