"""Response model for MCP tools and DEP wire shapes."""

from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import DEPError

# =============================================================================
# UNIFIED RESPONSE MODEL
# =============================================================================
# Single response type for all MCP tools


class Response(BaseModel):
    """Unified response type for all MCP tools."""

    status: Literal["success", "error"] = Field(
        ..., description="Response status indicating outcome"
    )
    message: str = Field(..., description="Human-readable summary of the response")
    data: Any | None = Field(
        None,
        description="Response payload - can be dict, pydantic model, or any serializable type",
    )
    errors: list[str] = Field(
        default_factory=list, description="List of error messages"
    )
    suggestions: list[str] = Field(
        default_factory=list, description="Actionable suggestions for the user"
    )
    metadata: dict[str, Any] | None = Field(
        None, description="Additional context and domain-specific information"
    )

    @classmethod
    def from_result(cls, message: str, result: Any) -> "Response":
        """Create a success Response, dumping pydantic payloads to JSON types."""
        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json", exclude_none=True)
        return cls(status="success", message=message, data=result)

    @classmethod
    def from_error(cls, error: Exception) -> "Response":
        """Create Response from any Exception, with potentially helpful info for recovery.

        Args:
            error: Any Exception instance

        Returns:
            Response object with error details
        """
        if isinstance(error, DEPError):
            # Use rich context from DEPError
            return cls(
                status="error",
                message=error.message,
                errors=error.errors,
                suggestions=error.suggestions,
                metadata={
                    **error.context,
                    "kind": str(error.kind),
                    "exception_type": type(error).__name__,
                },
            )
        elif isinstance(error, httpx.RequestError):
            # Network errors that escaped the client (e.g. while closing)
            return cls(
                status="error",
                message=f"Network error: {str(error)}",
                errors=[str(error)],
                suggestions=[
                    "Check your internet connection",
                    "Verify the DEP base URL is correct",
                ],
                metadata={"exception_type": type(error).__name__},
            )
        else:
            # Generic exception handling
            return cls(
                status="error",
                message=f"Unexpected error: {str(error)}",
                errors=[str(error)],
                suggestions=["Check server logs for detailed information"],
                metadata={"exception_type": type(error).__name__},
            )


# =============================================================================
# CREDENTIALS
# =============================================================================


class OAuth1Tokens(BaseModel):
    """Server tokens downloaded from Apple Business/School Manager.

    Field names match the JSON token file Apple issues.
    """

    consumer_key: str = Field(..., min_length=1)
    consumer_secret: str = Field(..., min_length=1)
    access_token: str = Field(..., min_length=1)
    access_secret: str = Field(..., min_length=1)
    access_token_expiry: str | None = Field(
        None, description="Informational only; session expiry is detected reactively"
    )


class SessionResponse(BaseModel):
    """Body of a successful /session handshake."""

    auth_session_token: str = Field(..., min_length=1)


# =============================================================================
# DEP API SHAPES
# =============================================================================
# Optional keys default to None and are dropped on the wire (exclude_none),
# matching the omitempty behaviour the service expects.

_WIRE = ConfigDict(extra="allow")


class AccountDetail(BaseModel):
    """Apple DEP "AccountDetail" structure (GET /account)."""

    model_config = _WIRE

    server_name: str
    server_uuid: str
    admin_id: str | None = None
    facilitator_id: str | None = None
    org_name: str
    org_email: str | None = None
    org_phone: str | None = None
    org_address: str | None = None
    urls: list[dict[str, Any]] | None = None
    org_id: str | None = None
    org_id_hash: str | None = None
    org_type: str | None = None
    org_version: str | None = None


class Profile(BaseModel):
    """Apple DEP "Profile" structure."""

    model_config = _WIRE

    profile_name: str
    url: str
    allow_pairing: bool | None = None
    is_supervised: bool | None = None
    is_multi_user: bool | None = None
    is_mandatory: bool | None = None
    await_device_configured: bool | None = None
    is_mdm_removable: bool = True
    support_phone_number: str | None = None
    auto_advance_setup: bool | None = None
    support_email_address: str | None = None
    org_magic: str = ""
    anchor_certs: list[str] | None = None
    supervising_host_certs: list[str] | None = None
    department: str | None = None
    devices: list[str] | None = None
    language: str | None = None
    region: str | None = None
    configuration_web_url: str | None = None
    skip_setup_items: list[str] | None = None
    # undocumented; only present when a profile is fetched back from Apple
    profile_uuid: str | None = None


class DefineProfileResponse(BaseModel):
    """Apple DEP "DefineProfileResponse" structure."""

    profile_uuid: str
    devices: dict[str, str] | list[str] | None = None


class AssignProfileRequest(BaseModel):
    profile_uuid: str
    devices: list[str]


class ProfileResponse(BaseModel):
    """Apple DEP "AssignProfileResponse" structure.

    ``devices`` maps each serial number to a per-device status such as
    ``SUCCESS`` or ``NOT_ACCESSIBLE``; individual failures are not call failures.
    """

    profile_uuid: str
    devices: dict[str, str] = Field(default_factory=dict)


class RemoveProfileRequest(BaseModel):
    devices: list[str]


class ClearProfileResponse(BaseModel):
    """Apple DEP "ClearProfileResponse" structure."""

    devices: dict[str, str] = Field(default_factory=dict)


class Device(BaseModel):
    """A device record as returned by the fetch, sync and details endpoints."""

    model_config = _WIRE

    serial_number: str
    model: str | None = None
    description: str | None = None
    color: str | None = None
    asset_tag: str | None = None
    profile_status: str | None = None
    profile_uuid: str | None = None
    profile_assign_time: str | None = None
    profile_push_time: str | None = None
    device_assigned_date: str | None = None
    device_assigned_by: str | None = None
    os: str | None = None
    device_family: str | None = None
    # sync only: "added", "modified" or "deleted"
    op_type: str | None = None
    op_date: str | None = None
    # details only: "SUCCESS" or "NOT_FOUND"
    response_status: str | None = None


class DeviceListRequest(BaseModel):
    cursor: str | None = None
    limit: int | None = Field(None, ge=1, le=1000)


class DeviceListResponse(BaseModel):
    """Page of devices; keep passing ``cursor`` back while ``more_to_follow``."""

    devices: list[Device] = Field(default_factory=list)
    cursor: str | None = None
    fetched_until: str | None = None
    more_to_follow: bool = False


class DeviceDetailsRequest(BaseModel):
    devices: list[str]


class DeviceDetailsResponse(BaseModel):
    devices: dict[str, Device] = Field(default_factory=dict)
