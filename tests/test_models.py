"""Tests for the Response model and DEP wire shapes"""

import httpx
import pytest
from pydantic import ValidationError

from dep_mcp.exceptions import ConfigNotFoundError, NotFoundError
from dep_mcp.models import (
    DefineProfileResponse,
    OAuth1Tokens,
    Profile,
    ProfileResponse,
    Response,
)


class TestResponse:
    """Test the Response model"""

    def test_from_result_dumps_models(self):
        result = ProfileResponse(profile_uuid="P1", devices={"S1": "SUCCESS"})
        response = Response.from_result("assign_profile", result)

        assert response.status == "success"
        assert response.data == {"profile_uuid": "P1", "devices": {"S1": "SUCCESS"}}

    def test_from_api_error(self):
        """API errors keep kind, status and body in metadata"""
        error = NotFoundError("Not found (404): NOT_FOUND", status_code=404, body="NOT_FOUND")
        response = Response.from_error(error)

        assert response.status == "error"
        assert response.message == "Not found (404): NOT_FOUND"
        assert response.metadata["kind"] == "not_found"
        assert response.metadata["status_code"] == 404
        assert response.metadata["body"] == "NOT_FOUND"
        assert response.metadata["exception_type"] == "NotFoundError"

    def test_from_dep_error_suggestions(self):
        error = ConfigNotFoundError("No name", suggestions=["Pass a name"])
        response = Response.from_error(error)

        assert response.suggestions == ["Pass a name"]
        assert response.metadata["kind"] == "config"

    def test_from_network_error(self):
        response = Response.from_error(httpx.ConnectError("Connection failed"))
        assert "Network error" in response.message
        assert "Check your internet connection" in response.suggestions

    def test_from_generic_error(self):
        response = Response.from_error(RuntimeError("boom"))
        assert response.message == "Unexpected error: boom"
        assert response.metadata == {"exception_type": "RuntimeError"}


class TestWireShapes:
    """Test DEP model serialization details"""

    def test_profile_omits_unset_optionals(self):
        """Unset optional keys are dropped, always-sent keys stay"""
        wire = Profile(profile_name="p", url="https://u").model_dump(exclude_none=True)

        assert wire == {
            "profile_name": "p",
            "url": "https://u",
            "is_mdm_removable": True,
            "org_magic": "",
        }

    def test_profile_requires_name_and_url(self):
        with pytest.raises(ValidationError):
            Profile(profile_name="p")

    def test_define_profile_devices_forms(self):
        """Servers answer with a device list or a status map"""
        as_list = DefineProfileResponse.model_validate({"profile_uuid": "P", "devices": ["S1"]})
        as_map = DefineProfileResponse.model_validate(
            {"profile_uuid": "P", "devices": {"S1": "SUCCESS"}}
        )
        assert as_list.devices == ["S1"]
        assert as_map.devices == {"S1": "SUCCESS"}

    def test_tokens_reject_blank_fields(self):
        with pytest.raises(ValidationError):
            OAuth1Tokens(
                consumer_key="", consumer_secret="s", access_token="t", access_secret="a"
            )
