"""Tests for DEPService operations against the loopback DEP double"""

import pytest
from conftest import body_of, echo

from dep_mcp.models import (
    AccountDetail,
    AssignProfileRequest,
    DeviceDetailsRequest,
    DeviceListRequest,
    Profile,
    RemoveProfileRequest,
)

PROFILE = Profile(
    profile_name="Acme staff",
    url="https://mdm.acme.test/enroll",
    is_supervised=True,
    skip_setup_items=["Siri", "Privacy"],
    department="IT",
)


class TestProfileScenarios:
    """End-to-end profile operations"""

    @pytest.mark.asyncio
    async def test_assign_profile_partial_success(self, service, fake_dep):
        """A per-device failure comes back inside a successful result"""
        fake_dep.route(
            "PUT",
            "/profile/devices",
            {
                "status_code": 200,
                "json": {
                    "profile_uuid": "P1",
                    "devices": {"S1": "SUCCESS", "S2": "NOT_ACCESSIBLE"},
                },
            },
        )

        result = await service.assign_profile("acme", "P1", "S1", "S2")

        assert result.profile_uuid == "P1"
        assert result.devices == {"S1": "SUCCESS", "S2": "NOT_ACCESSIBLE"}
        request = fake_dep.calls("/profile/devices")[0]
        assert request.method == "PUT"
        assert body_of(request) == {"profile_uuid": "P1", "devices": ["S1", "S2"]}

    @pytest.mark.asyncio
    async def test_assign_profile_after_expired_session(self, service, fake_dep, store):
        """401 expired then 200: the caller sees success after two calls"""
        store.sessions["acme"] = "stale"
        fake_dep.route(
            "PUT",
            "/profile/devices",
            {"status_code": 401, "text": "UNAUTHORIZED"},
            {"status_code": 200, "json": {"profile_uuid": "P1", "devices": {"S1": "SUCCESS"}}},
        )

        result = await service.assign_profile("acme", "P1", "S1")

        assert result.devices == {"S1": "SUCCESS"}
        assert len(fake_dep.calls("/profile/devices")) == 2
        assert store.sessions["acme"] == "session-1"

    @pytest.mark.asyncio
    async def test_define_profile(self, service, fake_dep):
        fake_dep.route(
            "POST", "/profile", {"status_code": 200, "json": {"profile_uuid": "P9", "devices": {}}}
        )

        result = await service.define_profile("acme", PROFILE)

        assert result.profile_uuid == "P9"
        sent = body_of(fake_dep.calls("/profile")[0])
        assert sent["profile_name"] == "Acme staff"
        assert sent["is_mdm_removable"] is True
        assert sent["org_magic"] == ""
        assert "allow_pairing" not in sent
        assert "profile_uuid" not in sent

    @pytest.mark.asyncio
    async def test_get_profile(self, service, fake_dep):
        fake_dep.route(
            "GET",
            "/profile",
            {
                "status_code": 200,
                "json": {**PROFILE.model_dump(exclude_none=True), "profile_uuid": "P9"},
            },
        )

        result = await service.get_profile("acme", "P9")

        assert result.profile_uuid == "P9"
        assert result.skip_setup_items == ["Siri", "Privacy"]

    @pytest.mark.asyncio
    async def test_remove_profile(self, service, fake_dep):
        fake_dep.route(
            "DELETE",
            "/profile/devices",
            {"status_code": 200, "json": {"devices": {"S1": "SUCCESS", "S3": "NOT_FOUND"}}},
        )

        result = await service.remove_profile("acme", ["S1", "S3"])

        assert result.devices["S3"] == "NOT_FOUND"
        assert body_of(fake_dep.calls("/profile/devices")[0]) == {"devices": ["S1", "S3"]}


class TestAccountAndDevices:
    """Account and device listing operations"""

    @pytest.mark.asyncio
    async def test_account_detail(self, service, fake_dep):
        fake_dep.route(
            "GET",
            "/account",
            {
                "status_code": 200,
                "json": {
                    "server_name": "acme-mdm",
                    "server_uuid": "U1",
                    "org_name": "Acme",
                    "org_type": "edu",
                    "unknown_new_key": "kept",
                },
            },
        )

        result = await service.account_detail("acme")

        assert isinstance(result, AccountDetail)
        assert result.org_name == "Acme"
        assert result.model_extra == {"unknown_new_key": "kept"}
        assert fake_dep.calls("/account")[0].content == b""

    @pytest.mark.asyncio
    async def test_fetch_then_sync_devices(self, service, fake_dep):
        fake_dep.route(
            "POST",
            "/server/devices",
            {
                "status_code": 200,
                "json": {
                    "devices": [{"serial_number": "S1", "profile_status": "empty"}],
                    "cursor": "C1",
                    "more_to_follow": False,
                },
            },
        )
        fake_dep.route(
            "POST",
            "/devices/sync",
            {
                "status_code": 200,
                "json": {
                    "devices": [{"serial_number": "S2", "op_type": "added"}],
                    "cursor": "C2",
                },
            },
        )

        page = await service.fetch_devices("acme", limit=100)
        changes = await service.sync_devices("acme", page.cursor)

        assert [d.serial_number for d in page.devices] == ["S1"]
        assert body_of(fake_dep.calls("/server/devices")[0]) == {"limit": 100}
        assert body_of(fake_dep.calls("/devices/sync")[0]) == {"cursor": "C1"}
        assert changes.devices[0].op_type == "added"
        assert changes.cursor == "C2"

    @pytest.mark.asyncio
    async def test_device_details(self, service, fake_dep):
        fake_dep.route(
            "POST",
            "/devices",
            {
                "status_code": 200,
                "json": {
                    "devices": {
                        "S1": {"serial_number": "S1", "response_status": "SUCCESS"},
                        "S9": {"serial_number": "S9", "response_status": "NOT_FOUND"},
                    }
                },
            },
        )

        result = await service.device_details("acme", ["S1", "S9"])

        assert result.devices["S9"].response_status == "NOT_FOUND"


class TestRoundTrip:
    """Request shapes survive encode, loopback and decode unchanged"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "value",
        [
            PROFILE,
            AssignProfileRequest(profile_uuid="P1", devices=["S1", "S2"]),
            RemoveProfileRequest(devices=["S1"]),
            DeviceListRequest(cursor="C1", limit=5),
            DeviceDetailsRequest(devices=["S1", "S2", "S3"]),
        ],
        ids=lambda v: type(v).__name__,
    )
    async def test_echo(self, client, fake_dep, value):
        fake_dep.route("POST", "/echo", echo)

        result = await client.execute("acme", "POST", "/echo", value, shape=type(value))

        assert result == value
