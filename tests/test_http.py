"""Tests for the Signal K REST transport.

Covers:

1. **URL building** -- dotted paths, leading slashes, contexts, version
   override.
2. **Headers** -- ``JWT`` authorization and JSON content type.
3. **Bodies** -- ``{"value": ...}`` wrapping for v1 only.
4. **Unconfigured endpoint** -- every call returns ``None``.
5. **Alarms** -- raise / clear through ``put_with_context``.
"""
from __future__ import annotations

import json

import httpx
import pytest

from signalk_client.alarms import Alarm, AlarmState, AlarmType
from signalk_client.core.types import Session
from signalk_client.wire.http import JSON_CONTENT_TYPE, SignalKHttp, auth_headers

from conftest import FakeServer

ENDPOINT = "http://sk.local:3000/signalk/v1/api/"
API = "/signalk/v1/api/"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_http(
    server: FakeServer,
    *,
    version: int = 1,
    token: str = "",
    endpoint: str = ENDPOINT,
) -> SignalKHttp:
    session = Session(protocol_version=version, auth_token=token)
    http = SignalKHttp(session, transport=server.transport)
    http.endpoint = endpoint
    return http


def _body(request: httpx.Request) -> object:
    return json.loads(request.content)


# =========================================================================
# Headers
# =========================================================================


class TestAuthHeaders:
    """Tests for auth_headers."""

    def test_no_token(self) -> None:
        assert auth_headers("") == {}

    def test_token(self) -> None:
        assert auth_headers("abc") == {"Authorization": "JWT abc"}

    def test_json_body(self) -> None:
        assert auth_headers("", json_body=True) == {"Content-Type": JSON_CONTENT_TYPE}


# =========================================================================
# Reads
# =========================================================================


class TestGet:
    """Tests for GET requests."""

    async def test_dotted_path(self, server: FakeServer) -> None:
        server.add("GET", API + "vessels/self/navigation/speedOverGround", 3.2)
        http = _make_http(server)

        assert await http.get("vessels.self.navigation.speedOverGround") == 3.2

    async def test_leading_slash_stripped(self, server: FakeServer) -> None:
        server.add("GET", API + "vessels", {"a": 1})
        http = _make_http(server)

        assert await http.get("/vessels") == {"a": 1}

    async def test_get_has_no_content_type(self, server: FakeServer) -> None:
        server.add("GET", API + "self", "vessels.urn:x")
        http = _make_http(server, token="tok")

        await http.get_self_id()
        request = server.requests[-1]
        assert request.headers["Authorization"] == "JWT tok"
        assert "Content-Type" not in request.headers

    async def test_get_self(self, server: FakeServer) -> None:
        server.add("GET", API + "vessels/self", {"name": "Boaty"})
        assert await _make_http(server).get_self() == {"name": "Boaty"}

    async def test_get_meta(self, server: FakeServer) -> None:
        server.add(
            "GET",
            API + "vessels/self/environment/depth/belowKeel/meta",
            {"units": "m"},
        )
        http = _make_http(server)

        assert await http.get_meta("self", "environment.depth.belowKeel") == {
            "units": "m"
        }

    async def test_version_override(self, server: FakeServer) -> None:
        """``version`` rewrites the /v<N>/ segment for one call only."""
        server.add("GET", "/signalk/v2/api/resources/routes", {})
        http = _make_http(server)

        await http.get("resources.routes", version=2)
        assert server.requests[-1].url.path == "/signalk/v2/api/resources/routes"
        assert http.endpoint == ENDPOINT

    async def test_no_endpoint(self, server: FakeServer) -> None:
        http = _make_http(server, endpoint="")

        assert await http.get("vessels") is None
        assert await http.put("a.b", 1) is None
        assert await http.put_with_context("self", "a.b", 1) is None
        assert await http.post("a", {}) is None
        assert await http.delete("a") is None
        assert server.requests == []


# =========================================================================
# Writes
# =========================================================================


class TestWrites:
    """Tests for PUT / POST / DELETE."""

    async def test_put_v1_wraps_value(self, server: FakeServer) -> None:
        server.add("PUT", API + "steering/autopilot/target", {"state": "COMPLETED"})
        http = _make_http(server, token="tok")

        response = await http.put("steering.autopilot.target", 1.52)
        assert isinstance(response, httpx.Response)
        assert response.status_code == 200

        request = server.requests[-1]
        assert _body(request) == {"value": 1.52}
        assert request.headers["Content-Type"] == JSON_CONTENT_TYPE
        assert request.headers["Authorization"] == "JWT tok"

    async def test_put_v2_raw_value(self, server: FakeServer) -> None:
        server.add("PUT", "/signalk/v2/api/a/b", {})
        http = _make_http(
            server, version=2, endpoint="http://sk.local:3000/signalk/v2/api/"
        )

        await http.put("a.b", 5)
        assert _body(server.requests[-1]) == 5

    async def test_put_version_override_controls_wrapping(
        self, server: FakeServer
    ) -> None:
        server.add("PUT", "/signalk/v2/api/a/b", {})
        http = _make_http(server)

        await http.put("a.b", 5, version=2)
        assert _body(server.requests[-1]) == 5

    async def test_put_error_status_returned(self, server: FakeServer) -> None:
        server.add("PUT", API + "a", {"message": "denied"}, status=403)
        http = _make_http(server)

        response = await http.put("a", 1)
        assert response is not None
        assert response.status_code == 403

    async def test_put_with_context_self(self, server: FakeServer) -> None:
        server.add("PUT", API + "vessels/self/electrical/switches/anchor", {})
        http = _make_http(server)

        await http.put_with_context("self", "electrical.switches.anchor", 1)
        assert _body(server.requests[-1]) == {"value": 1}

    async def test_post_raw_body(self, server: FakeServer) -> None:
        server.add("POST", API + "resources/waypoints", {})
        http = _make_http(server)

        await http.post("resources.waypoints", {"name": "wp"})
        assert _body(server.requests[-1]) == {"name": "wp"}

    async def test_delete(self, server: FakeServer) -> None:
        server.add("DELETE", API + "resources/waypoints/1", {})
        http = _make_http(server)

        response = await http.delete("resources/waypoints/1")
        assert response is not None
        assert server.requests[-1].content == b""


# =========================================================================
# Alarms
# =========================================================================


class TestAlarms:
    """Tests for raise_alarm / clear_alarm."""

    async def test_raise_alarm(self, server: FakeServer) -> None:
        server.add("PUT", API + "vessels/self/notifications/depth", {})
        http = _make_http(server)
        alarm = Alarm.create("Shallow", AlarmState.WARN, visual=True)

        await http.raise_alarm("self", "depth", alarm)
        assert _body(server.requests[-1]) == {
            "value": {"message": "Shallow", "state": "warn", "method": ["visual"]}
        }

    async def test_raise_standard_alarm(self, server: FakeServer) -> None:
        server.add("PUT", API + "vessels/self/notifications/mob", {})
        http = _make_http(server)

        await http.raise_alarm("self", AlarmType.MOB, Alarm.create("MOB"))
        assert server.requests[-1].url.path == API + "vessels/self/notifications/mob"

    @pytest.mark.parametrize(("version", "expected"), [(1, {"value": None}), (2, None)])
    async def test_clear_alarm(
        self, server: FakeServer, version: int, expected: object
    ) -> None:
        path = f"/signalk/v{version}/api/vessels/self/notifications/depth"
        server.add("PUT", path, {})
        http = _make_http(
            server,
            version=version,
            endpoint=f"http://sk.local:3000/signalk/v{version}/api/",
        )

        await http.clear_alarm("self", "depth")
        assert _body(server.requests[-1]) == expected
