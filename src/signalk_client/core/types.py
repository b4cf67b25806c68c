"""Signal K client shared domain types.

This module defines the enums and Pydantic models shared across the
client: the discovery document, the server information block, the
session shared by both transports, and the request shapes accepted by
the stream and application-data APIs.

Key design decisions:
* Wire-facing models keep the server's field names through aliases
  (``signalk-http``, ``minPeriod`` ...) and accept Python names on
  construction (``populate_by_name``).
* Enums use *string* values so they serialise cleanly to JSON.
* :class:`Session` is a single mutable object injected into both the REST
  and the stream transport, so a token or version written once is seen
  by both.
"""
from __future__ import annotations

import enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ConnectionState(enum.StrEnum):
    """Discovery / connection state of a :class:`SignalKClient`."""

    DISCONNECTED = "disconnected"
    DISCOVERING = "discovering"
    CONNECTED = "connected"


class StreamState(enum.StrEnum):
    """State of the single WebSocket owned by a :class:`SignalKStream`."""

    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"


class AppDataContext(enum.StrEnum):
    """Scope of stored application data."""

    USER = "user"
    GLOBAL = "global"


class SubscriptionFormat(enum.StrEnum):
    DELTA = "delta"
    FULL = "full"


class SubscriptionPolicy(enum.StrEnum):
    """Server-side throttling strategy for a subscribed path."""

    INSTANT = "instant"
    IDEAL = "ideal"
    FIXED = "fixed"


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class Endpoint(BaseModel):
    """Endpoint descriptor advertised for one API version."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = ""
    http_url: str = Field(default="", alias="signalk-http")
    ws_url: str = Field(default="", alias="signalk-ws")


class ServerIdentity(BaseModel):
    """Server software identity from the discovery response."""

    version: str = ""
    id: str = ""


class HelloResponse(BaseModel):
    """Body of ``GET /signalk``.

    Both fields are optional on the wire; missing values are filled in
    from the synthesized fallback endpoints by the client.
    """

    endpoints: dict[str, Endpoint] | None = None
    server: ServerIdentity | None = None


class ServerInfo(BaseModel):
    """Capability record populated by discovery.

    Replaced wholesale on each successful discovery and reset to an empty
    instance when the client disconnects.
    """

    endpoints: dict[str, Endpoint] = Field(default_factory=dict)
    info: ServerIdentity = Field(default_factory=ServerIdentity)
    api_versions: list[str] = Field(
        default_factory=list,
        description="Advertised version labels in server order, e.g. ['v1', 'v2'].",
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class Session(BaseModel):
    """Connection-wide state shared by the REST and stream transports."""

    model_config = ConfigDict(strict=True, validate_assignment=True)

    protocol_version: int = Field(
        default=1,
        ge=1,
        description="Selected API major version.",
    )
    auth_token: str = Field(
        default="",
        description="Opaque bearer token; empty when unauthenticated.",
    )
    proxied: bool = False
    fallback: bool = False
    client_id: str | None = Field(
        default=None,
        description="Attached as ``clientId`` to stream requests when set.",
    )
    source_label: str | None = Field(
        default=None,
        description="Label sent as the ``source`` of outbound delta updates.",
    )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class Subscription(BaseModel):
    """One entry of a ``subscribe`` message."""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    period: int | None = None
    format: SubscriptionFormat | None = None
    policy: SubscriptionPolicy | None = None
    min_period: int | None = Field(default=None, alias="minPeriod")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PlaybackOptions(BaseModel):
    """Options for opening a playback (history replay) stream."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: str | None = Field(
        default=None,
        alias="startTime",
        description="ISO-8601 start time; fractional seconds are dropped.",
    )
    playback_rate: float | None = Field(default=None, alias="playbackRate")
    subscribe: str | None = None


class JSONPatch(BaseModel):
    """A single RFC 6902 operation for :meth:`SignalKClient.app_data_patch`."""

    op: Literal["add", "replace", "remove", "copy", "move", "test"]
    path: str
    value: Any = None


class LoginResult(BaseModel):
    """Outcome of a login or token validation request."""

    model_config = ConfigDict(strict=True)

    ok: bool
    status: int
    token: str = ""
