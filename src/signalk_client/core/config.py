"""Signal K client configuration.

Defines the validated configuration model consumed by
:class:`~signalk_client.client.SignalKClient`.  Every field carries a
default so that ``ClientConfig()`` targets a local server on port 3000.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_CONNECTION_TIMEOUT: int = 3000
"""Lower bound (ms) of the stream connection watchdog."""

MAX_CONNECTION_TIMEOUT: int = 60000
"""Upper bound (ms) of the stream connection watchdog."""

DEFAULT_CONNECTION_TIMEOUT: int = 20000


def clamp_connection_timeout(value: int) -> int:
    """Clamp a watchdog timeout in milliseconds into the supported range."""
    return max(MIN_CONNECTION_TIMEOUT, min(MAX_CONNECTION_TIMEOUT, value))


class ClientConfig(BaseModel):
    """Configuration for a Signal K client.

    Connection fields (``hostname``, ``port``, ``use_ssl``) are defaults
    for :meth:`SignalKClient.connect` and friends; explicit arguments to
    those methods win.
    """

    model_config = ConfigDict(strict=True)

    hostname: str = Field(
        default="localhost",
        description="Signal K server hostname or IP address.",
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port on which the server is listening.",
    )
    use_ssl: bool = Field(
        default=False,
        description="Use https / wss instead of http / ws.",
    )
    version: int = Field(
        default=1,
        ge=1,
        description="Preferred Signal K API major version.",
    )
    connection_timeout: int = Field(
        default=DEFAULT_CONNECTION_TIMEOUT,
        description=(
            "Stream connection watchdog in milliseconds, clamped to "
            "3000 <= timeout <= 60000."
        ),
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP request timeout in seconds.",
    )
    fallback: bool = Field(
        default=False,
        description=(
            "Derive endpoints from the host address when the discovery "
            "request fails instead of raising."
        ),
    )
    proxied: bool = Field(
        default=False,
        description=(
            "Always derive endpoints from the host address, ignoring the "
            "URLs reported by the server (reverse proxy deployments)."
        ),
    )
    app_id: str = Field(
        default="",
        description="Default application id for application-data calls.",
    )
    app_version: str = Field(
        default="",
        description="Default application version for application-data calls.",
    )
    client_id: str | None = Field(
        default=None,
        description="Client identifier attached to stream requests.",
    )
    source_label: str | None = Field(
        default=None,
        description="Source label attached to outbound delta updates.",
    )

    @field_validator("connection_timeout")
    @classmethod
    def _clamp_timeout(cls, value: int) -> int:
        return clamp_connection_timeout(value)
