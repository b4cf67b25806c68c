"""Signal K client error hierarchy.

Hierarchy
---------
::

    SignalKError
    +-- ConnectionFailed      (discovery / connect failed)
    +-- EndpointUnavailable   (no resolvable HTTP or stream endpoint)
    +-- MissingArgument       (required argument absent, raised before I/O)
    +-- InvalidArgument       (argument present but unusable)

Only call-site problems are raised.  Socket failures, watchdog expiry and
malformed stream frames are reported through the stream's ``error`` /
``close`` events instead, and REST calls against an unconfigured endpoint
return ``None``.

Usage
-----
::

    try:
        await client.connect("demo.signalk.org", 443, True)
    except ConnectionFailed as exc:
        print(exc.details["url"])
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class SignalKError(Exception):
    """Base exception for all Signal K client errors.

    Attributes
    ----------
    code : str
        Short machine-readable error code, e.g. ``"connection_failed"``.
    message : str
        Human-readable description (MUST NOT contain auth tokens).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "signalk_error"
    message: str = "Unknown Signal K client error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a plain mapping (for logs and diagnostics)."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Concrete errors
# ===================================================================


class ConnectionFailed(SignalKError):
    """Endpoint discovery against the server failed."""

    code = "connection_failed"
    message = "Unable to contact Signal K server"
    resolution = (
        "Check hostname, port and SSL settings, or enable fallback mode "
        "to use endpoints derived from the host address."
    )


class EndpointUnavailable(SignalKError):
    """No HTTP or stream endpoint could be resolved for the request."""

    code = "endpoint_unavailable"
    message = "Server has no advertised endpoint for this request"
    resolution = "Use connect() to establish a connection first."


class MissingArgument(SignalKError):
    """A required argument was not supplied."""

    code = "missing_argument"
    message = "Required argument not supplied"


class InvalidArgument(SignalKError):
    """An argument was supplied but cannot be used."""

    code = "invalid_argument"
    message = "Invalid argument"
