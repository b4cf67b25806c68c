"""Tests for the public re-exports and the error hierarchy."""
from __future__ import annotations

import pytest

import signalk_client
import signalk_client.wire
from signalk_client.core.errors import (
    ConnectionFailed,
    EndpointUnavailable,
    InvalidArgument,
    MissingArgument,
    SignalKError,
)


class TestExports:
    """Every name in ``__all__`` resolves."""

    @pytest.mark.parametrize("name", signalk_client.__all__)
    def test_package(self, name: str) -> None:
        assert hasattr(signalk_client, name)

    @pytest.mark.parametrize("name", signalk_client.wire.__all__)
    def test_wire(self, name: str) -> None:
        assert hasattr(signalk_client.wire, name)

    def test_version(self) -> None:
        assert signalk_client.__version__ == "2.0.0"


class TestErrors:
    """Error codes and serialisation."""

    @pytest.mark.parametrize(
        ("cls", "code"),
        [
            (ConnectionFailed, "connection_failed"),
            (EndpointUnavailable, "endpoint_unavailable"),
            (MissingArgument, "missing_argument"),
            (InvalidArgument, "invalid_argument"),
        ],
    )
    def test_codes(self, cls: type[SignalKError], code: str) -> None:
        err = cls()
        assert err.code == code
        assert isinstance(err, SignalKError)
        assert str(err) == cls.message

    def test_to_dict(self) -> None:
        err = MissingArgument("No time value supplied!", details={"argument": "time"})
        assert err.to_dict() == {
            "error": {
                "code": "missing_argument",
                "message": "No time value supplied!",
                "detail": {"argument": "time"},
            }
        }

    def test_resolution_included(self) -> None:
        payload = ConnectionFailed().to_dict()["error"]
        assert payload["resolution"].startswith("Check hostname")

    def test_repr(self) -> None:
        assert repr(InvalidArgument("bad")) == (
            "InvalidArgument(code='invalid_argument', message='bad')"
        )
