"""Signal K stream message templates and inbound classification.

This module provides:

* **Message** -- empty envelopes for the four outbound message kinds
  (updates, subscribe, unsubscribe, request) that callers fill in.
* **Classification** -- structural predicates and :func:`classify_message`,
  which tags an inbound frame as Hello, Response, Delta or Unclassified.
  The server never sends an explicit type tag; the kind is decided purely
  by which fields are present.
* **parse_frame** -- lenient JSON decoding of a WebSocket frame.

All helpers are *synchronous* and side-effect-free.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Any

from signalk_client.wire.identifiers import new_uuid

# ---------------------------------------------------------------------------
# Outbound templates
# ---------------------------------------------------------------------------


class Message:
    """Factory for skeleton outbound messages."""

    @staticmethod
    def updates() -> dict[str, Any]:
        # updates entries: {"values": [{"path": ..., "value": ...}]}
        return {"context": None, "updates": []}

    @staticmethod
    def subscribe() -> dict[str, Any]:
        # subscribe entries: {"path", "period", "format", "policy", "minPeriod"}
        return {"context": None, "subscribe": []}

    @staticmethod
    def unsubscribe() -> dict[str, Any]:
        # unsubscribe entries: {"path": ...}
        return {"context": None, "unsubscribe": []}

    @staticmethod
    def request() -> dict[str, Any]:
        """Return a request envelope carrying a fresh ``requestId``."""
        return {"requestId": new_uuid()}


# ---------------------------------------------------------------------------
# Inbound classification
# ---------------------------------------------------------------------------


class MessageKind(enum.StrEnum):
    HELLO = "hello"
    RESPONSE = "response"
    DELTA = "delta"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class InboundMessage:
    """A decoded stream frame tagged with its structural kind."""

    kind: MessageKind
    data: Any

    def get(self, key: str, default: Any = None) -> Any:
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default


def _has(msg: Any, key: str) -> bool:
    return isinstance(msg, dict) and key in msg


def is_hello(msg: Any) -> bool:
    """Hello messages carry both ``version`` and ``self``."""
    return _has(msg, "version") and _has(msg, "self")


def is_response(msg: Any) -> bool:
    return _has(msg, "requestId")


def is_delta(msg: Any) -> bool:
    return _has(msg, "context")


def classify_message(msg: Any) -> MessageKind:
    """Return the kind of *msg*.

    The checks form a priority cascade: a frame that looks like a Hello is
    a Hello even when it also carries ``context``, and a request response
    wins over a delta.
    """
    if is_hello(msg):
        return MessageKind.HELLO
    if is_response(msg):
        return MessageKind.RESPONSE
    if is_delta(msg):
        return MessageKind.DELTA
    return MessageKind.UNCLASSIFIED


def parse_frame(frame: str | bytes) -> Any | None:
    """Decode a WebSocket text frame, returning ``None`` if it is not JSON."""
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        return json.loads(frame)
    except json.JSONDecodeError:
        return None


def serialize(data: Any) -> str:
    """Serialise an outbound message; strings are sent unchanged."""
    if isinstance(data, str):
        return data
    return json.dumps(data, separators=(",", ":"), default=str)
