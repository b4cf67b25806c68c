"""Signal K wire subpackage -- paths, message templates and transports.

This subpackage provides:

* **Paths** -- dot / slash conversion and context helpers
  (:mod:`~signalk_client.wire.paths`).
* **Identifiers** -- v4 and Signal K UUIDs
  (:mod:`~signalk_client.wire.identifiers`).
* **Messages** -- outbound envelopes and inbound classification
  (:mod:`~signalk_client.wire.messages`).
* **Events** -- the broadcast event channel
  (:mod:`~signalk_client.wire.events`).
* **HTTP transport** -- the REST API client (:mod:`~signalk_client.wire.http`).
* **Stream transport** -- the WebSocket delta stream
  (:mod:`~signalk_client.wire.stream`).
"""
from __future__ import annotations

# -- Events -----------------------------------------------------------------
from signalk_client.wire.events import EventEmitter

# -- HTTP transport ---------------------------------------------------------
from signalk_client.wire.http import JSON_CONTENT_TYPE, SignalKHttp, auth_headers

# -- Identifiers ------------------------------------------------------------
from signalk_client.wire.identifiers import (
    SIGNALK_UUID_PREFIX,
    new_signalk_uuid,
    new_uuid,
)

# -- Messages ---------------------------------------------------------------
from signalk_client.wire.messages import (
    InboundMessage,
    Message,
    MessageKind,
    classify_message,
    is_delta,
    is_hello,
    is_response,
    parse_frame,
    serialize,
)

# -- Paths ------------------------------------------------------------------
from signalk_client.wire.paths import (
    append_query,
    context_to_path,
    dot_to_slash,
    normalize_context,
    notification_path,
    replace_segment,
    strip_leading_slash,
)

# -- Stream transport -------------------------------------------------------
from signalk_client.wire.stream import Connector, SignalKStream

__all__ = [
    # Paths
    "dot_to_slash",
    "context_to_path",
    "normalize_context",
    "notification_path",
    "strip_leading_slash",
    "append_query",
    "replace_segment",
    # Identifiers
    "SIGNALK_UUID_PREFIX",
    "new_uuid",
    "new_signalk_uuid",
    # Messages
    "Message",
    "MessageKind",
    "InboundMessage",
    "classify_message",
    "is_hello",
    "is_response",
    "is_delta",
    "parse_frame",
    "serialize",
    # Events
    "EventEmitter",
    # HTTP
    "JSON_CONTENT_TYPE",
    "SignalKHttp",
    "auth_headers",
    # Stream
    "Connector",
    "SignalKStream",
]
