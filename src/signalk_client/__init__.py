"""Signal K Client.

Python client for Signal K servers: endpoint discovery, the REST API and
the WebSocket delta stream.

Layers
------
1. Core types, errors and configuration (:mod:`signalk_client.core`)
2. Wire helpers and transports (:mod:`signalk_client.wire`)
3. Alarm notifications (:mod:`signalk_client.alarms`)
4. Discovery / connection orchestrator (:mod:`signalk_client.client`)
"""
from __future__ import annotations

__version__ = "2.0.0"

# ---------------------------------------------------------------------------
# Alarms
# ---------------------------------------------------------------------------
from signalk_client.alarms import Alarm, AlarmMethod, AlarmState, AlarmType

# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
from signalk_client.client import SignalKClient

# ---------------------------------------------------------------------------
# Core -- config, errors, types
# ---------------------------------------------------------------------------
from signalk_client.core.config import ClientConfig
from signalk_client.core.errors import (
    ConnectionFailed,
    EndpointUnavailable,
    InvalidArgument,
    MissingArgument,
    SignalKError,
)
from signalk_client.core.types import (
    AppDataContext,
    ConnectionState,
    Endpoint,
    HelloResponse,
    JSONPatch,
    LoginResult,
    PlaybackOptions,
    ServerIdentity,
    ServerInfo,
    Session,
    StreamState,
    Subscription,
    SubscriptionFormat,
    SubscriptionPolicy,
)

# ---------------------------------------------------------------------------
# Wire
# ---------------------------------------------------------------------------
from signalk_client.wire import (
    EventEmitter,
    InboundMessage,
    Message,
    MessageKind,
    SignalKHttp,
    SignalKStream,
    classify_message,
    context_to_path,
    dot_to_slash,
    new_signalk_uuid,
    new_uuid,
)

__all__ = [
    # Meta
    "__version__",
    # Config
    "ClientConfig",
    # Errors
    "SignalKError",
    "ConnectionFailed",
    "EndpointUnavailable",
    "MissingArgument",
    "InvalidArgument",
    # Types
    "AppDataContext",
    "ConnectionState",
    "StreamState",
    "Endpoint",
    "ServerIdentity",
    "ServerInfo",
    "HelloResponse",
    "Session",
    "Subscription",
    "SubscriptionFormat",
    "SubscriptionPolicy",
    "PlaybackOptions",
    "JSONPatch",
    "LoginResult",
    # Alarms
    "Alarm",
    "AlarmState",
    "AlarmMethod",
    "AlarmType",
    # Wire
    "dot_to_slash",
    "context_to_path",
    "new_uuid",
    "new_signalk_uuid",
    "Message",
    "MessageKind",
    "InboundMessage",
    "classify_message",
    "EventEmitter",
    "SignalKHttp",
    "SignalKStream",
    # Orchestrator
    "SignalKClient",
]
