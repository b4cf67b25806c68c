"""WebSocket transport for the Signal K delta stream.

:class:`SignalKStream` owns at most one WebSocket at a time and moves it
through ``CLOSED -> CONNECTING -> OPEN -> CLOSED`` (or straight from
``CONNECTING`` back to ``CLOSED`` on failure or watchdog expiry).

Lifecycle
---------
* :meth:`SignalKStream.open` silently tears down any previous socket,
  schedules the connect on the running event loop and arms a connection
  watchdog.  Events from a superseded socket are never emitted.
* The watchdog (``connection_timeout`` ms, clamped to 3000..60000) closes a
  socket that has neither opened nor failed in time and logs a warning.
  It is cancelled as soon as the socket opens or fails on its own.
* Transport events are broadcast on :attr:`SignalKStream.events` as
  ``connect``, ``close``, ``error`` and ``message``.

Inbound frames
--------------
Frames are decoded as JSON (undecodable frames are dropped without an
event) and classified structurally:

1. **Hello** -- records ``self_id`` and whether the server is replaying
   history (``startTime`` present).
2. **Response** -- captures ``login.token`` into the shared session.
3. **Delta** -- suppressed when a vessel filter is set and the context
   differs from it.
4. Anything else is emitted unchanged.

Outbound helpers (``send``, ``send_request``, ``subscribe`` ...) are
synchronous: they schedule the write and return immediately.  Write
failures are reported as ``error`` events.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from signalk_client.core import config
from signalk_client.core.types import (
    Session,
    StreamState,
    Subscription,
    SubscriptionFormat,
    SubscriptionPolicy,
)
from signalk_client.wire.events import EventEmitter
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
from signalk_client.wire.paths import append_query, normalize_context, notification_path

if TYPE_CHECKING:
    from signalk_client.alarms import Alarm, AlarmType

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]
"""Coroutine factory returning an open WebSocket connection for a URL."""

_FORMATS: frozenset[str] = frozenset(f.value for f in SubscriptionFormat)
_POLICIES: frozenset[str] = frozenset(p.value for p in SubscriptionPolicy)


def _default_connector(url: str) -> Awaitable[Any]:
    # The watchdog is the only connect timeout.
    return websockets.connect(url, open_timeout=None)


def _subscription_entry(
    path: str,
    *,
    period: int | None,
    min_period: int | None,
    format: str | None,
    policy: str | None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {"path": path}
    if period:
        entry["period"] = period
    if min_period:
        entry["minPeriod"] = min_period
    if format is not None and str(format) in _FORMATS:
        entry["format"] = str(format)
    if policy is not None and str(policy) in _POLICIES:
        entry["policy"] = str(policy)
    return entry


def _wire_entries(entries: Iterable[Subscription | Mapping[str, Any]]) -> list[Any]:
    return [e.to_wire() if isinstance(e, Subscription) else dict(e) for e in entries]


class SignalKStream:
    """Signal K delta stream over a single WebSocket.

    Parameters
    ----------
    session:
        Shared session providing the auth token and client id.  A private
        session is created when omitted.
    connection_timeout:
        Watchdog in milliseconds; clamped to 3000..60000.
    connector:
        Coroutine factory used to open the socket.  Defaults to
        :func:`websockets.connect`.
    """

    def __init__(
        self,
        session: Session | None = None,
        *,
        connection_timeout: int = config.DEFAULT_CONNECTION_TIMEOUT,
        connector: Connector | None = None,
    ) -> None:
        self.session = session if session is not None else Session()
        self.endpoint: str = ""
        self.self_id: str = ""
        self.events = EventEmitter()

        self._connector: Connector = connector or _default_connector
        self._timeout = config.clamp_connection_timeout(connection_timeout)
        self._filter = ""
        self._playback_mode = False

        self._state = StreamState.CLOSED
        self._ws: Any = None
        self._task: asyncio.Task[None] | None = None
        self._watchdog: asyncio.TimerHandle | None = None
        self._generation = 0
        self._pending: set[asyncio.Task[Any]] = set()

    # -- attributes ----------------------------------------------------------

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is StreamState.OPEN

    @property
    def connection_timeout(self) -> int:
        """Watchdog timeout in milliseconds."""
        return self._timeout

    @connection_timeout.setter
    def connection_timeout(self, value: int) -> None:
        self._timeout = config.clamp_connection_timeout(value)

    @property
    def filter(self) -> str:
        """Vessel id whose deltas are delivered; empty delivers everything."""
        return self._filter

    @filter.setter
    def filter(self, value: str | None) -> None:
        if value and "self" in value:
            self._filter = self.self_id or ""
        else:
            self._filter = value or ""

    @property
    def playback_mode(self) -> bool:
        return self._playback_mode

    @property
    def version(self) -> int:
        return self.session.protocol_version

    @property
    def auth_token(self) -> str:
        return self.session.auth_token

    @auth_token.setter
    def auth_token(self, value: str) -> None:
        self.session.auth_token = value or ""

    @property
    def source(self) -> dict[str, str] | None:
        label = self.session.source_label
        return {"label": label} if label else None

    @source.setter
    def source(self, label: str | None) -> None:
        self.session.source_label = label

    # -- connection ----------------------------------------------------------

    def open(
        self,
        url: str | None = None,
        subscribe: str | None = None,
        token: str | None = None,
    ) -> None:
        """Open a WebSocket at *url* (default: :attr:`endpoint`).

        Must be called from a running event loop.  ``subscribe`` and the
        session token (or *token* when the session has none) are added as
        query parameters.
        """
        url = url or self.endpoint
        if not url:
            return
        logger.debug("open stream %s", url)
        if subscribe:
            url = append_query(url, "subscribe", subscribe)
        bearer = self.session.auth_token or token
        if bearer:
            url = append_query(url, "token", bearer)

        self._teardown()
        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self._state = StreamState.CONNECTING
        self._task = loop.create_task(self._run(url, generation))
        self._watchdog = loop.call_later(
            self._timeout / 1000, self._on_watchdog, generation
        )

    def close(self) -> None:
        """Close the socket, if any, and emit ``close``."""
        was_active = self._state is not StreamState.CLOSED
        self._teardown()
        if was_active:
            self.events.emit("close", None)

    def _teardown(self) -> None:
        self._generation += 1
        self._cancel_watchdog()
        task, self._task = self._task, None
        self._ws = None
        self._state = StreamState.CLOSED
        if task is not None and not task.done():
            task.cancel()

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _mark_closed(self) -> None:
        self._cancel_watchdog()
        self._task = None
        self._ws = None
        self._state = StreamState.CLOSED

    def _on_watchdog(self, generation: int) -> None:
        self._watchdog = None
        if generation != self._generation or self._state is not StreamState.CONNECTING:
            return
        logger.warning(
            "Connection watchdog expired (%s sec): %s... aborting connection...",
            self._timeout / 1000,
            self._state,
        )
        self.close()

    async def _run(self, url: str, generation: int) -> None:
        try:
            ws = await self._connector(url)
        except Exception as exc:  # noqa: BLE001
            if generation == self._generation:
                self._mark_closed()
                self.events.emit("error", exc)
                self.events.emit("close", exc)
            return

        if generation != self._generation:
            await ws.close()
            return

        self._ws = ws
        self._cancel_watchdog()
        self._state = StreamState.OPEN
        self.events.emit("connect", ws)

        reason: ConnectionClosed | None = None
        try:
            async for frame in ws:
                if generation != self._generation:
                    break
                self._on_frame(frame)
        except ConnectionClosed as exc:
            reason = exc
        finally:
            if generation != self._generation:
                await ws.close()

        if generation == self._generation:
            self._mark_closed()
            if isinstance(reason, ConnectionClosedError):
                self.events.emit("error", reason)
            self.events.emit("close", reason)

    # -- inbound -------------------------------------------------------------

    def _on_frame(self, frame: str | bytes) -> None:
        data = parse_frame(frame)
        if data is None:
            return
        kind = classify_message(data)
        if kind is MessageKind.HELLO:
            self.self_id = data["self"]
            self._playback_mode = "startTime" in data
        elif kind is MessageKind.RESPONSE:
            login = data.get("login")
            if isinstance(login, dict) and isinstance(login.get("token"), str):
                self.session.auth_token = login["token"]
        elif kind is MessageKind.DELTA and self._filter:
            if data["context"] != self._filter:
                return
        self.events.emit("message", InboundMessage(kind, data))

    # -- outbound ------------------------------------------------------------

    def send(self, data: Any) -> None:
        """Send *data* (serialised to JSON unless already a string)."""
        ws = self._ws
        if ws is None or self._state is not StreamState.OPEN:
            return
        task = asyncio.get_running_loop().create_task(ws.send(serialize(data)))
        self._pending.add(task)
        task.add_done_callback(self._on_send_done)

    def _on_send_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.events.emit("error", exc)

    def send_request(self, value: Any) -> str:
        """Send a request message and return its ``requestId``.

        Returns an empty string, and sends nothing, if *value* is not a
        mapping.  Keys of *value* override the generated envelope.
        """
        if not isinstance(value, Mapping):
            return ""
        msg = Message.request()
        if "login" not in value and self.session.auth_token:
            msg["token"] = self.session.auth_token
        if self.session.client_id:
            msg["clientId"] = self.session.client_id
        msg.update(value)
        logger.debug("request %s", msg["requestId"])
        self.send(msg)
        return msg["requestId"]

    def put(self, context: str, path: str, value: Any) -> str:
        """Send a PUT request for *path* under *context*."""
        return self.send_request(
            {"context": normalize_context(context), "put": {"path": path, "value": value}}
        )

    def login(self, username: str, password: str) -> str:
        return self.send_request({"login": {"username": username, "password": password}})

    def _envelope(self, template: dict[str, Any], context: str) -> dict[str, Any]:
        if self.session.auth_token:
            template["token"] = self.session.auth_token
        template["context"] = normalize_context(context)
        return template

    def send_update(
        self,
        context: str = "self",
        path: str | list[Mapping[str, Any]] = "",
        value: Any = None,
    ) -> None:
        """Send a delta update for one path or a list of ``{path, value}``."""
        msg = self._envelope(Message.updates(), context)
        if isinstance(path, str):
            values: list[Any] = [{"path": path, "value": value}]
        else:
            values = [dict(v) for v in path]
        stamp = datetime.now(UTC).isoformat(timespec="milliseconds")
        update: dict[str, Any] = {
            "timestamp": stamp.replace("+00:00", "Z"),
            "values": values,
        }
        if self.source:
            update["source"] = self.source
        msg["updates"].append(update)
        self.send(msg)

    def subscribe(
        self,
        context: str = "*",
        path: str | Iterable[Subscription | Mapping[str, Any]] = "*",
        *,
        period: int | None = None,
        min_period: int | None = None,
        format: SubscriptionFormat | str | None = None,
        policy: SubscriptionPolicy | str | None = None,
    ) -> None:
        """Subscribe to deltas for one path or a list of subscriptions.

        Per-path options only apply when *path* is a string; a ``format``
        or ``policy`` outside the allowed values is left out.
        """
        msg = self._envelope(Message.subscribe(), context)
        if isinstance(path, str):
            msg["subscribe"].append(
                _subscription_entry(
                    path,
                    period=period,
                    min_period=min_period,
                    format=format,
                    policy=policy,
                )
            )
        else:
            msg["subscribe"] = _wire_entries(path)
        self.send(msg)

    def unsubscribe(
        self,
        context: str = "*",
        path: str | Iterable[Subscription | Mapping[str, Any]] = "*",
    ) -> None:
        msg = self._envelope(Message.unsubscribe(), context)
        if isinstance(path, str):
            msg["unsubscribe"].append({"path": path})
        else:
            msg["unsubscribe"] = _wire_entries(path)
        self.send(msg)

    def raise_alarm(self, context: str, name: str | AlarmType, alarm: Alarm) -> str:
        return self.put(context, notification_path(name), alarm.value)

    def clear_alarm(self, context: str, name: str | AlarmType) -> str:
        return self.put(context, notification_path(name), None)

    # -- message tests -------------------------------------------------------

    def is_self(self, msg: Any) -> bool:
        return is_delta(msg) and msg["context"] == self.self_id

    is_delta = staticmethod(is_delta)
    is_hello = staticmethod(is_hello)
    is_response = staticmethod(is_response)
