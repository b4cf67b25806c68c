"""Shared fixtures for the Signal K client tests.

Provides an in-memory WebSocket (:class:`FakeConnection`), a connector
that hands them out (:class:`FakeConnector`) and an :mod:`httpx` mock
server (:class:`FakeServer`) with per-route canned responses.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

_END = object()


# ---------------------------------------------------------------------------
# WebSocket fakes
# ---------------------------------------------------------------------------


class FakeConnection:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._frames: asyncio.Queue[Any] = asyncio.Queue()

    def feed(self, frame: Any) -> None:
        """Queue an inbound frame; dicts are JSON-encoded."""
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._frames.put_nowait(frame)

    def fail(self, exc: BaseException) -> None:
        """Make the receive loop raise *exc*."""
        self._frames.put_nowait(exc)

    def finish(self) -> None:
        """End the receive loop as a clean server-side close would."""
        self._frames.put_nowait(_END)

    @property
    def sent_json(self) -> list[Any]:
        return [json.loads(s) for s in self.sent]

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._frames.put_nowait(_END)

    def __aiter__(self) -> FakeConnection:
        return self

    async def __anext__(self) -> Any:
        item = await self._frames.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnector:
    """Connector recording requested URLs.

    ``hang`` makes the connect never complete; ``error`` makes it fail.
    """

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []
        self.hang = False
        self.error: BaseException | None = None

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()
        conn = FakeConnection()
        self.connections.append(conn)
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


# ---------------------------------------------------------------------------
# HTTP fake
# ---------------------------------------------------------------------------


class FakeServer:
    """Route table served through :class:`httpx.MockTransport`.

    Routes are keyed by ``(method, path)``; unknown routes answer 404.
    A route value may be an :class:`httpx.Response` or an exception to
    raise.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        *,
        status: int = 200,
        headers: dict[str, str] | list[tuple[str, str]] | None = None,
    ) -> None:
        self.routes[(method, path)] = httpx.Response(
            status, json=json_body, headers=headers
        )

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self.routes[(method, path)] = exc

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, Exception):
            raise route
        return route

    def find(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks on the running loop make progress."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture()
def server() -> FakeServer:
    return FakeServer()
