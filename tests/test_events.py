"""Tests for the broadcast EventEmitter."""
from __future__ import annotations

import logging

import pytest

from signalk_client.wire.events import EventEmitter

from conftest import settle


class TestEventEmitter:
    """Registration, delivery order and listener isolation."""

    def test_every_listener_receives(self) -> None:
        emitter = EventEmitter()
        seen: list[tuple[str, int]] = []
        emitter.on("message", lambda v: seen.append(("a", v)))
        emitter.on("message", lambda v: seen.append(("b", v)))

        assert emitter.emit("message", 1) == 2
        assert seen == [("a", 1), ("b", 1)]

    def test_emit_without_listeners(self) -> None:
        assert EventEmitter().emit("close", None) == 0

    def test_unsubscribe_callable(self) -> None:
        emitter = EventEmitter()
        seen: list[int] = []
        unsubscribe = emitter.on("message", seen.append)

        assert unsubscribe() is True
        emitter.emit("message", 1)
        assert seen == []
        assert unsubscribe() is False

    def test_duplicate_registration_ignored(self) -> None:
        emitter = EventEmitter()
        seen: list[int] = []
        emitter.on("message", seen.append)
        emitter.on("message", seen.append)

        emitter.emit("message", 5)
        assert seen == [5]

    def test_once(self) -> None:
        emitter = EventEmitter()
        seen: list[int] = []
        emitter.once("connect", seen.append)

        emitter.emit("connect", 1)
        emitter.emit("connect", 2)
        assert seen == [1]
        assert emitter.listener_count("connect") == 0

    def test_failing_listener_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        """A raising listener is logged and the rest still run."""
        emitter = EventEmitter()
        seen: list[int] = []

        def boom(_: int) -> None:
            raise RuntimeError("bad listener")

        emitter.on("message", boom)
        emitter.on("message", seen.append)

        with caplog.at_level(logging.WARNING, logger="signalk_client.wire.events"):
            emitter.emit("message", 3)

        assert seen == [3]
        assert "RuntimeError" in caplog.text

    def test_remove_all_listeners(self) -> None:
        emitter = EventEmitter()
        emitter.on("a", print)
        emitter.on("b", print)

        emitter.remove_all_listeners("a")
        assert emitter.listener_count("a") == 0
        assert emitter.listener_count("b") == 1

        emitter.remove_all_listeners()
        assert emitter.listener_count("b") == 0

    async def test_coroutine_listener_scheduled(self) -> None:
        emitter = EventEmitter()
        seen: list[int] = []

        async def listener(value: int) -> None:
            seen.append(value)

        emitter.on("message", listener)
        emitter.emit("message", 9)
        await settle()
        assert seen == [9]

    async def test_failing_coroutine_listener_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A raising coroutine listener is logged by the emitter."""
        emitter = EventEmitter()
        seen: list[int] = []

        async def boom(_: int) -> None:
            raise ValueError("bad coroutine listener")

        emitter.on("message", boom)
        emitter.on("message", seen.append)

        with caplog.at_level(logging.WARNING, logger="signalk_client.wire.events"):
            emitter.emit("message", 4)
            await settle()

        assert seen == [4]
        assert "ValueError" in caplog.text
        assert "'message'" in caplog.text
        assert emitter._pending == set()
