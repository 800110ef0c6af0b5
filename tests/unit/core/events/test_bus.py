"""Tests for AsyncEventBus and Event classes."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import patch

import pytest

from plugwright.core.events.bus import AsyncEventBus, Event
from plugwright.core.events.types import EventType

# ============================================================================
# EVENT DATACLASS TESTS
# ============================================================================


class TestEvent:
    """Tests for the Event dataclass."""

    def test_defaults(self):
        """Test Event creation with only a type."""
        before = time.time()
        event = Event(type=EventType.PLUGIN_STARTED)

        assert event.data == {}
        assert event.source == "session"
        assert before <= event.timestamp <= time.time()

    @pytest.mark.asyncio
    async def test_emit_builds_event(self):
        """Test that emit returns the published event."""
        event = await AsyncEventBus().emit(EventType.REQUEST_BLOCKED, {"url": "x"}, source="blocker")

        assert event.type == EventType.REQUEST_BLOCKED
        assert event.data == {"url": "x"}
        assert event.source == "blocker"


# ============================================================================
# SUBSCRIPTION TESTS
# ============================================================================


class TestSubscription:
    """Tests for subscribe and its disposer."""

    @pytest.mark.asyncio
    async def test_handler_receives_event(self):
        """Test that a subscribed handler receives emitted events."""
        bus = AsyncEventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(EventType.PLUGIN_STOPPED, handler)
        event = await bus.emit(EventType.PLUGIN_STOPPED, {"plugin": "A"}, source="A")

        assert received == [event]

    @pytest.mark.asyncio
    async def test_other_types_not_delivered(self):
        """Test that handlers only receive their own type."""
        bus = AsyncEventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(EventType.PLUGIN_STOPPED, handler)
        await bus.emit(EventType.PLUGIN_STARTED)

        assert received == []

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self):
        """Test that the returned disposer can be called twice."""
        bus = AsyncEventBus()
        received = []

        async def handler(event):
            received.append(event)

        unsubscribe = bus.subscribe(EventType.BROWSER_CLOSED, handler)
        unsubscribe()
        unsubscribe()
        await bus.emit(EventType.BROWSER_CLOSED)

        assert received == []

    @pytest.mark.asyncio
    async def test_handler_may_unsubscribe_during_dispatch(self):
        """Test that unsubscribing inside a handler does not skip siblings."""
        bus = AsyncEventBus()
        received = []
        unsubscribers = []

        async def first(event):
            received.append("first")
            unsubscribers[0]()

        async def second(event):
            received.append("second")

        unsubscribers.append(bus.subscribe(EventType.BROWSER_CLOSED, first))
        bus.subscribe(EventType.BROWSER_CLOSED, second)
        await bus.emit(EventType.BROWSER_CLOSED)
        await bus.emit(EventType.BROWSER_CLOSED)

        assert received == ["first", "second", "second"]


# ============================================================================
# DISPATCH TESTS
# ============================================================================


class TestDispatch:
    """Tests for concurrent dispatch and error isolation."""

    @pytest.mark.asyncio
    async def test_emit_awaits_all_handlers(self):
        """Test that emit returns only after every handler finished."""
        bus = AsyncEventBus()
        finished = []

        async def slow(event):
            await asyncio.sleep(0.01)
            finished.append("slow")

        async def fast(event):
            finished.append("fast")

        bus.subscribe(EventType.BROWSER_CLOSED, slow)
        bus.subscribe(EventType.BROWSER_CLOSED, fast)
        await bus.emit(EventType.BROWSER_CLOSED)

        assert sorted(finished) == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_handler_error_isolated(self):
        """Test that a failing handler is logged and does not affect others."""
        bus = AsyncEventBus()
        received = []

        async def broken(event):
            raise RuntimeError("handler bug")

        async def healthy(event):
            received.append(event)

        bus.subscribe(EventType.PLUGIN_ERROR, broken)
        bus.subscribe(EventType.PLUGIN_ERROR, healthy)

        with patch("plugwright.core.events.bus.logger") as logger:
            await bus.emit(EventType.PLUGIN_ERROR)

        assert len(received) == 1
        logger.exception.assert_called_once()
