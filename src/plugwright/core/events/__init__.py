"""Event system for session-wide notifications."""

from plugwright.core.events.bus import AsyncEventBus, Event, EventHandler
from plugwright.core.events.types import EventType

__all__ = [
    "AsyncEventBus",
    "Event",
    "EventHandler",
    "EventType",
]
