"""Session event bus.

Lifecycle code publishes on the bus and relies on ``emit`` returning only once
every handler has run: the phase-two browser close is a ``BROWSER_CLOSED``
emit, and the session continues only after all plugins reset themselves.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import structlog

from plugwright.core.events.types import EventType

logger = structlog.get_logger(__name__)

EventHandler = Callable[["Event"], Coroutine[Any, Any, None]]


@dataclass(frozen=True)
class Event:
    """A notification published by the session or a plugin."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "session"
    timestamp: float = field(default_factory=time.time)


class AsyncEventBus:
    """Delivers each event to the handlers of its type concurrently."""

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> Callable[[], None]:
        """
        Register ``handler`` for ``event_type``.

        Returns:
            Disposer removing the handler; calling it again does nothing
        """
        handlers = self._handlers[event_type]
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def emit(
        self,
        event_type: EventType,
        data: dict[str, Any] | None = None,
        source: str = "session",
    ) -> Event:
        """Publish an event and wait for all of its handlers."""
        event = Event(type=event_type, data=data or {}, source=source)
        handlers = list(self._handlers.get(event_type, ()))
        if handlers:
            await asyncio.gather(*(self._deliver(handler, event) for handler in handlers))
        return event

    async def _deliver(self, handler: EventHandler, event: Event) -> None:
        try:
            await handler(event)
        except Exception as e:
            logger.exception(
                "Event handler failed",
                event_type=event.type.value,
                handler=getattr(handler, "__qualname__", repr(handler)),
                error=str(e),
            )


__all__ = ["AsyncEventBus", "Event", "EventHandler", "EventType"]
