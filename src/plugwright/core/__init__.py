"""Core module - plugin lifecycle, interception arbitration and session."""

from plugwright.core.errors import PluginError, PlugwrightError, SessionError
from plugwright.core.events.bus import AsyncEventBus, Event, EventType
from plugwright.core.plugin import Plugin
from plugwright.core.registry.manager import PluginManager
from plugwright.core.session import Session

__all__ = [
    "AsyncEventBus",
    "Event",
    "EventType",
    "Plugin",
    "PluginError",
    "PluginManager",
    "PlugwrightError",
    "Session",
    "SessionError",
]
