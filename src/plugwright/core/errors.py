"""Exception hierarchy."""

from __future__ import annotations


class PlugwrightError(Exception):
    """Base class for all plugwright errors."""


class SessionError(PlugwrightError):
    """Raised when the session is used in an invalid state."""


class PluginError(PlugwrightError):
    """Raised when a plugin is configured incorrectly."""

    def __init__(self, plugin: str, message: str) -> None:
        self.plugin = plugin
        super().__init__(f"{plugin}: {message}")
