"""Hook specifications for entry-point plugins, using pluggy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IBrowser
    from plugwright.core.models.config import Config
    from plugwright.core.plugin import Plugin

# Plugin markers
hookspec = pluggy.HookspecMarker("plugwright")
hookimpl = pluggy.HookimplMarker("plugwright")


class PlugwrightSpecs:
    """Hook specifications for external plugin packages."""

    @hookspec
    def register_plugins(self, config: Config) -> list[Plugin]:
        """
        Contribute plugin instances to a session.

        Return a list of Plugin instances (may be empty).
        """
        ...

    @hookspec
    def on_browser_attached(self, browser: IBrowser) -> None:
        """Called after all registered plugins were initialized."""
        ...

    @hookspec
    def on_browser_closed(self) -> None:
        """Called after every plugin ran its close hook."""
        ...
