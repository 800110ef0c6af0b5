"""Discovery of plugins contributed by installed packages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy
import structlog

from plugwright.core.registry.hookspecs import PlugwrightSpecs

if TYPE_CHECKING:
    from plugwright.core.models.config import Config
    from plugwright.core.plugin import Plugin

logger = structlog.get_logger(__name__)


class PluginManager:
    """Loads plugin packages and collects the plugins they contribute."""

    PROJECT_NAME = "plugwright"

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(self.PROJECT_NAME)
        self._pm.add_hookspecs(PlugwrightSpecs)

    @property
    def hook(self) -> Any:
        """Hook caller used by the session to notify packages."""
        return self._pm.hook

    def register(self, package: Any, name: str | None = None) -> None:
        """Register an object or module carrying ``@hookimpl`` functions."""
        self._pm.register(package, name=name)
        logger.info("Plugin package registered", name=self._pm.get_name(package))

    def load_entrypoints(self) -> int:
        """Load packages from the ``plugwright`` entry-point group."""
        count = self._pm.load_setuptools_entrypoints(self.PROJECT_NAME)
        logger.debug("Entry points loaded", count=count)
        return count

    def collect_plugins(self, config: Config) -> list[Plugin]:
        """Flatten every ``register_plugins`` result into one list."""
        plugins: list[Plugin] = []
        for contributed in self._pm.hook.register_plugins(config=config):
            if contributed:
                plugins.extend(contributed)
        logger.debug("Plugins collected", count=len(plugins))
        return plugins
