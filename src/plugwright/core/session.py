"""Session: plugin registry bound to one browser at a time."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from plugwright.core.errors import PluginError, SessionError
from plugwright.core.events.bus import AsyncEventBus
from plugwright.core.events.types import EventType
from plugwright.core.interception.counter import InterceptionCounter
from plugwright.core.interception.instrumentor import PageInstrumentor
from plugwright.core.models.config import Config, configure_logging

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IBrowser, IPage
    from plugwright.core.plugin import Plugin
    from plugwright.core.registry.manager import PluginManager

logger = structlog.get_logger(__name__)


class Session:
    """
    Holds the top-level plugins and applies them to a browser.

    Responsibilities:
    - Keep the ordered list of registered plugins
    - Initialize them against every attached or launched browser
    - Own the interception counter and the per-page instrumentors
    - Fire the two-phase close signal when the browser closes
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self.config = config or Config()
        configure_logging(self.config.logs.level)
        self.events = AsyncEventBus()
        self.interceptions = InterceptionCounter()
        self.browser: IBrowser | None = None
        self.plugin_manager = plugin_manager

        self._plugins: list[Plugin] = []
        self._instrumentors: dict[IPage, PageInstrumentor] = {}
        self._teardowns: list[Callable[[], None]] = []
        self._playwright: Any = None
        self._host_browser: Any = None

    # =========================================================================
    # Registry
    # =========================================================================

    @property
    def plugins(self) -> tuple[Plugin, ...]:
        return tuple(self._plugins)

    @property
    def is_attached(self) -> bool:
        return self.browser is not None

    def add_plugin(self, plugin: Plugin) -> Plugin:
        """
        Register a top-level plugin for every subsequent browser.

        Raises:
            PluginError: If the plugin is already registered
        """
        if plugin in self._plugins:
            raise PluginError(plugin.name, "already registered")
        self._plugins.append(plugin)
        logger.info("Plugin registered", plugin=plugin.name)
        return plugin

    def remove_plugin(self, plugin: Plugin) -> bool:
        """Unregister a plugin without touching its lifecycle."""
        if plugin in self._plugins:
            self._plugins.remove(plugin)
            logger.info("Plugin unregistered", plugin=plugin.name)
            return True
        return False

    async def clear_plugins(self) -> None:
        """Stop every registered plugin and forget them."""
        plugins, self._plugins = self._plugins, []
        results = await asyncio.gather(*(plugin.stop() for plugin in plugins), return_exceptions=True)
        for plugin, result in zip(plugins, results, strict=True):
            if isinstance(result, Exception):
                logger.error("Failed to stop plugin", plugin=plugin.name, error=str(result))
        logger.info("Plugins cleared", count=len(plugins))

    def load_entrypoint_plugins(self) -> list[Plugin]:
        """Register the plugins contributed through the ``plugwright`` entry points."""
        if self.plugin_manager is None:
            from plugwright.core.registry.manager import PluginManager

            self.plugin_manager = PluginManager()

        self.plugin_manager.load_entrypoints()
        added = []
        for plugin in self.plugin_manager.collect_plugins(self.config):
            if plugin not in self._plugins:
                added.append(self.add_plugin(plugin))
        return added

    # =========================================================================
    # Browser
    # =========================================================================

    async def attach(self, browser: IBrowser) -> IBrowser:
        """
        Initialize every registered plugin against ``browser``.

        Raises:
            SessionError: If a browser is already attached
        """
        if self.browser is not None:
            raise SessionError("Session is already attached to a browser")

        self.browser = browser
        try:
            for plugin in list(self._plugins):
                await plugin.init(self)
        except Exception:
            logger.exception("Attach failed, detaching browser")
            await self._fire_close(notify_hooks=False)
            raise

        if self.plugin_manager is not None:
            self.plugin_manager.hook.on_browser_attached(browser=browser)
        await self.events.emit(EventType.BROWSER_ATTACHED, {"plugins": len(self._plugins)}, source="session")
        logger.info("Browser attached", plugins=[plugin.name for plugin in self._plugins])
        return browser

    async def launch(self, **options: Any) -> IBrowser:
        """Launch Chromium with Playwright and attach to a fresh context."""
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        launch_options = {**self.config.launch.to_options(), **options}
        self._host_browser = await self._playwright.chromium.launch(**launch_options)
        context = await self._host_browser.new_context(no_viewport=True)
        return await self.attach(context)

    async def connect(self, endpoint_url: str, **options: Any) -> IBrowser:
        """Connect to a running Chromium over CDP and attach to its default context."""
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._host_browser = await self._playwright.chromium.connect_over_cdp(endpoint_url, **options)
        contexts = self._host_browser.contexts
        context = contexts[0] if contexts else await self._host_browser.new_context(no_viewport=True)
        return await self.attach(context)

    async def close(self) -> None:
        """Close the browser, then tear down every plugin attached to it."""
        browser = self.browser
        if browser is None:
            return

        try:
            await browser.close()
            if self._host_browser is not None:
                await self._host_browser.close()
        except Exception as e:
            logger.warning("Browser did not close cleanly", error=str(e))

        await self._fire_close()

        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = None
        self._host_browser = None

    def add_teardown(self, teardown: Callable[[], None]) -> None:
        """Register a synchronous step run before any other close-time work."""
        self._teardowns.append(teardown)

    async def _fire_close(self, notify_hooks: bool = True) -> None:
        # Phase one: release every subscription, each step isolated
        teardowns, self._teardowns = self._teardowns, []
        for teardown in teardowns:
            try:
                teardown()
            except Exception as e:
                logger.exception("Close teardown failed", error=str(e))

        for instrumentor in list(self._instrumentors.values()):
            instrumentor.dispose()
        self._instrumentors.clear()
        self.browser = None

        # Phase two: async close hooks
        await self.events.emit(EventType.BROWSER_CLOSED, source="session")
        if notify_hooks and self.plugin_manager is not None:
            self.plugin_manager.hook.on_browser_closed()
        logger.info("Browser closed")

    # =========================================================================
    # Pages
    # =========================================================================

    def open_pages(self) -> list[IPage]:
        if self.browser is None:
            return []
        return [page for page in self.browser.pages if not page.is_closed()]

    def instrument(self, page: IPage) -> PageInstrumentor:
        """Return the page's instrumentor, installing it on first use."""
        instrumentor = self._instrumentors.get(page)
        if instrumentor is None:
            instrumentor = PageInstrumentor(
                page,
                url_pattern=self.config.interception.url_pattern,
                vote_timeout=self.config.interception.vote_timeout,
                on_dispose=self._forget,
            )
            self._instrumentors[page] = instrumentor
            logger.debug("Page instrumented", url=page.url)
        return instrumentor

    def instrumentor_for(self, page: IPage) -> PageInstrumentor | None:
        return self._instrumentors.get(page)

    def _forget(self, instrumentor: PageInstrumentor) -> None:
        self._instrumentors.pop(instrumentor.page, None)

    async def enable_interception(self) -> None:
        """Re-enable interception on open pages that have request observers."""
        instrumentors = [
            instrumentor
            for instrumentor in self._instrumentors.values()
            if instrumentor.request_observer_count and not instrumentor.page.is_closed()
        ]
        results = await asyncio.gather(
            *(instrumentor.enable_interception() for instrumentor in instrumentors),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Failed to enable interception", error=str(result))
        if instrumentors:
            await self.events.emit(
                EventType.INTERCEPTION_ENABLED, {"pages": len(instrumentors)}, source="session"
            )

    async def disable_interception(self) -> None:
        """Disable interception on every open page."""
        instrumentors = [
            instrumentor
            for instrumentor in self._instrumentors.values()
            if instrumentor.intercepting and not instrumentor.page.is_closed()
        ]
        results = await asyncio.gather(
            *(instrumentor.disable_interception() for instrumentor in instrumentors),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Failed to disable interception", error=str(result))
        await self.events.emit(
            EventType.INTERCEPTION_DISABLED, {"pages": len(instrumentors)}, source="session"
        )
        logger.info("Interception disabled", pages=len(instrumentors))
