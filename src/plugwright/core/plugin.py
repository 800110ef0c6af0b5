"""Plugin base class: lifecycle, dependencies and page wiring.

A plugin moves through ``init`` -> (``stop`` / ``restart``)* -> browser close.
``activation_count`` is the net number of starts minus stops; a plugin with a
count of zero or less is stopped and lets every request through untouched.

Subclasses customise behaviour by overriding the extension points
(``after_launch``, ``on_page_created``, ``process_request``,
``process_dialog``, ...) and compose other plugins through
``add_dependency``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from plugwright.core.errors import PluginError, SessionError
from plugwright.core.events.types import EventType

if TYPE_CHECKING:
    from plugwright.core.events.bus import Event
    from plugwright.core.interception.arbitration import InterceptedRequest
    from plugwright.core.interception.instrumentor import InterceptedDialog
    from plugwright.core.interfaces.browser import IBrowser, IPage
    from plugwright.core.session import Session

logger = structlog.get_logger(__name__)


class Plugin:
    """Base class for all plugins."""

    # Whether this plugin votes on network requests
    requires_interception: bool = False
    # Whether this plugin decides on JavaScript dialogs
    handles_dialogs: bool = False

    def __init__(self) -> None:
        self.name = type(self).__name__
        self.session: Session | None = None
        self.browser: IBrowser | None = None
        self.dependencies: list[Plugin] = []

        self._initialized = False
        self._activation_count = 0
        # Units this plugin currently holds in the session interception counter
        self._interception_units = 0
        # Bumped on every init and close; work from an older epoch is dropped
        self._epoch = 0
        self._subscriptions: list[Callable[[], None]] = []
        self._wired_pages: set[IPage] = set()
        self._unsubscribe_close: Callable[[], None] | None = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_stopped(self) -> bool:
        return self._activation_count <= 0

    @property
    def activation_count(self) -> int:
        return self._activation_count

    def add_dependency(self, plugin: Plugin) -> Plugin:
        """
        Add a plugin whose lifecycle follows this one.

        Raises:
            PluginError: If the dependency would create a cycle
        """
        if plugin is self or self in plugin.walk():
            raise PluginError(self.name, f"dependency on {plugin.name} creates a cycle")
        self.dependencies.append(plugin)
        return plugin

    def walk(self) -> list[Plugin]:
        """This plugin and all of its transitive dependencies."""
        found: list[Plugin] = [self]
        for dependency in self.dependencies:
            for plugin in dependency.walk():
                if plugin not in found:
                    found.append(plugin)
        return found

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self, session: Session) -> None:
        """Attach to the session's browser; no-op when already initialized."""
        if self._initialized:
            return

        browser = session.browser
        if browser is None:
            raise SessionError("Cannot initialize plugins before a browser is attached")

        self.session = session
        self.browser = browser
        self._epoch += 1

        session.add_teardown(self.release_subscriptions)
        self._unsubscribe_close = session.events.subscribe(
            EventType.BROWSER_CLOSED, self._on_browser_closed
        )

        on_target_created = self._on_target_created
        browser.on("page", on_target_created)
        self._subscriptions.append(lambda: browser.remove_listener("page", on_target_created))

        self._initialized = True
        self._activation_count += 1
        await self._sync_interception()

        for page in list(browser.pages):
            await self._on_target_created(page)

        await self._propagate("init", session)

        logger.info("Plugin started", plugin=self.name)
        await session.events.emit(EventType.PLUGIN_STARTED, {"plugin": self.name}, source=self.name)
        await self._call_hook(self.after_launch, browser)

    async def restart(self) -> None:
        """Start the plugin again after a ``stop``."""
        await self._call_hook(self.before_restart)

        self._activation_count += 1
        await self._sync_interception()

        # Pages opened while stopped were skipped
        if self.browser is not None and not self.is_stopped:
            for page in list(self.browser.pages):
                await self._on_target_created(page)

        await self._propagate("restart")

        logger.info("Plugin restarted", plugin=self.name, activation=self._activation_count)
        if self.session is not None:
            await self.session.events.emit(
                EventType.PLUGIN_RESTARTED,
                {"plugin": self.name, "activation": self._activation_count},
                source=self.name,
            )
        await self._call_hook(self.after_restart)

    async def stop(self) -> None:
        """Stop the plugin; extra stops drive the count below zero."""
        await self._call_hook(self.before_stop)

        self._activation_count -= 1
        await self._sync_interception()

        await self._propagate("stop")

        logger.info("Plugin stopped", plugin=self.name, activation=self._activation_count)
        if self.session is not None:
            await self.session.events.emit(
                EventType.PLUGIN_STOPPED,
                {"plugin": self.name, "activation": self._activation_count},
                source=self.name,
            )
        await self._call_hook(self.after_stop)

    def add_subscription(self, unsubscribe: Callable[[], None]) -> None:
        """Register a disposer run when the plugin's browser closes."""
        self._subscriptions.append(unsubscribe)

    def release_subscriptions(self) -> None:
        """Remove every listener and observer this plugin installed."""
        self._epoch += 1
        subscriptions, self._subscriptions = self._subscriptions, []
        for unsubscribe in subscriptions:
            try:
                unsubscribe()
            except Exception as e:
                logger.exception("Failed to release subscription", plugin=self.name, error=str(e))
        self._wired_pages.clear()

    async def _on_browser_closed(self, event: Event) -> None:
        if self._unsubscribe_close is not None:
            self._unsubscribe_close()
            self._unsubscribe_close = None

        self.release_subscriptions()

        self.browser = None
        self._initialized = False
        self._activation_count = 0
        await self._sync_interception()

        logger.debug("Plugin closed", plugin=self.name)
        await self._call_hook(self.on_close)

    async def _propagate(self, method: str, *args: Any) -> None:
        """Run a lifecycle method on all dependencies concurrently."""
        if not self.dependencies:
            return

        results = await asyncio.gather(
            *(getattr(dependency, method)(*args) for dependency in self.dependencies),
            return_exceptions=True,
        )
        for dependency, result in zip(self.dependencies, results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "Dependency lifecycle call failed",
                    plugin=self.name,
                    dependency=dependency.name,
                    method=method,
                    error=str(result),
                )

    async def _sync_interception(self) -> None:
        """Match this plugin's share of the interception counter to its activation."""
        if not self.requires_interception or self.session is None:
            return

        counter = self.session.interceptions
        wanted = max(self._activation_count, 0) if self._initialized else 0
        became_needed = became_idle = False

        while self._interception_units < wanted:
            self._interception_units += 1
            became_needed = counter.acquire() or became_needed
        while self._interception_units > wanted:
            self._interception_units -= 1
            became_idle = counter.release() or became_idle

        if became_idle and self.browser is not None:
            await self.session.disable_interception()
        elif became_needed and self.browser is not None:
            await self.session.enable_interception()

    # =========================================================================
    # Page wiring
    # =========================================================================

    async def _on_target_created(self, page: IPage) -> None:
        session = self.session
        if session is None or self.is_stopped or page in self._wired_pages:
            return
        if page.is_closed():
            return

        epoch = self._epoch
        instrumentor = session.instrument(page)
        self._wired_pages.add(page)

        page_subscriptions: list[Callable[[], None]] = []
        if self.handles_dialogs:
            page_subscriptions.append(instrumentor.add_dialog_observer(self._dialog_observer(epoch)))
        if self.requires_interception:
            page_subscriptions.append(instrumentor.add_request_observer(self._request_observer(epoch)))

        def release(*_: Any) -> None:
            page.remove_listener("close", release)
            for unsubscribe in page_subscriptions:
                unsubscribe()
            self._wired_pages.discard(page)
            if release in self._subscriptions:
                self._subscriptions.remove(release)

        page.on("close", release)
        self._subscriptions.append(release)

        if self.requires_interception:
            try:
                await instrumentor.enable_interception()
            except Exception as e:
                logger.exception(
                    "Failed to enable interception", plugin=self.name, url=page.url, error=str(e)
                )

        if epoch != self._epoch or page.is_closed():
            return
        await self._call_hook(self.on_page_created, page)

    def _request_observer(self, epoch: int) -> Callable[[InterceptedRequest], Awaitable[None]]:
        async def observe(request: InterceptedRequest) -> None:
            if request.handled:
                return
            if self.is_stopped or epoch != self._epoch:
                await request.continue_()
                return
            await self.process_request(request)

        observe.__qualname__ = f"{self.name}.process_request"
        return observe

    def _dialog_observer(self, epoch: int) -> Callable[[InterceptedDialog], Awaitable[None]]:
        async def observe(dialog: InterceptedDialog) -> None:
            if dialog.handled or self.is_stopped or epoch != self._epoch:
                return
            await self.process_dialog(dialog)

        observe.__qualname__ = f"{self.name}.process_dialog"
        return observe

    async def _call_hook(self, hook: Callable[..., Awaitable[None]], *args: Any) -> None:
        try:
            await hook(*args)
        except Exception as e:
            logger.exception("Plugin hook failed", plugin=self.name, hook=hook.__name__, error=str(e))
            if self.session is not None:
                await self.session.events.emit(
                    EventType.PLUGIN_ERROR,
                    {"plugin": self.name, "hook": hook.__name__, "error": str(e)},
                    source=self.name,
                )

    def get_first_page(self) -> IPage | None:
        """First open page with content, else the first open page."""
        if self.browser is None:
            return None

        open_pages = [page for page in self.browser.pages if not page.is_closed()]
        active_pages = [page for page in open_pages if page.url != "about:blank"]
        pages = active_pages or open_pages
        return pages[0] if pages else None

    # =========================================================================
    # Extension points
    # =========================================================================

    async def after_launch(self, browser: IBrowser) -> None:
        """Called once the plugin is attached to a browser."""

    async def before_restart(self) -> None:
        pass

    async def after_restart(self) -> None:
        pass

    async def before_stop(self) -> None:
        pass

    async def after_stop(self) -> None:
        pass

    async def on_close(self) -> None:
        """Called after the browser closed and the plugin was reset."""

    async def on_page_created(self, page: IPage) -> None:
        """Called for every page wired while the plugin is active."""

    async def process_request(self, request: InterceptedRequest) -> None:
        """Vote on a request; only called when ``requires_interception``."""
        await request.continue_()

    async def process_dialog(self, dialog: InterceptedDialog) -> None:
        """Decide on a dialog; only called when ``handles_dialogs``."""

    def __repr__(self) -> str:
        return (
            f"<{self.name} initialized={self._initialized} "
            f"activation={self._activation_count}>"
        )
