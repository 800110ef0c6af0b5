"""Per-page event surface shared by all plugins.

A ``PageInstrumentor`` is installed once per page. It owns the single route
tap and the single dialog listener on that page and fans each event out to
the observers registered by plugins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from plugwright.core.interception.arbitration import Arbitration, InterceptedRequest

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IDialog, IPage, IRoute

logger = structlog.get_logger(__name__)

RequestObserver = Callable[[InterceptedRequest], Awaitable[None]]
DialogObserver = Callable[["InterceptedDialog"], Awaitable[None]]


class InterceptedDialog:
    """Dialog shared by every dialog observer of a page.

    ``handled`` flips as soon as one observer accepts or dismisses it; later
    calls are ignored since the host rejects a second decision.
    """

    def __init__(self, dialog: IDialog) -> None:
        self.dialog = dialog
        self.handled = False

    @property
    def type(self) -> str:
        return self.dialog.type

    @property
    def message(self) -> str:
        return self.dialog.message

    async def accept(self, prompt_text: str | None = None) -> None:
        if self.handled:
            return
        self.handled = True
        if prompt_text is None:
            await self.dialog.accept()
        else:
            await self.dialog.accept(prompt_text)

    async def dismiss(self) -> None:
        if self.handled:
            return
        self.handled = True
        await self.dialog.dismiss()


class PageInstrumentor:
    """Request arbitration and dialog fan-out for one page."""

    def __init__(
        self,
        page: IPage,
        *,
        url_pattern: str = "**/*",
        vote_timeout: float | None = None,
        on_dispose: Callable[[PageInstrumentor], None] | None = None,
    ) -> None:
        """
        Args:
            page: Page to instrument
            url_pattern: Route pattern used while interception is enabled
            vote_timeout: Seconds to wait for all votes before settling
            on_dispose: Called once when the page closes or the session ends
        """
        self.page = page
        self.url_pattern = url_pattern
        self.vote_timeout = vote_timeout
        self._on_dispose = on_dispose
        self._request_observers: list[RequestObserver] = []
        self._dialog_observers: list[DialogObserver] = []
        self._pending: set[Arbitration] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._intercepting = False
        self._listening_dialogs = False
        self._disposed = False

        page.on("close", self._on_close)

    @property
    def intercepting(self) -> bool:
        return self._intercepting

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def request_observer_count(self) -> int:
        return len(self._request_observers)

    @property
    def dialog_observer_count(self) -> int:
        return len(self._dialog_observers)

    # =========================================================================
    # Observer registration
    # =========================================================================

    def add_request_observer(self, observer: RequestObserver) -> Callable[[], None]:
        """Register a request observer; returns its disposer."""
        self._request_observers.append(observer)

        def dispose() -> None:
            if observer in self._request_observers:
                self._request_observers.remove(observer)

        return dispose

    def add_dialog_observer(self, observer: DialogObserver) -> Callable[[], None]:
        """Register a dialog observer; returns its disposer."""
        self._dialog_observers.append(observer)
        if not self._listening_dialogs and not self._disposed:
            # Host waits for accept/dismiss while any dialog listener is attached
            self.page.on("dialog", self._on_dialog)
            self._listening_dialogs = True

        def dispose() -> None:
            if observer in self._dialog_observers:
                self._dialog_observers.remove(observer)
            if not self._dialog_observers and self._listening_dialogs:
                self._stop_dialog_listener()

        return dispose

    # =========================================================================
    # Interception switch
    # =========================================================================

    async def enable_interception(self) -> None:
        """Install the route tap; no-op if installed or the page is closed."""
        if self._intercepting or self._disposed or self.page.is_closed():
            return

        self._intercepting = True
        try:
            await self.page.route(self.url_pattern, self._on_route)
        except Exception as e:
            self._intercepting = False
            if self.page.is_closed():
                logger.debug("Page closed before interception was enabled", error=str(e))
                return
            raise
        logger.debug("Interception enabled", url=self.page.url)

    async def disable_interception(self) -> None:
        """Remove the route tap; no-op if absent or the page is closed."""
        if not self._intercepting:
            return

        self._intercepting = False
        if self.page.is_closed():
            return
        try:
            await self.page.unroute(self.url_pattern, self._on_route)
        except Exception as e:
            if self.page.is_closed():
                logger.debug("Page closed before interception was disabled", error=str(e))
                return
            raise
        logger.debug("Interception disabled", url=self.page.url)

    # =========================================================================
    # Taps
    # =========================================================================

    async def _on_route(self, route: IRoute, *_: Any) -> None:
        observers = list(self._request_observers)
        arbitration = Arbitration(route, len(observers))

        if not observers:
            await arbitration.settle()
            return

        self._pending.add(arbitration)
        try:
            for index, observer in enumerate(observers):
                request = InterceptedRequest(arbitration, index)
                task = asyncio.create_task(self._notify_request(observer, request))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

            await arbitration.wait(self.vote_timeout)
        finally:
            self._pending.discard(arbitration)

    async def _notify_request(self, observer: RequestObserver, request: InterceptedRequest) -> None:
        try:
            await observer(request)
        except Exception as e:
            logger.exception(
                "Request observer failed",
                observer=getattr(observer, "__qualname__", repr(observer)),
                url=request.url,
                error=str(e),
            )
            # A failed observer counts as a continue vote
            if not request.voted:
                await request.continue_()

    async def _on_dialog(self, dialog: IDialog) -> None:
        observers = list(self._dialog_observers)
        shared = InterceptedDialog(dialog)
        await asyncio.gather(*(self._notify_dialog(observer, shared) for observer in observers))

        # Undecided dialogs fall back to the host default of dismissing
        if not shared.handled:
            try:
                await shared.dismiss()
            except Exception as e:
                logger.debug("Failed to dismiss dialog", dialog_type=dialog.type, error=str(e))

    async def _notify_dialog(self, observer: DialogObserver, dialog: InterceptedDialog) -> None:
        try:
            await observer(dialog)
        except Exception as e:
            logger.exception(
                "Dialog observer failed",
                observer=getattr(observer, "__qualname__", repr(observer)),
                dialog_type=dialog.type,
                error=str(e),
            )

    # =========================================================================
    # Teardown
    # =========================================================================

    def _stop_dialog_listener(self) -> None:
        self._listening_dialogs = False
        self.page.remove_listener("dialog", self._on_dialog)

    def _on_close(self, *_: Any) -> None:
        self.dispose()

    def dispose(self) -> None:
        """Drop all observers and listeners; pending requests are abandoned."""
        if self._disposed:
            return
        self._disposed = True

        self._request_observers.clear()
        self._dialog_observers.clear()
        for arbitration in list(self._pending):
            arbitration.abandon()
        self._pending.clear()

        try:
            if self._listening_dialogs:
                self._stop_dialog_listener()
            self.page.remove_listener("close", self._on_close)
        except Exception as e:
            logger.debug("Failed to remove page listeners", error=str(e))

        self._intercepting = False
        if self._on_dispose is not None:
            self._on_dispose(self)
