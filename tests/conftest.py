"""Global test fixtures for plugwright."""

from __future__ import annotations

import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock

import pytest

# ============================================================================
# EVENT EMITTER
# ============================================================================


class FakeEmitter:
    """Minimal ``on`` / ``remove_listener`` surface of Playwright objects."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Any]] = defaultdict(list)

    def on(self, event: str, handler: Any) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        if handler in self._listeners[event]:
            self._listeners[event].remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    async def emit(self, event: str, *args: Any) -> None:
        """Call every listener in order, awaiting coroutine listeners."""
        for handler in list(self._listeners[event]):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result


# ============================================================================
# MOCK HOST COMPONENTS
# ============================================================================


@dataclass
class FakeRequest:
    """Network request seen by a route."""

    url: str = "https://example.com/"
    resource_type: str = "document"
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    post_data: str | None = None


class FakeRoute:
    """Route whose terminal actions are recorded as AsyncMocks."""

    def __init__(self, request: FakeRequest | None = None) -> None:
        self.request = request or FakeRequest()
        self.fulfill = AsyncMock()
        self.abort = AsyncMock()
        self.continue_ = AsyncMock()

    @property
    def resolutions(self) -> int:
        return self.fulfill.await_count + self.abort.await_count + self.continue_.await_count


class FakeDialog:
    """JavaScript dialog."""

    def __init__(self, type: str = "alert", message: str = "Hello") -> None:
        self.type = type
        self.message = message
        self.accept = AsyncMock()
        self.dismiss = AsyncMock()


@dataclass
class FakeMouse:
    """Mock mouse for movement and clicks."""

    move: AsyncMock = field(default_factory=AsyncMock)
    down: AsyncMock = field(default_factory=AsyncMock)
    up: AsyncMock = field(default_factory=AsyncMock)


class FakePage(FakeEmitter):
    """In-memory page with routing, dialogs and init scripts."""

    def __init__(self, context: FakeBrowser | None = None, url: str = "https://example.com/") -> None:
        super().__init__()
        self.context = context
        self.url = url
        self.mouse = FakeMouse()
        self.frames: list[Any] = []
        self.routes: list[tuple[str, Any]] = []
        self.route_calls = 0
        self.unroute_calls = 0
        self.init_scripts: list[str] = []
        self.evaluate_result: Any = None
        self.set_extra_http_headers = AsyncMock()
        self._closed = False

    def is_closed(self) -> bool:
        return self._closed

    async def route(self, url: str, handler: Any) -> None:
        self.route_calls += 1
        self.routes.append((url, handler))

    async def unroute(self, url: str, handler: Any = None) -> None:
        self.unroute_calls += 1
        self.routes = [
            (pattern, h) for pattern, h in self.routes if not (pattern == url and h == handler)
        ]

    async def add_init_script(self, script: str) -> None:
        self.init_scripts.append(script)

    async def evaluate(self, expression: str, *args: Any) -> Any:
        return self.evaluate_result

    async def request(self, url: str = "https://example.com/", resource_type: str = "document") -> FakeRoute:
        """Route a request through the most recently installed route handler."""
        route = FakeRoute(FakeRequest(url=url, resource_type=resource_type))
        if self.routes:
            _, handler = self.routes[-1]
            await handler(route, route.request)
        else:
            await route.continue_()
        return route

    async def open_dialog(self, type: str = "alert", message: str = "Hello") -> FakeDialog:
        """Raise a dialog; with no listener it is dismissed like Playwright does."""
        dialog = FakeDialog(type, message)
        if self.listener_count("dialog"):
            await self.emit("dialog", dialog)
        else:
            await dialog.dismiss()
        return dialog

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.context is not None and self in self.context.pages:
            self.context.pages.remove(self)
        await self.emit("close", self)


class FakeBrowser(FakeEmitter):
    """In-memory browser context."""

    def __init__(self) -> None:
        super().__init__()
        self.pages: list[FakePage] = []
        self.cookie_jar: list[dict[str, Any]] = []
        self.closed = False

    async def new_page(self, url: str = "https://example.com/") -> FakePage:
        page = FakePage(self, url)
        self.pages.append(page)
        await self.emit("page", page)
        return page

    async def cookies(self) -> list[dict[str, Any]]:
        return [dict(cookie) for cookie in self.cookie_jar]

    async def add_cookies(self, cookies: list[dict[str, Any]]) -> None:
        self.cookie_jar.extend(dict(cookie) for cookie in cookies)

    async def close(self) -> None:
        self.closed = True
        for page in list(self.pages):
            await page.close()


# ============================================================================
# PYTEST FIXTURES
# ============================================================================


@pytest.fixture
def browser() -> FakeBrowser:
    """Create an in-memory browser context."""
    return FakeBrowser()


@pytest.fixture
def page(browser: FakeBrowser) -> FakePage:
    """Create a page that is already open in the browser."""
    page = FakePage(browser)
    browser.pages.append(page)
    return page


@pytest.fixture
def session():
    """Create a session with default configuration."""
    from plugwright.core.session import Session

    return Session()
