"""Host browser interface definitions.

These protocols describe the slice of the Playwright async API the core
consumes. Playwright's ``BrowserContext``, ``Page``, ``Route``, ``Request`` and
``Dialog`` satisfy them as-is.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IRequest(Protocol):
    """Contract for a network request."""

    @property
    def url(self) -> str:
        """Request URL."""
        ...

    @property
    def method(self) -> str:
        """HTTP method."""
        ...

    @property
    def headers(self) -> dict[str, str]:
        """Request headers."""
        ...

    @property
    def resource_type(self) -> str:
        """Resource type as perceived by the rendering engine."""
        ...

    @property
    def post_data(self) -> str | None:
        """Request body, if any."""
        ...


@runtime_checkable
class IRoute(Protocol):
    """Contract for an intercepted request awaiting a decision."""

    @property
    def request(self) -> IRequest:
        """The request being routed."""
        ...

    async def fulfill(self, **kwargs: Any) -> None:
        """Respond with a synthetic response."""
        ...

    async def abort(self, error_code: str | None = None) -> None:
        """Abort the request."""
        ...

    async def continue_(self, **kwargs: Any) -> None:
        """Let the request proceed, optionally with overrides."""
        ...


@runtime_checkable
class IDialog(Protocol):
    """Contract for a JavaScript dialog."""

    @property
    def type(self) -> str:
        """Dialog type (alert, confirm, prompt, beforeunload)."""
        ...

    @property
    def message(self) -> str:
        """Message displayed in the dialog."""
        ...

    async def accept(self, prompt_text: str | None = None) -> None:
        """Accept the dialog."""
        ...

    async def dismiss(self) -> None:
        """Dismiss the dialog."""
        ...


@runtime_checkable
class IPage(Protocol):
    """Contract for page interactions the core relies on."""

    @property
    def url(self) -> str:
        """Current page URL."""
        ...

    def is_closed(self) -> bool:
        """Whether the page has been closed."""
        ...

    def on(self, event: str, f: Callable[..., Any]) -> None:
        """Register an event listener."""
        ...

    def remove_listener(self, event: str, f: Callable[..., Any]) -> None:
        """Remove an event listener."""
        ...

    async def route(self, url: str, handler: Callable[..., Any]) -> None:
        """Route matching requests through a handler."""
        ...

    async def unroute(self, url: str, handler: Callable[..., Any] | None = None) -> None:
        """Remove a route handler."""
        ...

    async def add_init_script(self, script: str | None = None) -> None:
        """Add a script evaluated on every new document."""
        ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Evaluate JavaScript in the page context."""
        ...


@runtime_checkable
class IBrowser(Protocol):
    """Contract for the browser a session attaches to.

    This is a Playwright ``BrowserContext``: it emits ``"page"`` for every
    new page and lists the pages it owns.
    """

    @property
    def pages(self) -> list[IPage]:
        """Pages currently owned by the browser."""
        ...

    def on(self, event: str, f: Callable[..., Any]) -> None:
        """Register an event listener."""
        ...

    def remove_listener(self, event: str, f: Callable[..., Any]) -> None:
        """Remove an event listener."""
        ...

    async def close(self) -> None:
        """Close the browser and all of its pages."""
        ...
