"""Request arbitration: reconcile observer votes into one routing decision.

Every observer of an intercepted request gets its own ``InterceptedRequest``
and may vote ``respond``, ``abort`` or ``continue``. After each vote the
``Arbitration`` applies the first rule that holds:

1. any respond vote          -> fulfill with the first respond arguments
2. any abort vote, all voted -> abort with the first abort arguments
3. every observer continued  -> continue with the first continue arguments

The host route is resolved at most once; votes cast afterwards are absorbed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IRequest, IRoute

logger = structlog.get_logger(__name__)


class RequestAction(str, Enum):
    """Terminal actions an observer can vote for."""

    RESPOND = "respond"
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass
class VoteArguments:
    """Arguments recorded with the first vote for an action."""

    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class Arbitration:
    """Vote state for a single intercepted request."""

    def __init__(self, route: IRoute, expected: int) -> None:
        """
        Args:
            route: Host route that receives the final decision
            expected: Number of observers registered when the request arrived
        """
        self.route = route
        self.expected = expected
        self.resolution: RequestAction | None = None
        self._counts = dict.fromkeys(RequestAction, 0)
        self._arguments: dict[RequestAction, VoteArguments] = {}
        self._handled = False
        self._done = asyncio.Event()

    @property
    def handled(self) -> bool:
        """Whether a decision has been taken for this request."""
        return self._handled

    @property
    def total(self) -> int:
        """Number of votes cast so far."""
        return sum(self._counts.values())

    def count(self, action: RequestAction) -> int:
        """Number of votes cast for ``action``."""
        return self._counts[action]

    def arguments(self, action: RequestAction) -> VoteArguments | None:
        """First-seen arguments for ``action``, if any vote was cast."""
        return self._arguments.get(action)

    def decide(self) -> RequestAction | None:
        """Return the action the current votes resolve to, if any."""
        if self._counts[RequestAction.RESPOND] >= 1:
            return RequestAction.RESPOND
        if self._counts[RequestAction.ABORT] >= 1 and self.total == self.expected:
            return RequestAction.ABORT
        if self._counts[RequestAction.CONTINUE] == self.expected:
            return RequestAction.CONTINUE
        return None

    async def vote(self, action: RequestAction, *args: Any, **kwargs: Any) -> None:
        """Record a vote and resolve the request once a rule is satisfied."""
        self._counts[action] += 1
        self._arguments.setdefault(action, VoteArguments(args, kwargs))

        if self._handled:
            return

        decision = self.decide()
        if decision is not None:
            await self._resolve(decision)

    async def settle(self) -> None:
        """Resolve now, counting every missing vote as continue."""
        if self._handled:
            return
        if self._counts[RequestAction.RESPOND]:
            await self._resolve(RequestAction.RESPOND)
        elif self._counts[RequestAction.ABORT]:
            await self._resolve(RequestAction.ABORT)
        else:
            await self._resolve(RequestAction.CONTINUE)

    def abandon(self) -> None:
        """Give up on the request without touching the host (page is gone)."""
        self._handled = True
        self._done.set()

    async def wait(self, timeout: float | None = None) -> None:
        """
        Wait until the request has been resolved.

        Args:
            timeout: Seconds to wait for the remaining votes before settling.
                None waits indefinitely.
        """
        if timeout is None:
            await self._done.wait()
            return

        try:
            await asyncio.wait_for(self._done.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Request vote timed out",
                url=self.route.request.url,
                votes=self.total,
                expected=self.expected,
            )
            await self.settle()

    async def _resolve(self, action: RequestAction) -> None:
        self._handled = True
        self.resolution = action
        arguments = self._arguments.get(action) or VoteArguments()

        handlers = {
            RequestAction.RESPOND: self.route.fulfill,
            RequestAction.ABORT: self.route.abort,
            RequestAction.CONTINUE: self.route.continue_,
        }
        try:
            await handlers[action](*arguments.args, **arguments.kwargs)
        except Exception as e:
            # Page or request went away while resolving
            logger.debug(
                "Failed to resolve request",
                action=action.value,
                url=self.route.request.url,
                error=str(e),
            )
        finally:
            self._done.set()


class InterceptedRequest:
    """One observer's view of an intercepted request.

    Reads are delegated to the shared host request; the three actions cast
    this observer's vote on the shared ``Arbitration``.
    """

    def __init__(self, arbitration: Arbitration, index: int) -> None:
        self.arbitration = arbitration
        self.index = index
        self.votes: list[RequestAction] = []

    @property
    def request(self) -> IRequest:
        return self.arbitration.route.request

    @property
    def url(self) -> str:
        return self.request.url

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def headers(self) -> dict[str, str]:
        return self.request.headers

    @property
    def resource_type(self) -> str:
        return self.request.resource_type

    @property
    def post_data(self) -> str | None:
        return self.request.post_data

    @property
    def handled(self) -> bool:
        """Whether another observer's vote already resolved the request."""
        return self.arbitration.handled

    @property
    def voted(self) -> bool:
        return bool(self.votes)

    async def respond(self, **kwargs: Any) -> None:
        """Vote to fulfill the request (``Route.fulfill`` keyword arguments)."""
        await self._cast(RequestAction.RESPOND, **kwargs)

    async def abort(self, error_code: str | None = None) -> None:
        """Vote to abort the request."""
        if error_code is None:
            await self._cast(RequestAction.ABORT)
        else:
            await self._cast(RequestAction.ABORT, error_code)

    async def continue_(self, **kwargs: Any) -> None:
        """Vote to let the request proceed (``Route.continue_`` overrides)."""
        await self._cast(RequestAction.CONTINUE, **kwargs)

    async def _cast(self, action: RequestAction, *args: Any, **kwargs: Any) -> None:
        self.votes.append(action)
        await self.arbitration.vote(action, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<InterceptedRequest #{self.index} {self.method} {self.url}>"
