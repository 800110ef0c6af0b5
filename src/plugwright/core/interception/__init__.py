"""Request interception: arbitration, page instrumentation, reference counting."""

from plugwright.core.interception.arbitration import (
    Arbitration,
    InterceptedRequest,
    RequestAction,
    VoteArguments,
)
from plugwright.core.interception.counter import InterceptionCounter
from plugwright.core.interception.instrumentor import (
    DialogObserver,
    InterceptedDialog,
    PageInstrumentor,
    RequestObserver,
)

__all__ = [
    "Arbitration",
    "DialogObserver",
    "InterceptedDialog",
    "InterceptedRequest",
    "InterceptionCounter",
    "PageInstrumentor",
    "RequestAction",
    "RequestObserver",
    "VoteArguments",
]
