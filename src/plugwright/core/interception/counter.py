"""Session-wide reference count of plugins that need request interception."""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class InterceptionCounter:
    """Counts active activations of interception-requiring plugins.

    ``acquire`` and ``release`` report the 0 -> 1 and 1 -> 0 transitions so
    the caller can enable or disable interception on open pages.
    """

    def __init__(self) -> None:
        self._count = 0

    @property
    def value(self) -> int:
        return self._count

    @property
    def active(self) -> bool:
        return self._count > 0

    def acquire(self) -> bool:
        """Increment; True when interception just became needed."""
        self._count += 1
        return self._count == 1

    def release(self) -> bool:
        """Decrement; True when interception is no longer needed."""
        if self._count == 0:
            logger.warning("Interception counter underflow ignored")
            return False
        self._count -= 1
        return self._count == 0

    def __repr__(self) -> str:
        return f"InterceptionCounter(value={self._count})"
