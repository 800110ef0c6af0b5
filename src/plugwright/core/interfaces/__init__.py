"""Core interfaces (protocols) for the host browser."""

from plugwright.core.interfaces.browser import IBrowser, IDialog, IPage, IRequest, IRoute

__all__ = [
    "IBrowser",
    "IDialog",
    "IPage",
    "IRequest",
    "IRoute",
]
