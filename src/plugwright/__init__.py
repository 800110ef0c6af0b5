"""Plugin layer for Playwright browser automation.

The module-level helpers work on one process-wide default session:

    import plugwright

    plugwright.avoid_detection()
    plugwright.block_resources("image", "font")
    context = await plugwright.launch(headless=False)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from plugwright.core import (
    AsyncEventBus,
    Event,
    EventType,
    Plugin,
    PluginError,
    PluginManager,
    PlugwrightError,
    Session,
    SessionError,
)
from plugwright.core.interfaces.browser import IBrowser
from plugwright.core.models.config import Config, configure_logging
from plugwright.plugins import (
    AnonymizeUserAgentPlugin,
    AvoidDetectionPlugin,
    BlockResourcesPlugin,
    DisableDialogsPlugin,
    ManageCookiesPlugin,
    ResourceType,
    SolveRecaptchaPlugin,
)
from plugwright.plugins.storage.cookies import CookieMode

__version__ = "0.1.0"

_default_session: Session | None = None


def get_session() -> Session:
    """The default session, created on first use."""
    global _default_session
    if _default_session is None:
        _default_session = Session()
    return _default_session


def set_session(session: Session | None) -> None:
    """Replace the default session; None resets it."""
    global _default_session
    _default_session = session


def add_plugin(plugin: Plugin) -> Plugin:
    return get_session().add_plugin(plugin)


async def clear_plugins() -> None:
    await get_session().clear_plugins()


async def launch(**options: Any) -> IBrowser:
    return await get_session().launch(**options)


async def connect(endpoint_url: str, **options: Any) -> IBrowser:
    return await get_session().connect(endpoint_url, **options)


def anonymize_user_agent() -> AnonymizeUserAgentPlugin:
    plugin = AnonymizeUserAgentPlugin()
    add_plugin(plugin)
    return plugin


def avoid_detection() -> AvoidDetectionPlugin:
    plugin = AvoidDetectionPlugin()
    add_plugin(plugin)
    return plugin


def block_resources(*resources: ResourceType | str) -> BlockResourcesPlugin:
    plugin = BlockResourcesPlugin(*resources)
    add_plugin(plugin)
    return plugin


def disable_dialogs(log_messages: bool = False) -> DisableDialogsPlugin:
    plugin = DisableDialogsPlugin(log_messages)
    add_plugin(plugin)
    return plugin


def manage_cookies(
    save_location: Path | str,
    mode: CookieMode = "monitor",
    profile: str = "default",
) -> ManageCookiesPlugin:
    plugin = ManageCookiesPlugin(save_location, mode=mode, profile=profile)
    add_plugin(plugin)
    return plugin


def solve_recaptchas(wit_ai_access_token: str | None = None) -> SolveRecaptchaPlugin:
    plugin = SolveRecaptchaPlugin(wit_ai_access_token, config=get_session().config.captcha)
    add_plugin(plugin)
    return plugin


__all__ = [
    "AnonymizeUserAgentPlugin",
    "AsyncEventBus",
    "AvoidDetectionPlugin",
    "BlockResourcesPlugin",
    "Config",
    "DisableDialogsPlugin",
    "Event",
    "EventType",
    "ManageCookiesPlugin",
    "Plugin",
    "PluginError",
    "PluginManager",
    "PlugwrightError",
    "ResourceType",
    "Session",
    "SessionError",
    "SolveRecaptchaPlugin",
    "__version__",
    "add_plugin",
    "anonymize_user_agent",
    "avoid_detection",
    "block_resources",
    "clear_plugins",
    "configure_logging",
    "connect",
    "disable_dialogs",
    "get_session",
    "launch",
    "manage_cookies",
    "set_session",
    "solve_recaptchas",
]
