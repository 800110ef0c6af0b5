"""User-agent anonymization plugin."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

import structlog

from plugwright.core.plugin import Plugin

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IPage

logger = structlog.get_logger(__name__)

_PLATFORM = re.compile(r"\([^)]+\)")
WINDOWS_PLATFORM = "(Windows NT 10.0; Win64; x64)"


def anonymize(user_agent: str) -> str:
    """Strip the headless marker and replace the platform with a common one."""
    user_agent = user_agent.replace("HeadlessChrome/", "Chrome/")
    return _PLATFORM.sub(WINDOWS_PLATFORM, user_agent, count=1)


class AnonymizeUserAgentPlugin(Plugin):
    """Presents a regular desktop Chrome user agent on every page."""

    async def on_page_created(self, page: IPage) -> None:
        original = await page.evaluate("() => navigator.userAgent")
        if not original:
            return
        user_agent = anonymize(original)
        if user_agent == original or page.is_closed():
            return

        await page.set_extra_http_headers({"User-Agent": user_agent})  # type: ignore[attr-defined]
        await page.add_init_script(
            "Object.defineProperty(Navigator.prototype, 'userAgent', "
            f"{{get: () => {json.dumps(user_agent)}}});"
            "Object.defineProperty(Navigator.prototype, 'platform', {get: () => 'Win32'});"
        )
        logger.debug("User agent anonymized", user_agent=user_agent)
