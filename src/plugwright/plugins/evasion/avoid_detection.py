"""Anti-detection plugin: hides common automation indicators."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plugwright.core.plugin import Plugin
from plugwright.plugins.evasion.user_agent import AnonymizeUserAgentPlugin

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IPage

logger = structlog.get_logger(__name__)

# One init script per evasion, injected in this order
INJECTIONS: dict[str, str] = {
    "webdriver": """
Object.defineProperty(Navigator.prototype, 'webdriver', {get: () => undefined});
""",
    "cdc_markers": """
for (const key of Object.keys(window)) {
    if (key.startsWith('cdc_')) delete window[key];
}
""",
    "chrome_runtime": """
if (!window.chrome) window.chrome = {};
if (!window.chrome.runtime) window.chrome.runtime = {};
""",
    "plugins": """
Object.defineProperty(navigator, 'plugins', {
    get: () => {
        const arr = [1, 2, 3, 4, 5];
        arr.item = (i) => arr[i];
        arr.namedItem = (n) => arr.find(p => p.name === n);
        arr.refresh = () => {};
        return arr;
    }
});
""",
    "languages": """
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
""",
    "permissions": """
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications' ?
    Promise.resolve({state: Notification.permission}) :
    originalQuery(parameters)
);
""",
}


class AvoidDetectionPlugin(Plugin):
    """Injects evasion scripts into every new page."""

    def __init__(self, injections: dict[str, str] | None = None) -> None:
        super().__init__()
        self.injections = dict(INJECTIONS if injections is None else injections)
        self.add_dependency(AnonymizeUserAgentPlugin())

    async def on_page_created(self, page: IPage) -> None:
        for name, script in self.injections.items():
            if page.is_closed():
                return
            await page.add_init_script(script)
            logger.debug("Evasion injected", evasion=name)
