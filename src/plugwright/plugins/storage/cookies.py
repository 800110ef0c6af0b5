"""Cookie persistence plugin.

Cookies are stored in a single JSON file that maps profile names to the
cookie lists returned by ``BrowserContext.cookies()``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import structlog

from plugwright.core.plugin import Plugin

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IPage

logger = structlog.get_logger(__name__)

CookieMode = Literal["monitor", "manual"]


class ManageCookiesPlugin(Plugin):
    """Loads a cookie profile into new pages and saves it back."""

    def __init__(
        self,
        save_location: Path | str,
        mode: CookieMode = "monitor",
        profile: str = "default",
    ) -> None:
        super().__init__()
        if mode not in ("monitor", "manual"):
            raise ValueError(f"Unknown cookie mode: {mode}")

        self.save_location = Path(save_location)
        self.mode = mode
        self.profile = profile

    # =========================================================================
    # Storage
    # =========================================================================

    def read_profiles(self) -> dict[str, list[dict[str, Any]]]:
        """All stored profiles; empty when the file does not exist yet."""
        if not self.save_location.exists():
            return {}

        try:
            with self.save_location.open() as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Cookie file is not valid JSON", path=str(self.save_location), error=str(e))
            return {}

        return data if isinstance(data, dict) else {}

    def write_profiles(self, profiles: dict[str, list[dict[str, Any]]]) -> None:
        self.save_location.parent.mkdir(parents=True, exist_ok=True)
        with self.save_location.open("w") as f:
            json.dump(profiles, f, indent=2)

    def stored_cookies(self, profile: str | None = None) -> list[dict[str, Any]]:
        return list(self.read_profiles().get(profile or self.profile, []))

    # =========================================================================
    # Operations
    # =========================================================================

    async def save(self, page: IPage) -> int:
        """Store the page context's cookies under the current profile."""
        if self.is_stopped or page.is_closed():
            return 0

        cookies = await page.context.cookies()  # type: ignore[attr-defined]
        profiles = self.read_profiles()
        profiles[self.profile] = cookies
        self.write_profiles(profiles)

        logger.debug("Cookies saved", profile=self.profile, count=len(cookies))
        return len(cookies)

    async def load(self, page: IPage) -> int:
        """Add the current profile's cookies to the page context."""
        if self.is_stopped or page.is_closed():
            return 0

        cookies = self.stored_cookies()
        if cookies:
            await page.context.add_cookies(cookies)  # type: ignore[attr-defined]

        logger.debug("Cookies loaded", profile=self.profile, count=len(cookies))
        return len(cookies)

    def clear(self, profile: str | None = None) -> None:
        """Forget the stored cookies of a profile."""
        profiles = self.read_profiles()
        if profiles.pop(profile or self.profile, None) is not None:
            self.write_profiles(profiles)
            logger.info("Cookie profile cleared", profile=profile or self.profile)

    async def switch_profile(self, profile: str, page: IPage | None = None) -> None:
        """Use another profile; ``page`` receives its cookies when given."""
        self.profile = profile
        logger.info("Cookie profile switched", profile=profile)
        if page is not None:
            await self.load(page)

    # =========================================================================
    # Hooks
    # =========================================================================

    async def on_page_created(self, page: IPage) -> None:
        await self.load(page)

        if self.mode != "monitor":
            return

        async def on_load(*_: Any) -> None:
            try:
                await self.save(page)
            except Exception as e:
                logger.warning("Failed to save cookies", profile=self.profile, error=str(e))

        page.on("load", on_load)
        self.add_subscription(lambda: page.remove_listener("load", on_load))
