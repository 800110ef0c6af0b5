"""Tests for cookie persistence."""

from __future__ import annotations

import json

import pytest

from plugwright.core.session import Session
from plugwright.plugins.storage.cookies import ManageCookiesPlugin

COOKIE = {"name": "sid", "value": "abc", "domain": "example.com", "path": "/"}


async def attach(browser, plugin):
    session = Session()
    session.add_plugin(plugin)
    await session.attach(browser)
    return session


# ============================================================================
# STORAGE TESTS
# ============================================================================


class TestStorage:
    """Tests for the JSON profile file."""

    def test_invalid_mode_rejected(self, tmp_path):
        """Test that only monitor and manual modes are accepted."""
        with pytest.raises(ValueError):
            ManageCookiesPlugin(tmp_path / "cookies.json", mode="auto")

    def test_missing_file_reads_empty(self, tmp_path):
        """Test that a missing file means no profiles."""
        plugin = ManageCookiesPlugin(tmp_path / "cookies.json")
        assert plugin.read_profiles() == {}
        assert plugin.stored_cookies() == []

    def test_corrupt_file_reads_empty(self, tmp_path):
        """Test that invalid JSON is treated as empty."""
        path = tmp_path / "cookies.json"
        path.write_text("{not json")
        assert ManageCookiesPlugin(path).read_profiles() == {}

    def test_write_creates_parent_dirs(self, tmp_path):
        """Test that the save location's directory is created."""
        path = tmp_path / "nested" / "dir" / "cookies.json"
        plugin = ManageCookiesPlugin(path)

        plugin.write_profiles({"default": [COOKIE]})

        assert json.loads(path.read_text()) == {"default": [COOKIE]}

    def test_clear_removes_only_profile(self, tmp_path):
        """Test that clearing one profile keeps the others."""
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps({"default": [COOKIE], "work": [COOKIE]}))
        plugin = ManageCookiesPlugin(path)

        plugin.clear()

        assert list(plugin.read_profiles()) == ["work"]


# ============================================================================
# BROWSER TESTS
# ============================================================================


class TestCookieSync:
    """Tests for loading and saving through the browser context."""

    @pytest.mark.asyncio
    async def test_loads_profile_into_new_pages(self, tmp_path, browser, page):
        """Test that stored cookies are added when a page is wired."""
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps({"default": [COOKIE]}))

        await attach(browser, ManageCookiesPlugin(path, mode="manual"))

        assert browser.cookie_jar == [COOKIE]

    @pytest.mark.asyncio
    async def test_monitor_saves_on_load(self, tmp_path, browser, page):
        """Test that monitor mode saves cookies after each page load."""
        path = tmp_path / "cookies.json"
        plugin = ManageCookiesPlugin(path, profile="shop")
        await attach(browser, plugin)

        browser.cookie_jar.append(COOKIE)
        await page.emit("load", page)

        assert plugin.stored_cookies("shop") == [COOKIE]

    @pytest.mark.asyncio
    async def test_manual_does_not_listen(self, tmp_path, browser, page):
        """Test that manual mode leaves saving to the caller."""
        plugin = ManageCookiesPlugin(tmp_path / "cookies.json", mode="manual")
        await attach(browser, plugin)

        assert page.listener_count("load") == 0
        browser.cookie_jar.append(COOKIE)
        assert await plugin.save(page) == 1
        assert plugin.stored_cookies() == [COOKIE]

    @pytest.mark.asyncio
    async def test_close_removes_load_listener(self, tmp_path, browser, page):
        """Test that the load listener is released with the browser."""
        plugin = ManageCookiesPlugin(tmp_path / "cookies.json")
        session = await attach(browser, plugin)
        assert page.listener_count("load") == 1

        await session.close()

        assert page.listener_count("load") == 0

    @pytest.mark.asyncio
    async def test_stopped_plugin_does_nothing(self, tmp_path, browser, page):
        """Test that save and load are no-ops while stopped."""
        plugin = ManageCookiesPlugin(tmp_path / "cookies.json", mode="manual")
        await attach(browser, plugin)
        await plugin.stop()

        browser.cookie_jar.append(COOKIE)

        assert await plugin.save(page) == 0
        assert await plugin.load(page) == 0
        assert not (tmp_path / "cookies.json").exists()

    @pytest.mark.asyncio
    async def test_switch_profile_loads_cookies(self, tmp_path, browser, page):
        """Test switching profiles and loading the new one."""
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps({"work": [COOKIE]}))
        plugin = ManageCookiesPlugin(path, mode="manual")
        await attach(browser, plugin)
        assert browser.cookie_jar == []

        await plugin.switch_profile("work", page)

        assert plugin.profile == "work"
        assert browser.cookie_jar == [COOKIE]
