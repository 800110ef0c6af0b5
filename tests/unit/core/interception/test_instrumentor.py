"""Tests for the per-page instrumentor."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from plugwright.core.interception.instrumentor import InterceptedDialog, PageInstrumentor
from tests.conftest import FakeDialog, FakePage


def voter(action: str, log: list[str] | None = None):
    async def observe(request):
        if log is not None:
            log.append(action)
        if action == "respond":
            await request.respond(status=200)
        elif action == "abort":
            await request.abort()
        else:
            await request.continue_()

    return observe


# ============================================================================
# OBSERVER REGISTRATION
# ============================================================================


class TestObservers:
    """Tests for observer fan-out lists."""

    def test_request_disposer_is_idempotent(self):
        """Test that disposing twice removes the observer once."""
        instrumentor = PageInstrumentor(FakePage())
        dispose = instrumentor.add_request_observer(voter("continue"))
        instrumentor.add_request_observer(voter("abort"))

        dispose()
        dispose()

        assert instrumentor.request_observer_count == 1

    def test_dialog_listener_follows_observers(self):
        """Test that the page dialog listener exists only while observed."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        assert page.listener_count("dialog") == 0
        first = instrumentor.add_dialog_observer(voter("continue"))
        second = instrumentor.add_dialog_observer(voter("continue"))
        assert page.listener_count("dialog") == 1

        first()
        assert page.listener_count("dialog") == 1
        second()
        assert page.listener_count("dialog") == 0


# ============================================================================
# INTERCEPTION SWITCH
# ============================================================================


class TestInterceptionSwitch:
    """Tests for enabling and disabling the route tap."""

    @pytest.mark.asyncio
    async def test_enable_is_idempotent(self):
        """Test that the route is installed once."""
        page = FakePage()
        instrumentor = PageInstrumentor(page, url_pattern="**/api/*")

        await instrumentor.enable_interception()
        await instrumentor.enable_interception()

        assert page.route_calls == 1
        assert page.routes[0][0] == "**/api/*"
        assert instrumentor.intercepting

    @pytest.mark.asyncio
    async def test_disable_removes_route(self):
        """Test that disabling unroutes the same handler."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        await instrumentor.enable_interception()
        await instrumentor.disable_interception()
        await instrumentor.disable_interception()

        assert page.unroute_calls == 1
        assert page.routes == []
        assert not instrumentor.intercepting

    @pytest.mark.asyncio
    async def test_closed_page_is_skipped(self):
        """Test that a closed page is never routed."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)
        await page.close()

        await instrumentor.enable_interception()

        assert page.route_calls == 0
        assert not instrumentor.intercepting

    @pytest.mark.asyncio
    async def test_route_failure_on_closing_page_is_swallowed(self):
        """Test that a page closing mid-setup is abandoned silently."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def route(url, handler):
            page._closed = True
            raise RuntimeError("Target closed")

        page.route = route
        await instrumentor.enable_interception()

        assert not instrumentor.intercepting

    @pytest.mark.asyncio
    async def test_route_failure_on_open_page_propagates(self):
        """Test that unexpected host failures are raised."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def route(url, handler):
            raise RuntimeError("boom")

        page.route = route
        with pytest.raises(RuntimeError):
            await instrumentor.enable_interception()
        assert not instrumentor.intercepting


# ============================================================================
# REQUEST TAP
# ============================================================================


class TestRequestTap:
    """Tests for request arbitration through the page route."""

    @pytest.mark.asyncio
    async def test_no_observers_continues(self):
        """Test that a request with no observers is continued."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)
        await instrumentor.enable_interception()

        route = await page.request()

        route.continue_.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_every_observer_sees_the_request(self):
        """Test that all observers vote on the same request."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)
        log: list[str] = []
        instrumentor.add_request_observer(voter("continue", log))
        instrumentor.add_request_observer(voter("continue", log))
        instrumentor.add_request_observer(voter("abort", log))
        await instrumentor.enable_interception()

        route = await page.request()

        assert sorted(log) == ["abort", "continue", "continue"]
        route.abort.assert_awaited_once()
        route.continue_.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_observer_counts_as_continue(self):
        """Test that a raising observer does not stall the others."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def broken(request):
            raise ValueError("observer bug")

        instrumentor.add_request_observer(broken)
        instrumentor.add_request_observer(voter("continue"))
        await instrumentor.enable_interception()

        route = await asyncio.wait_for(page.request(), timeout=1)

        route.continue_.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_silent_observer_settled_by_timeout(self):
        """Test that the vote timeout settles a stalled request."""
        page = FakePage()
        instrumentor = PageInstrumentor(page, vote_timeout=0.01)

        async def silent(request):
            await asyncio.sleep(10)

        instrumentor.add_request_observer(silent)
        instrumentor.add_request_observer(voter("abort"))
        await instrumentor.enable_interception()

        route = await asyncio.wait_for(page.request(), timeout=1)

        route.abort.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_observer_snapshot_taken_per_request(self):
        """Test that observers added mid-request do not change the expected count."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def late_registrar(request):
            instrumentor.add_request_observer(voter("abort"))
            await request.continue_()

        instrumentor.add_request_observer(late_registrar)
        await instrumentor.enable_interception()

        route = await page.request()

        route.continue_.assert_awaited_once()


# ============================================================================
# DIALOG TAP
# ============================================================================


class TestDialogTap:
    """Tests for dialog fan-out."""

    @pytest.mark.asyncio
    async def test_first_decision_wins(self):
        """Test that a dialog is decided at most once."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def dismiss(dialog):
            await dialog.dismiss()

        async def accept(dialog):
            await dialog.accept("typed")

        instrumentor.add_dialog_observer(dismiss)
        instrumentor.add_dialog_observer(accept)

        dialog = await page.open_dialog("prompt", "Name?")

        assert dialog.dismiss.await_count + dialog.accept.await_count == 1

    @pytest.mark.asyncio
    async def test_undecided_dialog_is_dismissed(self):
        """Test that a dialog no observer decides is dismissed."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)
        seen = []

        async def ignore(dialog):
            seen.append(dialog.message)

        instrumentor.add_dialog_observer(ignore)

        dialog = await page.open_dialog("confirm", "Leave?")

        assert seen == ["Leave?"]
        dialog.dismiss.assert_awaited_once()
        dialog.accept.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_intercepted_dialog_passes_prompt_text(self):
        """Test accept forwards the prompt text."""
        dialog = FakeDialog("prompt")
        shared = InterceptedDialog(dialog)

        await shared.accept("answer")
        await shared.dismiss()

        dialog.accept.assert_awaited_once_with("answer")
        dialog.dismiss.assert_not_awaited()
        assert shared.handled
        assert shared.type == "prompt"


# ============================================================================
# DISPOSAL
# ============================================================================


class TestDispose:
    """Tests for instrumentor teardown."""

    @pytest.mark.asyncio
    async def test_page_close_disposes(self):
        """Test that closing the page drops observers and notifies the owner."""
        page = FakePage()
        on_dispose = MagicMock()
        instrumentor = PageInstrumentor(page, on_dispose=on_dispose)
        instrumentor.add_request_observer(voter("continue"))
        instrumentor.add_dialog_observer(voter("continue"))

        await page.close()

        assert instrumentor.disposed
        assert instrumentor.request_observer_count == 0
        assert instrumentor.dialog_observer_count == 0
        assert page.listener_count("dialog") == 0
        assert page.listener_count("close") == 0
        on_dispose.assert_called_once_with(instrumentor)

    @pytest.mark.asyncio
    async def test_dispose_abandons_pending_requests(self):
        """Test that in-flight requests stop waiting without resolving."""
        page = FakePage()
        instrumentor = PageInstrumentor(page)

        async def silent(request):
            await asyncio.sleep(10)

        instrumentor.add_request_observer(silent)
        await instrumentor.enable_interception()

        pending = asyncio.create_task(page.request())
        await asyncio.sleep(0)
        instrumentor.dispose()
        instrumentor.dispose()

        route = await asyncio.wait_for(pending, timeout=1)
        assert route.resolutions == 0
