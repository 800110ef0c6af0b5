"""Event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """All event types published on the session bus."""

    # Browser lifecycle
    BROWSER_ATTACHED = "browser.attached"
    BROWSER_CLOSED = "browser.closed"

    # Plugin lifecycle
    PLUGIN_STARTED = "plugin.started"
    PLUGIN_RESTARTED = "plugin.restarted"
    PLUGIN_STOPPED = "plugin.stopped"
    PLUGIN_ERROR = "plugin.error"

    # Interception
    INTERCEPTION_ENABLED = "interception.enabled"
    INTERCEPTION_DISABLED = "interception.disabled"
    REQUEST_BLOCKED = "network.request_blocked"

    # Dialogs
    DIALOG_HANDLED = "dialog.handled"

    # Detection events
    CAPTCHA_DETECTED = "detection.captcha"
    CAPTCHA_SOLVED = "detection.captcha_solved"
    CAPTCHA_FAILED = "detection.captcha_failed"
