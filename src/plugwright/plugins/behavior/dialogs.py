"""Dialog suppression plugin."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plugwright.core.events.types import EventType
from plugwright.core.plugin import Plugin

if TYPE_CHECKING:
    from plugwright.core.interception.instrumentor import InterceptedDialog

logger = structlog.get_logger(__name__)


class DisableDialogsPlugin(Plugin):
    """Dismisses every JavaScript dialog."""

    handles_dialogs = True

    def __init__(self, log_messages: bool = False) -> None:
        super().__init__()
        self.log_messages = log_messages

    async def process_dialog(self, dialog: InterceptedDialog) -> None:
        if self.log_messages:
            logger.info("Dialog dismissed", dialog_type=dialog.type, message=dialog.message)

        await dialog.dismiss()
        if self.session is not None:
            await self.session.events.emit(
                EventType.DIALOG_HANDLED,
                {"dialog_type": dialog.type, "action": "dismiss"},
                source=self.name,
            )
