"""Resource blocking plugin."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from plugwright.core.events.types import EventType
from plugwright.core.plugin import Plugin

if TYPE_CHECKING:
    from plugwright.core.interception.arbitration import InterceptedRequest

logger = structlog.get_logger(__name__)


class ResourceType(str, Enum):
    """Resource types reported by the browser for each request."""

    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    SCRIPT = "script"
    TEXTTRACK = "texttrack"
    XHR = "xhr"
    FETCH = "fetch"
    EVENTSOURCE = "eventsource"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    OTHER = "other"


class BlockResourcesPlugin(Plugin):
    """Aborts requests for the configured resource types."""

    requires_interception = True

    def __init__(self, *resources: ResourceType | str) -> None:
        super().__init__()
        self.resources = {ResourceType(resource) for resource in resources}
        self.blocked = 0

    def block(self, *resources: ResourceType | str) -> None:
        self.resources.update(ResourceType(resource) for resource in resources)

    def unblock(self, *resources: ResourceType | str) -> None:
        self.resources.difference_update(ResourceType(resource) for resource in resources)

    async def process_request(self, request: InterceptedRequest) -> None:
        if request.resource_type not in {resource.value for resource in self.resources}:
            await request.continue_()
            return

        self.blocked += 1
        logger.debug("Request blocked", url=request.url, resource_type=request.resource_type)
        await request.abort()
        if self.session is not None:
            await self.session.events.emit(
                EventType.REQUEST_BLOCKED,
                {"url": request.url, "resource_type": request.resource_type},
                source=self.name,
            )
