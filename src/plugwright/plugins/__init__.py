"""Built-in plugins."""

from plugwright.plugins.behavior import DisableDialogsPlugin, HumanCursor
from plugwright.plugins.captcha import SolveRecaptchaPlugin
from plugwright.plugins.evasion import AnonymizeUserAgentPlugin, AvoidDetectionPlugin
from plugwright.plugins.network import BlockResourcesPlugin, ResourceType
from plugwright.plugins.storage import ManageCookiesPlugin

__all__ = [
    "AnonymizeUserAgentPlugin",
    "AvoidDetectionPlugin",
    "BlockResourcesPlugin",
    "DisableDialogsPlugin",
    "HumanCursor",
    "ManageCookiesPlugin",
    "ResourceType",
    "SolveRecaptchaPlugin",
]
