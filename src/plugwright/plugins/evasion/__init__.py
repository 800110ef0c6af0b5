"""Evasion plugins for anti-detection."""

from plugwright.plugins.evasion.avoid_detection import INJECTIONS, AvoidDetectionPlugin
from plugwright.plugins.evasion.user_agent import AnonymizeUserAgentPlugin, anonymize

__all__ = [
    "INJECTIONS",
    "AnonymizeUserAgentPlugin",
    "AvoidDetectionPlugin",
    "anonymize",
]
