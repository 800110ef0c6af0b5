"""Entry-point plugin registry."""

from plugwright.core.registry.hookspecs import PlugwrightSpecs, hookimpl, hookspec
from plugwright.core.registry.manager import PluginManager

__all__ = [
    "PlugwrightSpecs",
    "PluginManager",
    "hookimpl",
    "hookspec",
]
