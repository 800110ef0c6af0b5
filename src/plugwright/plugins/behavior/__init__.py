"""Behavior plugins for human-like interaction."""

from plugwright.plugins.behavior.dialogs import DisableDialogsPlugin
from plugwright.plugins.behavior.mouse import HumanCursor, Point

__all__ = [
    "DisableDialogsPlugin",
    "HumanCursor",
    "Point",
]
