"""Network plugins."""

from plugwright.plugins.network.block_resources import BlockResourcesPlugin, ResourceType

__all__ = [
    "BlockResourcesPlugin",
    "ResourceType",
]
