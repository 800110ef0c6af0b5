"""Storage plugins."""

from plugwright.plugins.storage.cookies import ManageCookiesPlugin

__all__ = ["ManageCookiesPlugin"]
