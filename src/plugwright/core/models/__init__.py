"""Configuration models."""

from plugwright.core.models.config import (
    CaptchaConfig,
    Config,
    InterceptionConfig,
    LaunchConfig,
    LogConfig,
    configure_logging,
)

__all__ = [
    "CaptchaConfig",
    "Config",
    "InterceptionConfig",
    "LaunchConfig",
    "LogConfig",
    "configure_logging",
]
