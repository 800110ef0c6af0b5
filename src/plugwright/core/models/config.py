"""Configuration models using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LaunchConfig(BaseModel):
    """Browser launch configuration."""

    headless: bool = True
    channel: str | None = None
    slow_mo: float = 0
    timeout: float = 30000
    args: list[str] = []

    def to_options(self) -> dict[str, Any]:
        """Keyword arguments for ``BrowserType.launch``."""
        options: dict[str, Any] = {
            "headless": self.headless,
            "slow_mo": self.slow_mo,
            "timeout": self.timeout,
            "args": list(self.args),
        }
        if self.channel:
            options["channel"] = self.channel
        return options


class InterceptionConfig(BaseModel):
    """Request interception configuration."""

    url_pattern: str = "**/*"
    # None waits for every observer forever
    vote_timeout: float | None = Field(default=None, gt=0)


class CaptchaConfig(BaseModel):
    """reCAPTCHA audio solving configuration."""

    wit_ai_token: str | None = None
    speech_endpoint: str = "https://api.wit.ai/speech?v=20210701"
    max_rounds: int = Field(default=5, ge=1, le=20)
    click_delay_s: tuple[float, float] = (1.0, 3.0)
    request_timeout: float = Field(default=30.0, gt=0)


class LogConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class Config(BaseSettings):
    """Main configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PLUGWRIGHT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    interception: InterceptionConfig = Field(default_factory=InterceptionConfig)
    captcha: CaptchaConfig = Field(default_factory=CaptchaConfig)
    logs: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Config:
        """Load configuration from YAML file."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open() as f:
            data = yaml.safe_load(f)

        return cls(**data) if data else cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create configuration from dictionary."""
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump()


def configure_logging(level: str = "INFO") -> None:
    """Filter structlog output below ``level``."""
    import logging

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
    )
