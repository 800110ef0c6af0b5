"""CAPTCHA plugins."""

from plugwright.plugins.captcha.recaptcha import SolveRecaptchaPlugin, parse_transcription

__all__ = [
    "SolveRecaptchaPlugin",
    "parse_transcription",
]
