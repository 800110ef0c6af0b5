"""reCAPTCHA v2 solver using the audio challenge.

Flow:
1. Click the anchor checkbox with human-like pointer movement
2. Switch to the audio challenge
3. Download the audio clip from inside the challenge frame
4. Transcribe it with the wit.ai speech API
5. Type the answer and verify, or reload the challenge on an empty answer
"""

from __future__ import annotations

import asyncio
import json
import random
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from plugwright.core.events.types import EventType
from plugwright.core.models.config import CaptchaConfig
from plugwright.core.plugin import Plugin
from plugwright.plugins.behavior.mouse import HumanCursor
from plugwright.plugins.evasion.avoid_detection import AvoidDetectionPlugin

if TYPE_CHECKING:
    from plugwright.core.interfaces.browser import IPage

logger = structlog.get_logger(__name__)

ANCHOR_FRAME = "api2/anchor"
CHALLENGE_FRAME = "api2/bframe"

ANCHOR_CHECKBOX = "#recaptcha-anchor"
CHECKED_CHECKBOX = ".recaptcha-checkbox-checked"
AUDIO_BUTTON = ".rc-button-audio"
DOWNLOAD_LINK = ".rc-audiochallenge-tdownload-link"
RESPONSE_INPUT = "#audio-response"
VERIFY_BUTTON = "#recaptcha-verify-button"
RELOAD_BUTTON = "#recaptcha-reload-button"

# Runs inside the challenge frame; returns the clip as a list of byte values
DOWNLOAD_AUDIO_SCRIPT = """
async (selector) => {
    const link = document.querySelector(selector);
    if (!link || !link.href) return null;
    const response = await fetch(link.href, {referrer: ''});
    const buffer = await response.arrayBuffer();
    return Array.from(new Uint8Array(buffer));
}
"""


def parse_transcription(body: str) -> str | None:
    """
    Extract the final transcription from a wit.ai speech response.

    The endpoint streams several JSON objects back to back; the last one
    carrying ``text`` is the final understanding.
    """
    decoder = json.JSONDecoder()
    text: str | None = None
    position = 0

    while position < len(body):
        while position < len(body) and body[position].isspace():
            position += 1
        if position >= len(body):
            break
        try:
            chunk, position = decoder.raw_decode(body, position)
        except json.JSONDecodeError:
            logger.debug("Unparseable speech response tail", offset=position)
            break
        if isinstance(chunk, dict) and chunk.get("text"):
            text = str(chunk["text"])

    return text.strip() if text else None


class SolveRecaptchaPlugin(Plugin):
    """Solves reCAPTCHA v2 checkboxes through the audio challenge."""

    def __init__(
        self,
        wit_ai_access_token: str | None = None,
        *,
        config: CaptchaConfig | None = None,
        cursor: HumanCursor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self.wit_ai_access_token = wit_ai_access_token
        self._config = config
        self.cursor = cursor or HumanCursor()
        self._transport = transport
        self.add_dependency(AvoidDetectionPlugin())

    @property
    def config(self) -> CaptchaConfig:
        """Explicit settings, else those of the session the plugin runs in."""
        if self._config is not None:
            return self._config
        if self.session is not None:
            return self.session.config.captcha
        return CaptchaConfig()

    @property
    def access_token(self) -> str | None:
        return self.wit_ai_access_token or self.config.wit_ai_token

    # =========================================================================
    # Inspection
    # =========================================================================

    def _frame(self, page: IPage, url_part: str) -> Any:
        for frame in page.frames:  # type: ignore[attr-defined]
            if url_part in frame.url:
                return frame
        return None

    async def has_captcha(self, page: IPage) -> bool:
        """Whether the page shows a reCAPTCHA checkbox."""
        if page.is_closed():
            return False

        frame = self._frame(page, ANCHOR_FRAME)
        if frame is None:
            return False
        return await frame.query_selector(ANCHOR_CHECKBOX) is not None

    async def _is_checked(self, page: IPage) -> bool:
        frame = self._frame(page, ANCHOR_FRAME)
        if frame is None:
            return False
        return await frame.query_selector(CHECKED_CHECKBOX) is not None

    # =========================================================================
    # Challenge
    # =========================================================================

    async def _pause(self) -> None:
        low, high = self.config.click_delay_s
        await asyncio.sleep(random.uniform(low, high))

    async def _find_and_click(self, page: IPage, url_part: str, selector: str) -> bool:
        frame = self._frame(page, url_part)
        if frame is None:
            return False

        element = await frame.wait_for_selector(selector)
        if element is None:
            return False

        await self._pause()
        return await self.cursor.click_element(page, element)

    async def _download_audio(self, page: IPage) -> bytes | None:
        frame = self._frame(page, CHALLENGE_FRAME)
        if frame is None:
            return None

        await frame.wait_for_selector(DOWNLOAD_LINK)
        values = await frame.evaluate(DOWNLOAD_AUDIO_SCRIPT, DOWNLOAD_LINK)
        if not values:
            return None
        return bytes(values)

    async def transcribe(self, audio: bytes) -> str | None:
        """
        Send an audio clip to wit.ai.

        Returns:
            The transcription, or None when the request failed or
            nothing was understood
        """
        token = self.access_token
        if not token:
            return None

        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.config.speech_endpoint,
                    content=audio,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "audio/mpeg3",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Speech API request failed", error=str(e))
            return None

        return parse_transcription(response.text)

    async def _submit(self, page: IPage, text: str) -> None:
        frame = self._frame(page, CHALLENGE_FRAME)
        if frame is None:
            return

        await frame.type(RESPONSE_INPUT, text)
        await self._find_and_click(page, CHALLENGE_FRAME, VERIFY_BUTTON)
        await asyncio.sleep(1)

    async def solve_recaptcha(self, page: IPage) -> bool:
        """
        Solve the reCAPTCHA on ``page``.

        Returns:
            True when the checkbox ends up checked
        """
        if self.is_stopped or not self.access_token:
            return False
        if not await self.has_captcha(page):
            return False

        await self._emit(EventType.CAPTCHA_DETECTED, {"url": page.url})

        await self._find_and_click(page, ANCHOR_FRAME, ANCHOR_CHECKBOX)
        if await self._is_checked(page):
            await self._emit(EventType.CAPTCHA_SOLVED, {"url": page.url, "rounds": 0})
            return True

        await self._find_and_click(page, CHALLENGE_FRAME, AUDIO_BUTTON)

        rounds = 0
        while rounds < self.config.max_rounds:
            rounds += 1

            audio = await self._download_audio(page)
            if audio is None:
                logger.warning("Audio challenge unavailable", url=page.url)
                break

            text = await self.transcribe(audio)
            if text:
                logger.debug("Audio transcribed", round=rounds, text=text)
                await self._submit(page, text)
            else:
                await self._find_and_click(page, CHALLENGE_FRAME, RELOAD_BUTTON)

            if await self._is_checked(page):
                logger.info("reCAPTCHA solved", url=page.url, rounds=rounds)
                await self._emit(EventType.CAPTCHA_SOLVED, {"url": page.url, "rounds": rounds})
                return True

        logger.warning("reCAPTCHA not solved", url=page.url, rounds=rounds)
        await self._emit(EventType.CAPTCHA_FAILED, {"url": page.url, "rounds": rounds})
        return False

    async def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        if self.session is not None:
            await self.session.events.emit(event_type, data, source=self.name)
