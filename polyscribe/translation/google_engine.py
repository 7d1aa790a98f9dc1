"""Google Cloud Translation engine speaking the v2 REST API."""

import asyncio
import logging
import aiohttp
from typing import Optional

from .base import AbstractTranslationBackend
from ..errors import TranslationFailed
from ..models.language import Language

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://translation.googleapis.com/language/translate/v2"


class GoogleTranslateEngine(AbstractTranslationBackend):
    """Simple engine for sending text to Google Translate and getting the translation back."""

    service_name = "Google Cloud Translation"

    def __init__(self, api_key: str, endpoint: str = DEFAULT_ENDPOINT, timeout: float = 30.0):
        """Initialize Google Translate engine.

        Args:
            api_key: Google Cloud API key with the Translation API enabled
            endpoint: Translation v2 endpoint URL
            timeout: Total request timeout in seconds
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout

        logger.info(f"GoogleTranslateEngine initialized with endpoint: {endpoint}")

    async def translate(self, text: str, target: Language, source: Optional[Language] = None) -> str:
        """Send text to the Translation API and return the translated text.

        Raises:
            TranslationFailed: If the API call fails or returns no translation
        """
        data = {
            "q": text,
            "target": target.translation_code,
            "format": "text",
        }
        if source is not None:
            data["source"] = source.translation_code

        logger.debug(f"Translating {len(text)} characters from {source.translation_code if source else 'auto'} "
                     f"to {target.translation_code}")
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, params={"key": self.api_key}, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TranslationFailed(f"Translation API error: {response.status} - {error_text}")

                    result = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranslationFailed(f"Translation request failed: {e}") from e

        try:
            translated = result["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise TranslationFailed(f"Unexpected Translation API response: {result!r}") from e

        return translated.strip()
