"""
Doubao Seed Translation client.
Performs one HTTP call per chunk against the Volcengine Ark responses API.
"""
from __future__ import annotations

import asyncio
import aiohttp
import json
import logging
import re
from typing import Dict, Optional, Any
from abc import ABC, abstractmethod

from .validation import sanitize_text
from .errors import (
    MissingCredentialError,
    HttpError,
    InvalidResponseFormatError,
    NetworkError,
)
from .constants import (
    PROVIDER_ENDPOINT,
    PROVIDER_MODEL,
    MAX_INPUT_CHARS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TARGET_LANGUAGE,
    PRESERVED_LANGUAGE_TAGS,
    LOG_PREVIEW_CHARS,
)

# Meta-commentary lines the model sometimes prepends/appends to its output
META_LINE_PATTERN = re.compile(
    r"^[ \t]*(?:注：|注:|Note:|Warning:|Translator's note:|Translation note:|As an AI\b).*(?:\n|$)",
    re.MULTILINE,
)
# Inline notes such as "(AI translation)" or "（机器翻译 translation）"
META_PAREN_PATTERN = re.compile(
    r"[(（][^)）]*\b(?:translat\w*|AI)\b[^)）]*[)）]",
    re.IGNORECASE,
)


def normalize_language(code: str) -> str:
    """
    Reduce a regional language tag to its base language.
    'zh-CN' -> 'zh', 'pt_BR' -> 'pt'. Script tags the provider knows stay intact.
    """
    if not code:
        return DEFAULT_TARGET_LANGUAGE
    code = code.strip().replace('_', '-')
    if code in PRESERVED_LANGUAGE_TAGS:
        return code
    return code.split('-', 1)[0].lower()


def clean_meta_commentary(text: str) -> str:
    """Remove translator/AI disclaimers the provider occasionally emits."""
    text = META_LINE_PATTERN.sub('', text)
    text = META_PAREN_PATTERN.sub('', text)
    return text.strip()


def extract_translation(data: Any) -> str:
    """
    Pull the translated text out of either known response shape:
    choices[0].message.content, falling back to output[0].content[0].text.
    """
    if not isinstance(data, dict):
        return ""

    translation = ""
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict):
            translation = clean_meta_commentary(message.get("content") or "")

    if not translation:
        output = data.get("output")
        if isinstance(output, list) and output and isinstance(output[0], dict):
            content = output[0].get("content")
            if isinstance(content, list) and content and isinstance(content[0], dict):
                translation = clean_meta_commentary(content[0].get("text") or "")

    return translation


class BaseTranslator(ABC):
    def __init__(self, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session: Optional[aiohttp.ClientSession] = None
        self.timeout_seconds = timeout_seconds
        # Longest text a single request accepts; None means no limit
        self.max_input_chars: Optional[int] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """
        Get or create an aiohttp ClientSession.
        Reuses the session if it's already open, creates a new one otherwise.

        Important: Call close() when done to avoid resource leaks.
        """
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        """
        Close the aiohttp session.
        Call this when the translator is no longer needed to prevent resource leaks.
        """
        if self._session:
            try:
                await self._session.close()
            except Exception as e:
                self.logger.warning(f"Error closing session: {e}")
            finally:
                self._session = None

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - automatically closes session."""
        await self.close()

    @abstractmethod
    async def translate(self, text: str, api_key: str, target_language: str = DEFAULT_TARGET_LANGUAGE) -> str:
        pass


class SeedTranslator(BaseTranslator):
    """
    Single-turn, single-input-item client for the Seed translation model.
    Source language is always auto-detected by the provider.
    """

    def __init__(
        self,
        endpoint: str = PROVIDER_ENDPOINT,
        model: str = PROVIDER_MODEL,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        max_input_chars: int = MAX_INPUT_CHARS,
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.endpoint = endpoint
        self.model = model
        self.max_input_chars = max_input_chars

    def build_payload(self, text: str, target_language: str) -> Dict[str, Any]:
        # Never add source_language: an explicit "auto" is rejected by the provider.
        return {
            "model": self.model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_text",
                            "text": text,
                            "translation_options": {
                                "target_language": target_language,
                            },
                        }
                    ],
                }
            ],
        }

    async def translate(self, text: str, api_key: str, target_language: str = DEFAULT_TARGET_LANGUAGE) -> str:
        """
        Translate one piece of text.

        Returns:
            The translation, or "" for empty input (no network call).

        Raises:
            MissingCredentialError, HttpError, InvalidResponseFormatError, NetworkError
        """
        if not text or not text.strip():
            return ""

        sanitized = sanitize_text(text, self.max_input_chars)
        language = normalize_language(target_language)

        if not api_key:
            raise MissingCredentialError()

        payload = self.build_payload(sanitized, language)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            session = await self._get_session()
            async with session.post(self.endpoint, data=json.dumps(payload), headers=headers) as resp:
                status = resp.status
                body = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Translation request failed: {e!r}")
            self.logger.debug(f"Failed text: {sanitized[:LOG_PREVIEW_CHARS]}...")
            raise NetworkError(f"Network error: {str(e) or e.__class__.__name__}") from e

        if status < 200 or status >= 300:
            self.logger.error(f"Provider returned {status} for text: {sanitized[:LOG_PREVIEW_CHARS]}...")
            raise HttpError(status, self._parse_error_detail(body))

        try:
            data = json.loads(body)
        except ValueError as e:
            raise InvalidResponseFormatError() from e

        translation = extract_translation(data)
        if not translation:
            self.logger.error(f"Unexpected API response: {body[:200]}")
            raise InvalidResponseFormatError()

        return translation

    @staticmethod
    def _parse_error_detail(body: str) -> Optional[str]:
        """Best-effort read of {error: {message}}; falls back to the raw body."""
        if not body:
            return None
        try:
            data = json.loads(body)
        except ValueError:
            return body.strip()[:200] or None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return None
