"""
Message contract between UI collaborators (content script, popup, workbench)
and the translation pipeline.

    {"type": "TRANSLATE_TEXT", "payload": {"text": ..., "targetLanguage": ...}}
    -> {"success": True, "translation": ..., "cached": bool}
    |  {"success": False, "error": ...}

    {"type": "CLEAR_CACHE"}
    -> {"success": True, "clearedItems": n} | {"success": False, "error": ...}
"""
import logging
from typing import Any, Dict, Optional

from .constants import MSG_TRANSLATE_TEXT, MSG_CLEAR_CACHE
from .errors import TranslationError, MissingCredentialError
from .translation_pipeline import TranslationPipeline, ProgressCallback

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Missing API key. Please configure in extension popup."


def error_response(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


class MessageRouter:
    """Dispatches runtime messages to the pipeline and shapes the replies."""

    def __init__(self, pipeline: TranslationPipeline, progress_callback: Optional[ProgressCallback] = None):
        self.pipeline = pipeline
        self.progress_callback = progress_callback
        self.handlers = {
            MSG_TRANSLATE_TEXT: self._handle_translate,
            MSG_CLEAR_CACHE: self._handle_clear_cache,
        }

    async def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(message, dict):
            return error_response("Malformed message")

        msg_type = message.get("type")
        handler = self.handlers.get(msg_type)
        if handler is None:
            return error_response(f"Unknown message type: {msg_type}")
        return await handler(message)

    async def _handle_translate(self, message: Dict[str, Any]) -> Dict[str, Any]:
        # Some senders put the fields on the message itself instead of under payload
        payload = message.get("payload") or message
        text = payload.get("text")
        target_language = payload.get("targetLanguage") or None

        if not isinstance(text, str) or not text.strip():
            return error_response("No text provided.")

        try:
            outcome = await self.pipeline.translate(
                text, target_language, progress_callback=self.progress_callback
            )
        except MissingCredentialError:
            logger.error("No API key found")
            return error_response(MISSING_KEY_MESSAGE)
        except TranslationError as e:
            logger.error(f"Translation error: {e}")
            return error_response(str(e) or "Translation failed")
        except Exception:
            logger.exception("Unexpected translation failure")
            return error_response("Translation failed")

        return outcome.to_message()

    async def _handle_clear_cache(self, message: Dict[str, Any]) -> Dict[str, Any]:
        try:
            cleared = self.pipeline.clear_cache()
        except Exception as e:
            logger.exception("Failed to clear cache")
            return error_response(str(e) or "Failed to clear cache")
        return {"success": True, "clearedItems": cleared}
