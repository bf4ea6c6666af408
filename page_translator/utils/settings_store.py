import json
import logging
import os
from typing import Any, Dict, Optional

from page_translator.core.constants import KEY_API_KEY, KEY_TARGET_LANGUAGE, DEFAULT_TARGET_LANGUAGE
from page_translator.core.validation import Validator
from page_translator.utils.file_ops import write_json

ENV_API_KEY = "PAGE_TRANSLATOR_API_KEY"
ENV_SETTINGS_PATH = "PAGE_TRANSLATOR_SETTINGS"


class SettingsStore:
    """
    Persistent key-value store for user preferences
    (API key, target language, display mode, enabled / auto-translate flags).
    The translation pipeline only ever reads the API key and target language.
    """

    def __init__(self, path: Optional[str] = None, filename: str = "settings.json"):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = path or os.environ.get(ENV_SETTINGS_PATH) or self._resolve_settings_path(filename)

    def _resolve_settings_path(self, filename: str) -> str:
        base_dir = os.path.join(os.path.expanduser("~"), ".page_translator")
        return os.path.join(base_dir, filename)

    def load(self) -> Dict[str, Any]:
        try:
            if not os.path.exists(self.path):
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to load settings: {e}")
            return {}

    def save(self, data: Dict[str, Any]) -> None:
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        write_json(self.path, Validator.sanitize_settings(data))

    def update(self, **values: Any) -> Dict[str, Any]:
        """Merge values into the stored preferences and persist them."""
        data = Validator.sanitize_settings({**self.load(), **values})
        self.save(data)
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def get_api_key(self) -> str:
        # Environment wins so the workbench can run without a stored key
        return os.environ.get(ENV_API_KEY) or self.get(KEY_API_KEY) or ""

    def get_target_language(self) -> str:
        return self.get(KEY_TARGET_LANGUAGE) or DEFAULT_TARGET_LANGUAGE
