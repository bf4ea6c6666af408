"""
Validation module for the page translator.
Cleans raw text before transport and checks user preferences before use.
"""
import re
import logging
from datetime import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from .constants import (
    MAX_INPUT_CHARS,
    SUPPORTED_LANGUAGES,
    DEFAULT_TARGET_LANGUAGE,
    KEY_API_KEY,
    KEY_TARGET_LANGUAGE,
    KEY_DISPLAY_MODE,
    KEY_EXTENSION_ENABLED,
    KEY_AUTO_TRANSLATE,
)
from .enums import DisplayMode
from .errors import EmptyInputError

logger = logging.getLogger(__name__)

# Non-printable ASCII controls. Tab (0x09), newline (0x0A) and carriage return (0x0D) survive.
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F]')

API_KEY_PATTERN = re.compile(r'^vk-[a-zA-Z0-9]{20,}$')


def sanitize_text(text: str, max_chars: Optional[int] = MAX_INPUT_CHARS) -> str:
    """
    Clean text before it is sent to the provider.

    Truncation happens before the emptiness check, so text whose first
    max_chars characters are all control characters still fails.

    Args:
        text: Raw input text.
        max_chars: Maximum length kept. None disables truncation.

    Raises:
        EmptyInputError: If nothing printable is left.
    """
    sanitized = text or ""
    if max_chars is not None and len(sanitized) > max_chars:
        sanitized = sanitized[:max_chars]

    sanitized = CONTROL_CHARS_PATTERN.sub('', sanitized)

    if not sanitized.strip():
        raise EmptyInputError()

    return sanitized


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ApiKeyValidation:
    is_valid: bool = False
    format: str = "unknown"  # valid | invalid | unknown
    suggestions: List[str] = field(default_factory=list)


class Validator:
    """Static validation utilities for stored preferences."""

    @staticmethod
    def validate_api_key(api_key: str) -> ApiKeyValidation:
        result = ApiKeyValidation()

        if not api_key or not api_key.strip():
            result.format = "invalid"
            result.suggestions.append("API key is required")
            return result

        key = api_key.strip()
        if API_KEY_PATTERN.match(key):
            result.is_valid = True
            result.format = "valid"
            return result

        result.format = "invalid"
        if not key.startswith("vk-"):
            result.suggestions.append('API key should start with "vk-"')
        if len(key) < 22:
            result.suggestions.append("API key appears to be too short")
        if len(key) > 50:
            result.suggestions.append("API key appears to be too long")
        if re.search(r'[^a-zA-Z0-9-]', key):
            result.suggestions.append("API key contains invalid characters")
        return result

    @staticmethod
    def validate_language(language: str) -> ValidationResult:
        if not language:
            return ValidationResult(is_valid=False, errors=["Language is required"])
        if language not in SUPPORTED_LANGUAGES:
            return ValidationResult(is_valid=False, errors=[f'Language "{language}" is not supported'])
        return ValidationResult()

    @staticmethod
    def validate_display_mode(mode: str) -> ValidationResult:
        if not mode:
            return ValidationResult(is_valid=False, errors=["Display mode is required"])
        if mode not in {m.value for m in DisplayMode}:
            return ValidationResult(is_valid=False, errors=[f'Invalid display mode: "{mode}"'])
        return ValidationResult()

    @staticmethod
    def validate_settings(settings: Dict[str, Any]) -> ValidationResult:
        """Validate every recognized preference that is present."""
        result = ValidationResult()

        api_key = settings.get(KEY_API_KEY)
        if api_key:
            key_check = Validator.validate_api_key(api_key)
            if not key_check.is_valid:
                result.is_valid = False
                result.errors.append("Invalid API key format")
                result.warnings.extend(key_check.suggestions)
        else:
            result.warnings.append("API key is not configured")

        language = settings.get(KEY_TARGET_LANGUAGE)
        if language:
            lang_check = Validator.validate_language(language)
            if not lang_check.is_valid:
                result.is_valid = False
                result.errors.extend(lang_check.errors)

        mode = settings.get(KEY_DISPLAY_MODE)
        if mode:
            mode_check = Validator.validate_display_mode(mode)
            if not mode_check.is_valid:
                result.is_valid = False
                result.errors.extend(mode_check.errors)

        return result

    @staticmethod
    def default_settings() -> Dict[str, Any]:
        return {
            KEY_API_KEY: "",
            KEY_TARGET_LANGUAGE: DEFAULT_TARGET_LANGUAGE,
            KEY_DISPLAY_MODE: DisplayMode.BILINGUAL.value,
            KEY_EXTENSION_ENABLED: True,
            KEY_AUTO_TRANSLATE: False,
        }

    @staticmethod
    def sanitize_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
        """Fill missing preferences with defaults and trim the API key."""
        defaults = Validator.default_settings()
        api_key = (settings.get(KEY_API_KEY) or "").strip()

        def _flag(key):
            value = settings.get(key)
            return defaults[key] if value is None else bool(value)

        return {
            KEY_API_KEY: api_key or defaults[KEY_API_KEY],
            KEY_TARGET_LANGUAGE: settings.get(KEY_TARGET_LANGUAGE) or defaults[KEY_TARGET_LANGUAGE],
            KEY_DISPLAY_MODE: settings.get(KEY_DISPLAY_MODE) or defaults[KEY_DISPLAY_MODE],
            KEY_EXTENSION_ENABLED: _flag(KEY_EXTENSION_ENABLED),
            KEY_AUTO_TRANSLATE: _flag(KEY_AUTO_TRANSLATE),
        }

    @staticmethod
    def generate_report(settings: Dict[str, Any]) -> str:
        """Human-readable configuration report for the workbench."""
        validation = Validator.validate_settings(settings)
        lines = [
            "=== Page Translator Configuration Report ===",
            f"Generated: {datetime.now().isoformat()}",
            "",
        ]

        api_key = settings.get(KEY_API_KEY)
        if not api_key:
            key_status = "Not configured"
        elif Validator.validate_api_key(api_key).is_valid:
            key_status = "Valid"
        else:
            key_status = "Invalid"
        lines.append(f"API Key: {key_status}")

        language = settings.get(KEY_TARGET_LANGUAGE)
        lang_status = "Valid" if language and Validator.validate_language(language).is_valid else "Invalid"
        lines.append(f"Target Language: {language or 'Not set'} ({lang_status})")

        mode = settings.get(KEY_DISPLAY_MODE)
        mode_status = "Valid" if mode and Validator.validate_display_mode(mode).is_valid else "Invalid"
        lines.append(f"Display Mode: {mode or 'Not set'} ({mode_status})")

        lines.append(f"Extension Enabled: {'Yes' if settings.get(KEY_EXTENSION_ENABLED) else 'No'}")
        lines.append(f"Auto-translate: {'Yes' if settings.get(KEY_AUTO_TRANSLATE) else 'No'}")

        lines.append("")
        lines.append("=== Validation Results ===")
        if validation.errors:
            lines.append("Errors:")
            lines.extend(f"  - {e}" for e in validation.errors)
        else:
            lines.append("No errors found")

        if validation.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {w}" for w in validation.warnings)
        else:
            lines.append("No warnings found")

        return "\n".join(lines)
