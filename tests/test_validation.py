import pytest

from page_translator.core.validation import sanitize_text, Validator
from page_translator.core.errors import EmptyInputError
from page_translator.core.constants import (
    KEY_API_KEY,
    KEY_TARGET_LANGUAGE,
    KEY_DISPLAY_MODE,
    KEY_EXTENSION_ENABLED,
    KEY_AUTO_TRANSLATE,
)

VALID_KEY = "vk-" + "a1B2c3D4e5" * 3


class TestSanitizeText:
    def test_removes_control_characters(self):
        assert sanitize_text("Hello\x00World\x01") == "HelloWorld"

    def test_truncates_to_800_characters(self):
        assert len(sanitize_text("a" * 1000)) == 800

    def test_only_control_characters_is_empty(self):
        with pytest.raises(EmptyInputError, match="empty after sanitization"):
            sanitize_text("\x00\x01\x02")

    def test_whitespace_only_is_empty(self):
        with pytest.raises(EmptyInputError):
            sanitize_text(" \n\t ")

    def test_keeps_newline_tab_and_carriage_return(self):
        assert sanitize_text("a\tb\r\nc\x0bd\x0ce") == "a\tb\r\ncde"

    def test_truncation_happens_before_emptiness_check(self):
        with pytest.raises(EmptyInputError):
            sanitize_text("\x00" * 800 + "visible text")

    def test_custom_limit_and_no_limit(self):
        assert sanitize_text("abcdef", max_chars=3) == "abc"
        assert sanitize_text("x" * 5000, max_chars=None) == "x" * 5000

    def test_preserves_valid_text(self):
        assert sanitize_text("Hello World!") == "Hello World!"


class TestValidator:
    def test_valid_api_key(self):
        result = Validator.validate_api_key(VALID_KEY)
        assert result.is_valid
        assert result.format == "valid"

    def test_invalid_api_key_suggestions(self):
        result = Validator.validate_api_key("sk_short!")
        assert not result.is_valid
        assert 'API key should start with "vk-"' in result.suggestions
        assert "API key appears to be too short" in result.suggestions
        assert "API key contains invalid characters" in result.suggestions

    def test_missing_api_key(self):
        result = Validator.validate_api_key("  ")
        assert result.suggestions == ["API key is required"]

    def test_language(self):
        assert Validator.validate_language("ja").is_valid
        assert Validator.validate_language("zh-Hant").is_valid
        assert not Validator.validate_language("klingon").is_valid
        assert Validator.validate_language("").errors == ["Language is required"]

    def test_display_mode(self):
        assert Validator.validate_display_mode("translation-only").is_valid
        assert not Validator.validate_display_mode("sideways").is_valid

    def test_settings_without_key_only_warns(self):
        result = Validator.validate_settings({KEY_TARGET_LANGUAGE: "en"})
        assert result.is_valid
        assert "API key is not configured" in result.warnings

    def test_settings_collects_errors(self):
        result = Validator.validate_settings({
            KEY_API_KEY: "bad",
            KEY_TARGET_LANGUAGE: "xx",
            KEY_DISPLAY_MODE: "nope",
        })
        assert not result.is_valid
        assert "Invalid API key format" in result.errors
        assert 'Language "xx" is not supported' in result.errors
        assert 'Invalid display mode: "nope"' in result.errors

    def test_sanitize_settings_fills_defaults(self):
        settings = Validator.sanitize_settings({KEY_API_KEY: f"  {VALID_KEY} ", KEY_AUTO_TRANSLATE: True})
        assert settings == {
            KEY_API_KEY: VALID_KEY,
            KEY_TARGET_LANGUAGE: "zh",
            KEY_DISPLAY_MODE: "bilingual",
            KEY_EXTENSION_ENABLED: True,
            KEY_AUTO_TRANSLATE: True,
        }

    def test_report(self):
        report = Validator.generate_report(Validator.sanitize_settings({}))
        assert "API Key: Not configured" in report
        assert "Target Language: zh (Valid)" in report
        assert "No errors found" in report
        assert "API key is not configured" in report
