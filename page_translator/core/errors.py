"""
Translation pipeline exceptions.

Every error that can reach a caller derives from TranslationError so the
message router can turn it into a descriptive string.
"""
from typing import Optional


class TranslationError(Exception):
    """Base exception for translation pipeline errors"""
    pass


class EmptyInputError(TranslationError):
    """Raised when text is empty after sanitization"""

    def __init__(self, message: str = "Text is empty after sanitization"):
        super().__init__(message)


class MissingCredentialError(TranslationError):
    """Raised when no API key is configured"""

    def __init__(self, message: str = "Missing Volcengine API key"):
        super().__init__(message)


class HttpError(TranslationError):
    """Raised when the provider rejects a request with a non-2xx status"""

    STATUS_MESSAGES = {
        401: "Invalid API key or unauthorized access",
        429: "Rate limit exceeded, please retry later",
        500: "Translation service internal error",
    }

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        message = f"Doubao API error: {status_code}"
        readable = self.STATUS_MESSAGES.get(status_code)
        if readable:
            message += f" ({readable})"
        if detail:
            message += f" - {detail}"
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.status_code == 429


class InvalidResponseFormatError(TranslationError):
    """Raised when no translation can be extracted from the provider response"""

    def __init__(self, message: str = "Invalid response format: could not extract translation"):
        super().__init__(message)


class NetworkError(TranslationError):
    """Raised on transport failures (DNS, refused connection, timeout)"""
    pass
