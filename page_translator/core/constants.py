import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

# --- Constants ---

# Provider endpoint (Volcengine Ark responses API, Seed translation model)
PROVIDER_ENDPOINT = "https://ark.cn-beijing.volces.com/api/v3/responses"
PROVIDER_MODEL = "doubao-seed-translation-250915"

# Input limits
# 800 characters keeps a single request under the model's 1k token input limit
MAX_INPUT_CHARS = 800
DEFAULT_MAX_CHUNK_SIZE = 800
# Upper bound for a whole document entering the pipeline (before chunking)
MAX_DOCUMENT_CHARS = 50000

# Scheduler Configuration
DEFAULT_MAX_CONCURRENCY = 15  # Page translation path
BACKGROUND_MAX_CONCURRENCY = 3  # Background batch translation

# Transport Configuration
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_TARGET_LANGUAGE = "zh"

# Cache Configuration
DEFAULT_CACHE_MAX_ENTRIES = None  # Unbounded, cleared only by CLEAR_CACHE

# Error tracker ring size
ERROR_TRACKER_MAX_ENTRIES = 100

# Preview length used when logging failed payloads
LOG_PREVIEW_CHARS = 100

# Message contract
MSG_TRANSLATE_TEXT = "TRANSLATE_TEXT"
MSG_CLEAR_CACHE = "CLEAR_CACHE"

# Preference store keys
KEY_API_KEY = "doubaoApiKey"
KEY_TARGET_LANGUAGE = "doubaoTargetLanguage"
KEY_DISPLAY_MODE = "doubaoDisplayMode"
KEY_EXTENSION_ENABLED = "extensionEnabled"
KEY_AUTO_TRANSLATE = "autoTranslate"

SUPPORTED_LANGUAGES = frozenset({
    'zh', 'zh-Hant', 'en', 'ja', 'ko', 'de', 'fr', 'es', 'it', 'pt', 'ru',
    'th', 'vi', 'ar', 'cs', 'da', 'fi', 'hr', 'hu', 'id', 'ms', 'nb', 'nl',
    'pl', 'ro', 'sv', 'tr', 'uk',
})

# Script subtags the provider accepts as-is (region subtags are dropped)
PRESERVED_LANGUAGE_TAGS = frozenset({'zh-Hant'})

# --- Data Transfer Objects (DTOs) ---

@dataclass(frozen=True)
class TranslationTask:
    """One logical translation request. Immutable once enqueued."""
    source_text: str
    target_language: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Chunk:
    """A bounded slice of a task. Merged back by ascending index."""
    parent_task_id: str
    index: int
    text: str

    @property
    def id(self) -> str:
        return f"{self.parent_task_id}#{self.index}"


@dataclass
class ChunkResult:
    """Outcome of translating a single chunk."""
    chunk: Chunk
    translated_text: Optional[str] = None
    success: bool = False
    error: Optional[BaseException] = None


@dataclass
class TranslationOutcome:
    """Combined result handed back to the caller of the pipeline."""
    translation: str
    cached: bool = False
    chunk_count: int = 0
    failed_chunks: int = 0

    def to_message(self) -> dict:
        return {"success": True, "translation": self.translation, "cached": self.cached}
