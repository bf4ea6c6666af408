from enum import Enum

class TaskState(Enum):
    """Scheduler lifecycle of a queued task."""
    QUEUED = "queued"
    DISPATCHED = "dispatched"


class DisplayMode(Enum):
    """How the page overlay shows translations."""
    BILINGUAL = "bilingual"
    TRANSLATION_ONLY = "translation-only"
    ORIGINAL = "original"


class ErrorCategory(Enum):
    """Buckets used by the error tracker."""
    API = "api"
    NETWORK = "network"
    TRANSLATION = "translation"
    STORAGE = "storage"
    UNKNOWN = "unknown"
