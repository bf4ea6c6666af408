"""
Keeps a short history of classified errors and timing metrics
for the workbench diagnostics view.
"""
import time
import logging
import functools
from collections import deque
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Deque, Dict, Optional

from page_translator.core.constants import ERROR_TRACKER_MAX_ENTRIES
from page_translator.core.enums import ErrorCategory
from page_translator.core.errors import HttpError, InvalidResponseFormatError, NetworkError, TranslationError

logger = logging.getLogger(__name__)


@dataclass
class ErrorInfo:
    message: str
    category: str
    error_type: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PerformanceMetric:
    name: str
    duration: float  # milliseconds
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)


def classify_error(error: BaseException) -> ErrorCategory:
    if isinstance(error, NetworkError):
        return ErrorCategory.NETWORK
    if isinstance(error, (HttpError, InvalidResponseFormatError)):
        return ErrorCategory.API
    if isinstance(error, TranslationError):
        return ErrorCategory.TRANSLATION
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    return ErrorCategory.UNKNOWN


class ErrorTracker:
    def __init__(self, max_entries: int = ERROR_TRACKER_MAX_ENTRIES):
        self.max_entries = max_entries
        self.errors: Deque[ErrorInfo] = deque(maxlen=max_entries)
        self.metrics: Deque[PerformanceMetric] = deque(maxlen=max_entries)

    def track_error(self, error: BaseException, context: Optional[Dict[str, Any]] = None,
                    category: Optional[ErrorCategory] = None) -> ErrorInfo:
        category = category or classify_error(error)
        info = ErrorInfo(
            message=str(error) or error.__class__.__name__,
            category=category.value,
            error_type=error.__class__.__name__,
            context=dict(context or {}),
        )
        self.errors.append(info)
        logger.debug(f"Tracked {info.category} error: {info.message}")
        return info

    def track_performance(self, name: str, duration_ms: float, metadata: Optional[Dict[str, Any]] = None):
        self.metrics.append(PerformanceMetric(name=name, duration=duration_ms, metadata=dict(metadata or {})))

    def get_error_stats(self) -> dict:
        by_type: Dict[str, int] = {}
        for err in self.errors:
            by_type[err.category] = by_type.get(err.category, 0) + 1
        return {'total': len(self.errors), 'by_type': by_type}

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        grouped: Dict[str, list] = {}
        for metric in self.metrics:
            grouped.setdefault(metric.name, []).append(metric.duration)
        return {
            name: {'count': len(values), 'average': sum(values) / len(values), 'max': max(values)}
            for name, values in grouped.items()
        }

    def clear(self):
        self.errors.clear()
        self.metrics.clear()

    def export_data(self) -> dict:
        return {
            'errors': [asdict(e) for e in self.errors],
            'performance': [asdict(m) for m in self.metrics],
        }

    def timed(self, name: str):
        """Decorator recording the duration of a coroutine function, failed or not."""
        def decorator(func):
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                start = time.perf_counter()
                failed = False
                try:
                    return await func(*args, **kwargs)
                except Exception:
                    failed = True
                    raise
                finally:
                    elapsed = (time.perf_counter() - start) * 1000
                    self.track_performance(name, elapsed, {'error': True} if failed else None)
            return wrapper
        return decorator
