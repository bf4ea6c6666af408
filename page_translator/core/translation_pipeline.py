"""
Translation Pipeline for the page translator.
Single entry point that wires together:
- Cache lookup on the raw text
- Sanitizing and chunking
- Bounded-concurrency dispatch of chunks to the provider
- Ordered merge with per-chunk fallback, then cache write
"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional, Any, Union

from .cache import TranslationCache, fingerprint
from .scheduler import TaskScheduler
from .translator import BaseTranslator, SeedTranslator
from .text_chunker import build_chunks, preserve_edge_whitespace, ChunkMerger
from .validation import sanitize_text
from .errors import EmptyInputError, MissingCredentialError
from .constants import (
    TranslationTask,
    Chunk,
    ChunkResult,
    TranslationOutcome,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_CHUNK_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_TARGET_LANGUAGE,
    MAX_DOCUMENT_CHARS,
    LOG_PREVIEW_CHARS,
)
from page_translator.utils.error_tracker import ErrorTracker
from page_translator.utils.settings_store import SettingsStore

ProgressCallback = Callable[[int, int], None]


class TranslationPipeline:
    """
    Main translation pipeline. Owns its cache and scheduler, so several
    independent pipelines (e.g. one per tab) can coexist.
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        translator: Optional[BaseTranslator] = None,
        cache: Optional[TranslationCache] = None,
        scheduler: Optional[TaskScheduler] = None,
        settings_store: Optional[SettingsStore] = None,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Dictionary containing (all optional):
                - max_concurrency: Provider calls in flight at once (default 15)
                - max_chunk_size: Characters per chunk (default 800)
                - max_document_chars: Cap applied to a whole document (default 50000)
                - cache_max_entries: LRU bound for the cache (default unbounded)
                - request_timeout: Seconds before a provider call fails
                - api_key / target_lang: Override the settings store
            translator: Provider client, defaults to SeedTranslator.
            cache, scheduler, settings_store, error_tracker: Injected collaborators.
        """
        self.settings = settings or {}
        self.logger = logging.getLogger("Pipeline")

        self.max_chunk_size = self.settings.get("max_chunk_size", DEFAULT_MAX_CHUNK_SIZE)
        self.max_document_chars = self.settings.get("max_document_chars", MAX_DOCUMENT_CHARS)

        self.translator = translator or SeedTranslator(
            timeout_seconds=self.settings.get("request_timeout", DEFAULT_TIMEOUT_SECONDS)
        )
        self.cache = cache if cache is not None else TranslationCache(
            max_entries=self.settings.get("cache_max_entries", DEFAULT_CACHE_MAX_ENTRIES)
        )
        self.scheduler = scheduler or TaskScheduler(
            max_concurrency=self.settings.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
        )
        self.settings_store = settings_store
        self.error_tracker = error_tracker or ErrorTracker()

        # A chunk longer than one request accepts would lose its tail
        limit = self.translator.max_input_chars
        if limit is not None and self.max_chunk_size > limit:
            self.logger.warning(f"max_chunk_size {self.max_chunk_size} exceeds provider limit, using {limit}")
            self.max_chunk_size = limit

    def _resolve_api_key(self, api_key: Optional[str]) -> str:
        if api_key:
            return api_key
        if self.settings.get("api_key"):
            return self.settings["api_key"]
        if self.settings_store:
            return self.settings_store.get_api_key()
        return ""

    def _resolve_target_language(self, target_language: Optional[str]) -> str:
        if target_language:
            return target_language
        if self.settings.get("target_lang"):
            return self.settings["target_lang"]
        if self.settings_store:
            return self.settings_store.get_target_language()
        return DEFAULT_TARGET_LANGUAGE

    async def translate(
        self,
        text: str,
        target_language: Optional[str] = None,
        api_key: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TranslationOutcome:
        """
        Translate text of any length.

        Args:
            text: Raw text from the page or the workbench.
            target_language: Target language code, e.g. 'zh' or 'zh-CN'.
            api_key: Provider key; falls back to settings / settings store.
            progress_callback: Called with (completed_chunks, total_chunks).

        Returns:
            TranslationOutcome; `cached` is True when no provider call was made.

        Raises:
            MissingCredentialError, or the provider error when every chunk failed.
        """
        target_language = self._resolve_target_language(target_language)
        cache_key = fingerprint(text or "", target_language)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug("Serving from cache")
            return TranslationOutcome(translation=cached, cached=True)

        try:
            clean = sanitize_text(text, self.max_document_chars)
        except EmptyInputError:
            self.logger.debug("Nothing to translate after sanitization")
            return TranslationOutcome(translation="", cached=False)

        if self.max_document_chars is not None and len(text) > self.max_document_chars:
            self.logger.warning(
                f"Document of {len(text)} chars truncated to {self.max_document_chars} before translation"
            )

        api_key = self._resolve_api_key(api_key)
        if not api_key:
            error = MissingCredentialError()
            self.error_tracker.track_error(error, {'stage': 'credentials'})
            raise error

        task = TranslationTask(source_text=clean, target_language=target_language)
        run_task = self.error_tracker.timed("translate")(self._run_task)
        try:
            outcome = await run_task(task, api_key, progress_callback)
        except Exception as e:
            self.error_tracker.track_error(e, {'task_id': task.id, 'chars': len(clean)})
            self.logger.error(f"Translation failed for text: {clean[:LOG_PREVIEW_CHARS]}... ({e})")
            raise

        # Partially failed results are not cached so a later retry can fill the gaps
        if outcome.failed_chunks == 0:
            self.cache.put(cache_key, outcome.translation)
        return outcome

    async def _run_task(self, task: TranslationTask, api_key: str,
                        progress_callback: Optional[ProgressCallback]) -> TranslationOutcome:
        chunks = build_chunks(task.id, task.source_text, self.max_chunk_size)
        total = len(chunks)
        completed = 0
        if total > 1:
            self.logger.info(f"Task {task.id}: {len(task.source_text)} chars split into {total} chunks")

        provider_call = self.error_tracker.timed("provider_call")(self.translator.translate)

        async def process_chunk(chunk: Chunk) -> str:
            # Whitespace-only pieces (paragraph gaps) need no provider call
            if not chunk.text.strip():
                return chunk.text
            translated = await provider_call(chunk.text, api_key, task.target_language)
            return preserve_edge_whitespace(chunk.text, translated)

        def on_settled(_future: asyncio.Future):
            nonlocal completed
            completed += 1
            if progress_callback:
                try:
                    progress_callback(completed, total)
                except Exception as e:
                    self.logger.debug(f"Progress callback error: {e}")

        futures = []
        for chunk in chunks:
            future = self.scheduler.enqueue(chunk, process_chunk)
            future.add_done_callback(on_settled)
            futures.append(future)

        settled = await asyncio.gather(*futures, return_exceptions=True)

        results = []
        for chunk, value in zip(chunks, settled):
            if isinstance(value, BaseException):
                results.append(ChunkResult(chunk=chunk, success=False, error=value))
            else:
                results.append(ChunkResult(chunk=chunk, translated_text=value, success=True))

        merged, failed = ChunkMerger(expected_count=total).merge(results)
        if failed:
            self.logger.warning(f"Task {task.id}: {failed}/{total} chunks kept original text")

        return TranslationOutcome(translation=merged, cached=False, chunk_count=total, failed_chunks=failed)

    async def translate_batch(
        self,
        texts: List[str],
        target_language: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> List[Union[TranslationOutcome, Exception]]:
        """
        Translate many independent texts (e.g. every block of a page).
        Each entry is either its outcome or the exception that text raised.
        """
        if not texts:
            return []
        return await asyncio.gather(
            *(self.translate(t, target_language, api_key) for t in texts),
            return_exceptions=True,
        )

    def clear_cache(self) -> int:
        """Drop every cached translation, returning how many were removed."""
        return self.cache.clear()

    def get_stats(self) -> dict:
        return {
            'cache': self.cache.get_stats(),
            'scheduler': self.scheduler.get_stats(),
            'errors': self.error_tracker.get_error_stats(),
        }

    async def close(self):
        await self.scheduler.join()
        await self.translator.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
