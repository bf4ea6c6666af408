"""
Concurrency-bounded task scheduler.

Owns a FIFO queue of tasks and admits at most `max_concurrency` of them into
service at once. Settlement of one task frees its slot and immediately
dispatches the next queued task, so the queue drains itself without polling.

All bookkeeping happens on the event loop thread: the active counter is only
touched at dispatch and at settlement, so no lock is needed.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set

from .constants import DEFAULT_MAX_CONCURRENCY
from .enums import TaskState

logger = logging.getLogger(__name__)

Processor = Callable[[Any], Awaitable[Any]]


@dataclass
class _QueuedJob:
    task: Any
    processor: Processor
    future: asyncio.Future


class TaskScheduler:
    """
    FIFO admission, unordered completion.
    Each enqueued task gets its own future; one task failing never touches
    its siblings.
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY, name: str = "scheduler"):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.name = name
        self._queue: Deque[_QueuedJob] = deque()
        self._active = 0
        self._states: Dict[str, TaskState] = {}
        self._runners: Set[asyncio.Task] = set()
        self.peak_active = 0
        self.dispatched_count = 0
        self.settled_count = 0
        self.failed_count = 0

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def state_of(self, task_id: str) -> Optional[TaskState]:
        """QUEUED or DISPATCHED while tracked; None once settled (or never seen)."""
        return self._states.get(task_id)

    def enqueue(self, task: Any, processor: Processor) -> asyncio.Future:
        """
        Queue a task for processing.

        Args:
            task: Object with an `id` attribute (TranslationTask, Chunk).
            processor: Coroutine function called with the task once a slot is free.

        Returns:
            Future resolved with the processor's result or its exception.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append(_QueuedJob(task=task, processor=processor, future=future))
        self._states[task.id] = TaskState.QUEUED
        self._drain()
        return future

    def _drain(self):
        while self._active < self.max_concurrency and self._queue:
            job = self._queue.popleft()
            self._active += 1
            self.dispatched_count += 1
            self.peak_active = max(self.peak_active, self._active)
            self._states[job.task.id] = TaskState.DISPATCHED

            runner = asyncio.ensure_future(self._run(job))
            self._runners.add(runner)
            runner.add_done_callback(self._runners.discard)

        if self._queue:
            logger.debug(f"[{self.name}] {self._active} active, {len(self._queue)} waiting")

    async def _run(self, job: _QueuedJob):
        try:
            result = await job.processor(job.task)
        except asyncio.CancelledError:
            job.future.cancel()
            raise
        except Exception as e:
            self.failed_count += 1
            logger.debug(f"[{self.name}] task {job.task.id} failed: {e}")
            if not job.future.done():
                job.future.set_exception(e)
        else:
            if not job.future.done():
                job.future.set_result(result)
        finally:
            self._active -= 1
            self.settled_count += 1
            self._states.pop(job.task.id, None)
            self._drain()

    async def join(self):
        """Wait until the queue is empty and nothing is in flight."""
        while self._runners or self._queue:
            if self._runners:
                await asyncio.gather(*list(self._runners), return_exceptions=True)
            else:
                await asyncio.sleep(0)

    def get_stats(self) -> dict:
        return {
            'max_concurrency': self.max_concurrency,
            'active': self._active,
            'pending': len(self._queue),
            'peak_active': self.peak_active,
            'dispatched': self.dispatched_count,
            'settled': self.settled_count,
            'failed': self.failed_count,
        }
