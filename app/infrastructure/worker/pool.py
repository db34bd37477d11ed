"""Asyncio worker pool that drains the durable assignment queue."""

from __future__ import annotations

import asyncio
import logging
import time

from app.application.ports.job_queue import JobQueue
from app.application.use_cases.dispatch_job import AssignmentJobDispatcher
from app.domain.errors import PermanentJobError
from app.domain.value_objects.enums import JobState

logger = logging.getLogger(__name__)


class WorkerPool:
    """Fixed number of independent workers, each running one job at a time.

    Worker cycle: idle → claim → execute → complete | fail → idle.
    The size is decided by the caller once at startup.
    """

    def __init__(
        self,
        queue: JobQueue,
        dispatcher: AssignmentJobDispatcher,
        size: int,
        poll_interval: float = 1.0,
        stalled_after: float = 300.0,
    ):
        if size < 1:
            raise ValueError("Worker pool needs at least one worker")
        self._queue = queue
        self._dispatcher = dispatcher
        self._size = size
        self._poll_interval = poll_interval
        self._stalled_after = stalled_after
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        try:
            recovered = await self._queue.recover_stalled(self._stalled_after)
        except Exception:
            logger.exception("Stalled job recovery failed; starting workers anyway")
            recovered = 0
        if recovered:
            logger.warning("Requeued %d stalled assignment jobs", recovered)
        self._running = True
        self._tasks = [
            asyncio.create_task(self._worker_loop(slot), name=f"assignment-worker-{slot}")
            for slot in range(self._size)
        ]
        logger.info("Assignment worker pool started with %d workers", self._size)

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Assignment worker pool stopped")

    async def run_once(self, slot: int = 0) -> bool:
        """Claim and execute at most one job. Returns False when the queue is idle."""
        queued = await self._queue.claim()
        if queued is None:
            return False

        started = time.monotonic()
        kind = queued.job.kind.value
        logger.info(
            "Worker %d processing job %s (%s, attempt %d/%d)",
            slot, queued.id, kind, queued.attempts, queued.max_attempts,
        )
        try:
            result = await self._dispatcher.dispatch(queued)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            elapsed_ms = (time.monotonic() - started) * 1000
            error = f"{type(e).__name__}: {e}"
            logger.error(
                "Job %s (%s) failed after %.0fms on worker %d: %s",
                queued.id, kind, elapsed_ms, slot, error,
            )
            state = await self._queue.fail(
                queued.id, error, retryable=not isinstance(e, PermanentJobError)
            )
            if state == JobState.DEAD:
                await self._dispatcher.on_dead(queued, error)
            return True

        await self._queue.complete(queued.id, result)
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Job %s (%s) completed in %.0fms on worker %d", queued.id, kind, elapsed_ms, slot
        )
        return True

    async def _worker_loop(self, slot: int) -> None:
        while self._running:
            try:
                worked = await self.run_once(slot)
            except asyncio.CancelledError:
                break
            except Exception:
                # Queue unreachable; back off and keep the worker alive
                logger.exception("Worker %d could not talk to the job queue", slot)
                worked = False
            if not worked:
                try:
                    await asyncio.sleep(self._poll_interval)
                except asyncio.CancelledError:
                    break
