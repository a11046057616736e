"""
Base worker

A worker is bound to one queue and one pipeline function (`process`).

Loop: idle → polling → (no job: sleep | job: executing) → idle, until a
stop signal is observed at the top of the loop. A job that is executing is
never interrupted; stop only prevents the next dequeue.

- process() raises → job marked failed, polling continues at the normal
  interval
- job store unreachable (or any other unexpected loop error) → poll
  interval doubles, up to max_backoff, and resets on the next successful
  dequeue
"""
import asyncio
import logging
from enum import Enum
from typing import Any

from curator.errors import QueueUnavailableError
from curator.models.job import Job, JobResult
from curator.services.job_queue import JobQueue

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    IDLE = 'idle'
    POLLING = 'polling'
    EXECUTING = 'executing'
    STOPPED = 'stopped'


class BaseWorker:
    """
    Base class for all workers

    Subclasses implement process(job) and return a JobResult (or a plain
    dict, used as the completed record's detail).
    """

    def __init__(
        self,
        job_queue: JobQueue,
        worker_name: str,
        queue_name: str,
        poll_interval: float = 5.0,
        max_backoff: float = 300.0,
    ):
        self.job_queue = job_queue
        self.worker_name = worker_name
        self.queue_name = queue_name
        self.poll_interval = poll_interval
        self.max_backoff = max_backoff
        self.current_interval = poll_interval
        self.state = WorkerState.IDLE
        self.jobs_processed = 0
        self.jobs_failed = 0
        self._stop_event = asyncio.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def start(self):
        """Main worker loop; returns once a stop has been observed"""
        self.state = WorkerState.IDLE
        logger.info(f"[{self.worker_name}] Started, polling {self.queue_name} every {self.poll_interval}s")

        try:
            while not self._stop_event.is_set():
                await self.run_once()
        except asyncio.CancelledError:
            logger.info(f"[{self.worker_name}] Received cancellation signal")
            raise
        finally:
            self.state = WorkerState.STOPPED
            logger.info(
                f"[{self.worker_name}] Shutting down. "
                f"Processed: {self.jobs_processed}, Failed: {self.jobs_failed}"
            )

    def stop(self):
        """Signal the loop to stop before its next dequeue"""
        if not self._stop_event.is_set():
            logger.info(f"[{self.worker_name}] Stop requested")
        self._stop_event.set()

    async def run_once(self):
        """One loop iteration: poll, then execute or sleep"""
        self.state = WorkerState.POLLING
        try:
            job = await self.job_queue.dequeue(self.queue_name)
            self.current_interval = self.poll_interval

            if job is None:
                self.state = WorkerState.IDLE
                await self._sleep(self.poll_interval)
                return

            await self._execute(job)
            self.state = WorkerState.IDLE

        except QueueUnavailableError as e:
            await self._back_off(e)
        except Exception as e:
            logger.error(f"[{self.worker_name}] Worker loop error: {e}", exc_info=True)
            await self._back_off(e)

    async def _execute(self, job: Job):
        self.state = WorkerState.EXECUTING
        logger.info(f"[{self.worker_name}] Processing job {job.id} (attempt {job.attempts}/{job.max_attempts})")

        try:
            result = await self.process(job)
        except Exception as e:
            self.jobs_failed += 1
            logger.error(f"[{self.worker_name}] ❌ Job {job.id} failed: {e}", exc_info=True)
            await self.job_queue.mark_failed(job.id, e)
            return

        if not isinstance(result, JobResult):
            result = JobResult(detail=result or {})

        for follow_up in result.follow_ups:
            await self.job_queue.enqueue(follow_up.queue_name, follow_up.payload, follow_up.priority)

        await self.job_queue.mark_completed(job.id, result.detail)
        self.jobs_processed += 1
        logger.info(f"[{self.worker_name}] ✅ Job {job.id} completed")

    async def _back_off(self, error: Exception):
        self.state = WorkerState.IDLE
        self.current_interval = min(self.current_interval * 2, self.max_backoff)
        logger.warning(
            f"[{self.worker_name}] Queue unavailable ({error}), retrying in {self.current_interval:.1f}s"
        )
        await self._sleep(self.current_interval)

    async def _sleep(self, seconds: float):
        """Sleep that wakes early when stop() is called"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def process(self, job: Job) -> Any:
        """
        Override in subclass - do the actual work

        Args:
            job: Job popped from this worker's queue

        Returns:
            JobResult, or a dict used as the completed status detail
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement process()")
