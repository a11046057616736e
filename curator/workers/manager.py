"""
Worker Manager
==============

Runs a set of workers as asyncio tasks in one process.

- start():  one supervised task per worker
- stop():   signal every worker, then wait for in-flight jobs to finish
- a worker whose loop dies unexpectedly is restarted after restart_delay
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from curator.workers.worker_base import BaseWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """Starts, supervises and stops a pool of workers."""

    def __init__(self, workers: Sequence[BaseWorker], restart_on_failure: bool = True,
                 restart_delay: float = 5.0):
        self.workers: List[BaseWorker] = list(workers)
        self.restart_on_failure = restart_on_failure
        self.restart_delay = restart_delay
        self.tasks: List[asyncio.Task] = []
        self._stop_task: Optional[asyncio.Task] = None
        self.running = False
        self._stopped = asyncio.Event()

    def start(self):
        """Create one task per worker; returns immediately"""
        if self.running:
            return
        self.running = True
        self._stopped.clear()

        for worker in self.workers:
            self.tasks.append(asyncio.create_task(
                self._supervise(worker), name=worker.worker_name
            ))
        names = ', '.join(w.worker_name for w in self.workers)
        logger.info(f"Started {len(self.tasks)} worker(s): {names}")

    async def stop(self):
        """Stop every worker and wait for them to exit"""
        if not self.running:
            return

        logger.info("Shutting down all workers...")
        self.running = False
        for worker in self.workers:
            worker.stop()

        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        self._stopped.set()
        logger.info("All workers stopped")

    def request_stop(self) -> asyncio.Task:
        """Schedule stop() from sync code (signal handlers); the task is kept until done"""
        if self._stop_task is None or self._stop_task.done():
            self._stop_task = asyncio.create_task(self.stop(), name='worker-manager-stop')
        return self._stop_task

    async def run(self):
        """Start the workers and block until stop() has completed"""
        if not self.workers:
            logger.error("No workers configured")
            return
        self.start()
        await self._stopped.wait()

    def stats(self) -> Dict[str, Dict[str, object]]:
        return {
            worker.worker_name: {
                'state': worker.state.value,
                'processed': worker.jobs_processed,
                'failed': worker.jobs_failed,
            }
            for worker in self.workers
        }

    async def _supervise(self, worker: BaseWorker):
        while self.running and not worker.stop_requested:
            try:
                await worker.start()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"{worker.worker_name} crashed: {e}", exc_info=True)
                if not (self.restart_on_failure and self.running):
                    break
                logger.info(f"Restarting {worker.worker_name} in {self.restart_delay} seconds...")
                await asyncio.sleep(self.restart_delay)
