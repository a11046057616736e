"""
Priority job queue over the Redis job store

Key layout:
- queue:{name}:{priority}   list of serialized Jobs (LPUSH / RPOP, FIFO)
- job:{id}:meta             serialized Job, kept for job_meta_ttl
- job:{id}:status           terminal JobStatusRecord, kept for status_ttl

Queues used by curator:
- 'content-processing'  → content workers consume ({owner_id, content_id, url})
- 'cluster-summary'     → cluster-summary workers consume ({owner_id, cluster_id})

Dequeue is strict priority: every high job is returned before any normal
job, every normal before any low. There is no starvation protection; a
steady stream of high jobs delays normal/low work indefinitely.

Failure is terminal. Jobs carry attempts/max_attempts (max 1), nothing here
re-enqueues a failed job; a caller that wants another try enqueues a new Job.
"""
import json
import logging
from typing import Any, Dict, Optional

from curator.errors import QueueUnavailableError
from curator.models.job import (
    Job,
    JobPriority,
    JobStatus,
    JobStatusRecord,
    PRIORITY_ORDER,
)
from curator.services.job_store import JobStore
from curator.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

CONTENT_QUEUE = 'content-processing'
SUMMARY_QUEUE = 'cluster-summary'


def queue_key(queue_name: str, priority: JobPriority) -> str:
    return f"queue:{queue_name}:{JobPriority(priority).value}"


def meta_key(job_id: str) -> str:
    return f"job:{job_id}:meta"


def status_key(job_id: str) -> str:
    return f"job:{job_id}:status"


def _job_id_of(raw: str) -> Optional[str]:
    """Id of a job body that failed to decode, if it is readable"""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    job_id = data.get('id') if isinstance(data, dict) else None
    return job_id if isinstance(job_id, str) and job_id else None


class JobQueue:
    """
    Enqueue / dequeue / status API

    Each job is consumed by exactly ONE worker: dequeue relies on the store's
    atomic pop.
    """

    def __init__(self, store: JobStore, status_ttl: int = 3600, meta_ttl: int = 86400):
        self.store = store
        self.status_ttl = status_ttl
        self.meta_ttl = meta_ttl

    async def enqueue(self, queue_name: str, payload: Dict[str, Any],
                      priority: JobPriority = JobPriority.NORMAL) -> str:
        """
        Persist a new job and return its id

        Never waits for the job to run.

        Example:
            job_id = await queue.enqueue(CONTENT_QUEUE, {
                'owner_id': 'u1',
                'content_id': 'ct_...',
                'url': 'https://...'
            }, JobPriority.HIGH)
        """
        job = Job.create(queue_name, payload, priority)
        raw = job.to_json()
        await self.store.put(meta_key(job.id), raw, ttl=self.meta_ttl)
        await self.store.push(queue_key(queue_name, job.priority), raw)
        logger.info(f"Job {job.id} added to {queue_name} ({job.priority.value})")
        return job.id

    async def dequeue(self, queue_name: str) -> Optional[Job]:
        """
        Remove and return the next job, or None if every sub-queue is empty

        Returned Job has attempts incremented for this execution. Bodies that
        cannot be decoded are dropped with an error log (and a failed status
        when their id is readable) and the next body is tried.
        """
        for priority in PRIORITY_ORDER:
            key = queue_key(queue_name, priority)
            while True:
                raw = await self.store.pop(key)
                if raw is None:
                    break
                try:
                    return Job.from_json(raw).next_attempt()
                except (ValueError, KeyError, TypeError) as e:
                    await self._discard_malformed(key, raw, e)
        return None

    async def _discard_malformed(self, key: str, raw: str, error: Exception):
        logger.error(f"❌ Dropping malformed job from {key}: {error!r} body={raw[:200]!r}")
        job_id = _job_id_of(raw)
        if job_id:
            await self.mark_failed(job_id, f"Malformed job body: {error}")

    async def mark_completed(self, job_id: str, result: Any = None):
        """Write a completed record (TTL'd). Re-marking overwrites."""
        record = JobStatusRecord(
            job_id=job_id,
            status=JobStatus.COMPLETED,
            detail=result,
            timestamp=utcnow(),
        )
        await self.store.put(status_key(job_id), record.to_json(), ttl=self.status_ttl)
        logger.info(f"Job {job_id} marked as completed")

    async def mark_failed(self, job_id: str, error: Any):
        """Write a failed record carrying the error message (TTL'd)"""
        detail = str(error) or error.__class__.__name__
        record = JobStatusRecord(
            job_id=job_id,
            status=JobStatus.FAILED,
            detail=detail,
            timestamp=utcnow(),
        )
        await self.store.put(status_key(job_id), record.to_json(), ttl=self.status_ttl)
        logger.info(f"Job {job_id} marked as failed: {detail}")

    async def get_job(self, job_id: str) -> Optional[Job]:
        """Job as enqueued, while its metadata has not expired"""
        raw = await self.store.get(meta_key(job_id))
        return Job.from_json(raw) if raw else None

    async def get_status(self, job_id: str) -> JobStatusRecord:
        """
        Status of a job

        - completed / failed: terminal record present
        - pending: job known (metadata present), no terminal record yet
        - unknown: never enqueued, expired, or the store is unreachable

        A running job reports pending; callers cannot tell it from a queued one.
        """
        try:
            raw = await self.store.get(status_key(job_id))
            if raw:
                return JobStatusRecord.from_json(raw)
            if await self.store.get(meta_key(job_id)):
                return JobStatusRecord(job_id=job_id, status=JobStatus.PENDING)
        except QueueUnavailableError as e:
            logger.error(f"Failed to get status for job {job_id}: {e}")
        return JobStatusRecord(job_id=job_id, status=JobStatus.UNKNOWN)

    async def queue_length(self, queue_name: str, priority: JobPriority) -> int:
        return await self.store.length(queue_key(queue_name, priority))

    async def queue_stats(self, queue_name: str) -> Dict[str, int]:
        """Pending job counts per priority, plus total"""
        stats = {}
        for priority in PRIORITY_ORDER:
            stats[priority.value] = await self.queue_length(queue_name, priority)
        stats['total'] = sum(stats.values())
        return stats
