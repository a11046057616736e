"""
Content intake and job status

Saves are validated before any job exists: malformed URLs and duplicate
saves (same owner, same normalized URL) raise IntakeValidationError.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from curator.errors import IntakeValidationError, NotFoundError
from curator.models.content import ContentItem, ProcessingStatus
from curator.models.job import JobPriority, JobStatus
from curator.services.job_queue import CONTENT_QUEUE
from curator.utils.id_generator import generate_id
from curator.utils.url_utils import is_valid_url, normalize_url

logger = logging.getLogger(__name__)


class ContentService:

    def __init__(self, content_repo, job_queue, suggestion_cache):
        self.content_repo = content_repo
        self.job_queue = job_queue
        self.suggestion_cache = suggestion_cache

    async def save_content(self, owner_id: str, url: str, title: Optional[str] = None) -> Tuple[ContentItem, str]:
        """
        Create a pending item and queue it for enrichment (high priority)

        Returns:
            (content item, job id)
        """
        if not is_valid_url(url):
            raise IntakeValidationError(f"Valid URL is required: {url!r}")

        url = url.strip()
        canonical_url = normalize_url(url)
        if await self.content_repo.get_by_canonical_url(owner_id, canonical_url):
            raise IntakeValidationError("Content already saved")

        item = await self.content_repo.create(ContentItem(
            id=generate_id('content'),
            owner_id=owner_id,
            url=url,
            canonical_url=canonical_url,
            title=(title or '').strip() or 'Processing...',
            processing_status=ProcessingStatus.PENDING,
        ))

        job_id = await self.job_queue.enqueue(
            CONTENT_QUEUE,
            {'owner_id': owner_id, 'content_id': item.id, 'url': url},
            JobPriority.HIGH,
        )
        logger.info(f"Content {item.id} queued for processing (job {job_id})")
        return item, job_id

    async def reprocess_content(self, owner_id: str, content_id: str) -> str:
        """
        Explicit reprocess: a brand-new normal priority job

        Failed jobs are never retried automatically; this is the way back.
        """
        item = await self.content_repo.get_by_id(content_id, owner_id)
        if item is None:
            raise NotFoundError(f"Content {content_id} not found")

        if not await self.content_repo.reset_for_reprocess(content_id, owner_id):
            raise IntakeValidationError(f"Content {content_id} is already being processed")

        return await self.job_queue.enqueue(
            CONTENT_QUEUE,
            {'owner_id': owner_id, 'content_id': content_id, 'url': item.url},
            JobPriority.NORMAL,
        )

    async def get_job_status(self, job_id: str) -> Dict[str, Any]:
        """
        Status of a content job; completed jobs also carry the cached
        cluster suggestions for their content item.
        """
        record = await self.job_queue.get_status(job_id)
        response = record.to_dict()

        if record.status != JobStatus.COMPLETED:
            return response

        content_id = None
        if isinstance(record.detail, dict):
            content_id = record.detail.get('content_id')
        if content_id is None:
            job = await self.job_queue.get_job(job_id)
            content_id = job.payload.get('content_id') if job else None

        suggestions = await self.suggestion_cache.get(content_id) if content_id else []
        response['cluster_suggestions'] = [s.to_dict() for s in suggestions]
        return response
