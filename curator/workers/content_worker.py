"""
Content Worker - enriches saved URLs

Consumes 'content-processing' jobs ({owner_id, content_id, url}) and runs
them through ContentEnrichmentPipeline. Follow-up cluster-summary jobs
returned by the pipeline are enqueued by the base loop before the job is
marked completed.
"""
import logging

from curator.models.job import Job, JobResult
from curator.services.enrichment_pipeline import ContentEnrichmentPipeline
from curator.services.job_queue import CONTENT_QUEUE, JobQueue
from curator.workers.worker_base import BaseWorker

logger = logging.getLogger(__name__)


class ContentWorker(BaseWorker):

    def __init__(
        self,
        job_queue: JobQueue,
        pipeline: ContentEnrichmentPipeline,
        worker_id: int = 1,
        poll_interval: float = 5.0,
        max_backoff: float = 300.0,
    ):
        super().__init__(
            job_queue=job_queue,
            worker_name=f"content-worker-{worker_id}",
            queue_name=CONTENT_QUEUE,
            poll_interval=poll_interval,
            max_backoff=max_backoff,
        )
        self.pipeline = pipeline

    async def process(self, job: Job) -> JobResult:
        logger.info(f"[{self.worker_name}] 📄 Enriching {job.payload.get('url')}")
        return await self.pipeline.run(job.payload)
