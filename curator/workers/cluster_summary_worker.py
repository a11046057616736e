"""
Cluster Summary Worker - regenerates cluster summaries

Consumes 'cluster-summary' jobs ({owner_id, cluster_id}). Clusters below
MIN_SUMMARY_ITEMS members are acknowledged without calling the model.
"""
import logging
from typing import Any, Dict

from curator.models.job import Job, JobResult
from curator.services.job_queue import SUMMARY_QUEUE, JobQueue
from curator.services.summary_synthesizer import SummarySynthesizer
from curator.workers.worker_base import BaseWorker

logger = logging.getLogger(__name__)

MIN_SUMMARY_ITEMS = 3


class ClusterSummaryWorker(BaseWorker):

    def __init__(
        self,
        job_queue: JobQueue,
        cluster_repo,
        synthesizer: SummarySynthesizer,
        worker_id: int = 1,
        poll_interval: float = 10.0,
        max_backoff: float = 300.0,
    ):
        super().__init__(
            job_queue=job_queue,
            worker_name=f"summary-worker-{worker_id}",
            queue_name=SUMMARY_QUEUE,
            poll_interval=poll_interval,
            max_backoff=max_backoff,
        )
        self.cluster_repo = cluster_repo
        self.synthesizer = synthesizer

    async def process(self, job: Job) -> JobResult:
        owner_id, cluster_id = self._parse_payload(job.payload)

        count = await self.cluster_repo.member_count(cluster_id)
        if count < MIN_SUMMARY_ITEMS:
            logger.info(
                f"[{self.worker_name}] Cluster {cluster_id} has {count} items "
                f"(< {MIN_SUMMARY_ITEMS}), skipping summary"
            )
            return JobResult(detail={'cluster_id': cluster_id, 'skipped': True, 'item_count': count})

        synthesis = await self.synthesizer.synthesize(cluster_id, owner_id)
        logger.info(
            f"[{self.worker_name}] 📝 Cluster {cluster_id}: {len(synthesis.citations)} citations, "
            f"{len(synthesis.conflicts)} conflicts"
        )
        return JobResult(detail={
            'cluster_id': cluster_id,
            'citations': len(synthesis.citations),
            'conflicts': len(synthesis.conflicts),
            'fallback': synthesis.is_fallback,
        })

    @staticmethod
    def _parse_payload(payload: Dict[str, Any]):
        try:
            return payload['owner_id'], payload['cluster_id']
        except KeyError as e:
            raise ValueError(f"Cluster summary job payload missing {e.args[0]!r}") from e
