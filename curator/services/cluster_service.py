"""
Cluster management

Every membership change (bulk create, add, remove, primary reassignment)
is followed by a full coherence refresh. Adding content to a cluster that
then holds SUMMARY_THRESHOLD or more items emits a cluster-summary job.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from curator.errors import NotFoundError
from curator.models.cluster import Cluster, MembershipEdge
from curator.models.content import ContentItem
from curator.models.job import JobPriority
from curator.models.llm import ClusterSynthesis
from curator.services.job_queue import SUMMARY_QUEUE
from curator.utils.id_generator import generate_id

logger = logging.getLogger(__name__)

SUMMARY_THRESHOLD = 3
PRIMARY_SIMILARITY = 1.0
SECONDARY_SIMILARITY = 0.8


class ClusterService:

    def __init__(self, cluster_repo, content_repo, job_queue, coherence, synthesizer):
        self.cluster_repo = cluster_repo
        self.content_repo = content_repo
        self.job_queue = job_queue
        self.coherence = coherence
        self.synthesizer = synthesizer

    # =========================================================================
    # READ
    # =========================================================================

    async def list_clusters(self, owner_id: str) -> List[Cluster]:
        return await self.cluster_repo.list_for_owner(owner_id)

    async def get_cluster_details(self, cluster_id: str, owner_id: str) -> Tuple[Cluster, List[Tuple[ContentItem, MembershipEdge]]]:
        cluster = await self._require_cluster(cluster_id, owner_id)
        members = await self.cluster_repo.get_members(cluster_id)
        return cluster, members

    # =========================================================================
    # MEMBERSHIP
    # =========================================================================

    async def create_cluster(self, owner_id: str, name: str, description: Optional[str] = None,
                             content_ids: Iterable[str] = ()) -> Cluster:
        """Create a cluster, optionally seeded with primary members"""
        member_ids = list(dict.fromkeys(content_ids))
        for content_id in member_ids:
            await self._require_content(content_id, owner_id)

        cluster = await self.cluster_repo.create(Cluster(
            id=generate_id('cluster'),
            owner_id=owner_id,
            name=name,
            description=description,
            is_auto_generated=False,
        ))

        edges = [
            MembershipEdge(
                content_id=content_id,
                cluster_id=cluster.id,
                similarity_score=PRIMARY_SIMILARITY,
                is_primary=True,
            )
            for content_id in member_ids
        ]
        await self.cluster_repo.upsert_members(edges)

        await self._refresh(cluster.id)
        logger.info(f"Created cluster {cluster.id} '{name}' with {len(edges)} items")
        return cluster

    async def add_content(self, cluster_id: str, content_id: str, owner_id: str,
                          is_primary: bool = False) -> Optional[str]:
        """
        Add (or re-add) content to a cluster

        Returns:
            Id of the cluster-summary job emitted when the cluster holds
            SUMMARY_THRESHOLD or more items, else None
        """
        await self._require_cluster(cluster_id, owner_id)
        await self._require_content(content_id, owner_id)

        await self.cluster_repo.upsert_member(MembershipEdge(
            content_id=content_id,
            cluster_id=cluster_id,
            similarity_score=PRIMARY_SIMILARITY if is_primary else SECONDARY_SIMILARITY,
            is_primary=is_primary,
        ))
        await self._refresh(cluster_id)

        count = await self.cluster_repo.member_count(cluster_id)
        if count >= SUMMARY_THRESHOLD:
            job_id = await self.job_queue.enqueue(
                SUMMARY_QUEUE,
                {'owner_id': owner_id, 'cluster_id': cluster_id},
                JobPriority.LOW,
            )
            logger.info(f"Cluster {cluster_id} has {count} items, queued summary job {job_id}")
            return job_id
        return None

    async def remove_content(self, cluster_id: str, content_id: str, owner_id: str) -> bool:
        await self._require_cluster(cluster_id, owner_id)
        removed = await self.cluster_repo.remove_member(cluster_id, content_id)
        await self._refresh(cluster_id)
        return removed

    async def assign_primary_cluster(self, content_id: str, cluster_id: str, owner_id: str) -> str:
        """
        Make `cluster_id` the only primary cluster of a content item

        Returns:
            Id of the cluster-summary job queued for the cluster
        """
        await self._require_cluster(cluster_id, owner_id)
        await self._require_content(content_id, owner_id)

        await self.cluster_repo.demote_primary(content_id)
        await self.cluster_repo.upsert_member(MembershipEdge(
            content_id=content_id,
            cluster_id=cluster_id,
            similarity_score=PRIMARY_SIMILARITY,
            is_primary=True,
        ))
        await self._refresh(cluster_id)

        return await self.job_queue.enqueue(
            SUMMARY_QUEUE,
            {'owner_id': owner_id, 'cluster_id': cluster_id},
            JobPriority.LOW,
        )

    async def delete_cluster(self, cluster_id: str, owner_id: str):
        if not await self.cluster_repo.delete(cluster_id, owner_id):
            raise NotFoundError(f"Cluster {cluster_id} not found")
        logger.info(f"Deleted cluster {cluster_id}")

    async def refresh_coherence(self, cluster_id: str, owner_id: str) -> float:
        """Explicit refresh; corrects a score left stale by a crash"""
        await self._require_cluster(cluster_id, owner_id)
        return await self.coherence.refresh_cluster(cluster_id)

    # =========================================================================
    # SUMMARIES
    # =========================================================================

    async def regenerate_summary(self, cluster_id: str, owner_id: str) -> ClusterSynthesis:
        """Synchronous, on-demand synthesis"""
        await self._require_cluster(cluster_id, owner_id)
        return await self.synthesizer.synthesize(cluster_id, owner_id)

    async def request_summary(self, cluster_id: str, owner_id: str) -> str:
        """Queue an explicit regeneration for the summary worker"""
        await self._require_cluster(cluster_id, owner_id)
        return await self.job_queue.enqueue(
            SUMMARY_QUEUE,
            {'owner_id': owner_id, 'cluster_id': cluster_id},
            JobPriority.NORMAL,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _refresh(self, cluster_id: str):
        """Best-effort coherence refresh after a membership write"""
        try:
            await self.coherence.refresh_cluster(cluster_id)
        except Exception as e:
            logger.error(f"Coherence refresh failed for cluster {cluster_id}: {e}", exc_info=True)

    async def _require_cluster(self, cluster_id: str, owner_id: str) -> Cluster:
        cluster = await self.cluster_repo.get_by_id(cluster_id, owner_id)
        if cluster is None:
            raise NotFoundError(f"Cluster {cluster_id} not found")
        return cluster

    async def _require_content(self, content_id: str, owner_id: str) -> ContentItem:
        item = await self.content_repo.get_by_id(content_id, owner_id)
        if item is None:
            raise NotFoundError(f"Content {content_id} not found")
        return item
