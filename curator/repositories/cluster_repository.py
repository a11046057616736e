"""
Cluster Repository - PostgreSQL storage for clusters and memberships

Membership edges live in content_clusters with UNIQUE (content_id,
cluster_id); every write is an upsert so concurrent adds of the same pair
never race on a read-modify-write.

ID format: cu_xxxxxxxx
"""
import logging
from typing import Iterable, List, Optional, Tuple

import asyncpg

from curator.models.cluster import Cluster, MembershipEdge
from curator.models.content import ContentItem
from curator.models.llm import ClusterSynthesis
from curator.repositories.content_repository import _row_to_content, _changed

logger = logging.getLogger(__name__)

CLUSTER_COLUMNS = """
    id, user_id, name, description, synthesized_summary, summary_citations,
    conflicts, item_count, coherence_score, embedding, is_auto_generated,
    last_updated, created_at
"""

UPSERT_MEMBER_SQL = """
    INSERT INTO content_clusters (content_id, cluster_id, similarity_score, is_primary)
    VALUES ($1, $2, $3, $4)
    ON CONFLICT (content_id, cluster_id) DO UPDATE
    SET similarity_score = EXCLUDED.similarity_score,
        is_primary = EXCLUDED.is_primary
"""


def _row_to_cluster(row) -> Cluster:
    return Cluster(
        id=row['id'],
        owner_id=row['user_id'],
        name=row['name'],
        description=row['description'],
        synthesized_summary=row['synthesized_summary'],
        citations=row['summary_citations'] or [],
        conflicts=row['conflicts'] or [],
        item_count=row['item_count'] or 0,
        coherence_score=float(row['coherence_score'] or 0.0),
        embedding=[float(x) for x in (row['embedding'] or [])],
        is_auto_generated=row['is_auto_generated'],
        last_updated=row['last_updated'],
        created_at=row['created_at'],
    )


class ClusterRepository:
    """Repository for Cluster and MembershipEdge"""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # CLUSTERS
    # =========================================================================

    async def get_by_id(self, cluster_id: str, owner_id: Optional[str] = None) -> Optional[Cluster]:
        async with self.db_pool.acquire() as conn:
            if owner_id is None:
                row = await conn.fetchrow(f"""
                    SELECT {CLUSTER_COLUMNS} FROM clusters WHERE id = $1
                """, cluster_id)
            else:
                row = await conn.fetchrow(f"""
                    SELECT {CLUSTER_COLUMNS} FROM clusters WHERE id = $1 AND user_id = $2
                """, cluster_id, owner_id)

        return _row_to_cluster(row) if row else None

    async def list_for_owner(self, owner_id: str) -> List[Cluster]:
        """All clusters of one user, most recently updated first"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT {CLUSTER_COLUMNS} FROM clusters
                WHERE user_id = $1
                ORDER BY last_updated DESC
            """, owner_id)

        return [_row_to_cluster(row) for row in rows]

    async def create(self, cluster: Cluster) -> Cluster:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO clusters (
                    id, user_id, name, description, is_auto_generated,
                    summary_citations, conflicts, embedding
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING created_at, last_updated
            """, cluster.id, cluster.owner_id, cluster.name, cluster.description,
                cluster.is_auto_generated, cluster.citations, cluster.conflicts, cluster.embedding)

        cluster.created_at = row['created_at']
        cluster.last_updated = row['last_updated']
        logger.debug(f"🗂️ Created cluster {cluster.id}: {cluster.name}")
        return cluster

    async def delete(self, cluster_id: str, owner_id: str) -> bool:
        """Delete a cluster; its edges go with it (ON DELETE CASCADE)"""
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                DELETE FROM clusters WHERE id = $1 AND user_id = $2
            """, cluster_id, owner_id)
        return _changed(status)

    async def update_metadata(self, cluster_id: str, item_count: int,
                              coherence_score: float, embedding: List[float]):
        async with self.db_pool.acquire() as conn:
            await conn.execute("""
                UPDATE clusters
                SET item_count = $2,
                    coherence_score = $3,
                    embedding = $4,
                    last_updated = NOW()
                WHERE id = $1
            """, cluster_id, item_count, coherence_score, embedding)

    async def update_summary(self, cluster_id: str, owner_id: str, synthesis: ClusterSynthesis):
        """Persist summary, citations and conflicts (last writer wins)"""
        async with self.db_pool.acquire() as conn:
            await conn.execute("""
                UPDATE clusters
                SET synthesized_summary = $3,
                    summary_citations = $4,
                    conflicts = $5,
                    last_updated = NOW()
                WHERE id = $1 AND user_id = $2
            """, cluster_id, owner_id, synthesis.summary,
                synthesis.citations_json(), synthesis.conflicts_json())

    # =========================================================================
    # MEMBERSHIP
    # =========================================================================

    async def upsert_member(self, edge: MembershipEdge):
        async with self.db_pool.acquire() as conn:
            await conn.execute(
                UPSERT_MEMBER_SQL,
                edge.content_id, edge.cluster_id, edge.similarity_score, edge.is_primary,
            )

    async def upsert_members(self, edges: Iterable[MembershipEdge]):
        args = [(e.content_id, e.cluster_id, e.similarity_score, e.is_primary) for e in edges]
        if not args:
            return
        async with self.db_pool.acquire() as conn:
            await conn.executemany(UPSERT_MEMBER_SQL, args)

    async def remove_member(self, cluster_id: str, content_id: str) -> bool:
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                DELETE FROM content_clusters WHERE cluster_id = $1 AND content_id = $2
            """, cluster_id, content_id)
        return _changed(status)

    async def demote_primary(self, content_id: str):
        """Clear is_primary on every edge of one content item"""
        async with self.db_pool.acquire() as conn:
            await conn.execute("""
                UPDATE content_clusters SET is_primary = FALSE
                WHERE content_id = $1 AND is_primary
            """, content_id)

    async def member_count(self, cluster_id: str) -> int:
        async with self.db_pool.acquire() as conn:
            return await conn.fetchval("""
                SELECT COUNT(*) FROM content_clusters WHERE cluster_id = $1
            """, cluster_id)

    async def get_member_embeddings(self, cluster_id: str) -> List[List[float]]:
        """One entry per member; members without an embedding yield []"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT c.embedding
                FROM content_clusters cc
                JOIN content c ON c.id = cc.content_id
                WHERE cc.cluster_id = $1
            """, cluster_id)

        return [[float(x) for x in (row['embedding'] or [])] for row in rows]

    async def get_members(self, cluster_id: str) -> List[Tuple[ContentItem, MembershipEdge]]:
        """Member items with their edge, newest first"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT c.id, c.user_id, c.url, c.canonical_url, c.title, c.full_text,
                       c.metadata, c.embedding, c.processing_status, c.content_type,
                       c.reading_time_estimate, c.created_at, c.updated_at,
                       cc.similarity_score, cc.is_primary
                FROM content_clusters cc
                JOIN content c ON c.id = cc.content_id
                WHERE cc.cluster_id = $1
                ORDER BY c.created_at DESC
            """, cluster_id)

        return [
            (
                _row_to_content(row),
                MembershipEdge(
                    content_id=row['id'],
                    cluster_id=cluster_id,
                    similarity_score=float(row['similarity_score'] or 0.0),
                    is_primary=row['is_primary'],
                ),
            )
            for row in rows
        ]
