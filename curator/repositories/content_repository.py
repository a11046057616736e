"""
Content Repository - PostgreSQL storage for saved links

Status writes are guarded in SQL so processing_status only moves forward:
pending → processing → completed | failed. Each guarded update reports
whether a row actually changed.

ID format: ct_xxxxxxxx
"""
import logging
from datetime import datetime
from typing import List, Optional

import asyncpg

from curator.models.content import ContentItem, ProcessingStatus

logger = logging.getLogger(__name__)

CONTENT_COLUMNS = """
    id, user_id, url, canonical_url, title, full_text, metadata, embedding,
    processing_status, content_type, reading_time_estimate,
    created_at, updated_at
"""


def _row_to_content(row) -> ContentItem:
    return ContentItem(
        id=row['id'],
        owner_id=row['user_id'],
        url=row['url'],
        canonical_url=row['canonical_url'],
        title=row['title'],
        full_text=row['full_text'],
        embedding=[float(x) for x in (row['embedding'] or [])],
        processing_status=ProcessingStatus(row['processing_status']),
        content_type=row['content_type'] or 'article',
        metadata=row['metadata'] or {},
        reading_time_estimate=row['reading_time_estimate'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )


def _changed(status: str) -> bool:
    """asyncpg execute() returns e.g. 'UPDATE 1'"""
    return status.split()[-1] != '0'


class ContentRepository:
    """Repository for ContentItem domain model"""

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, content_id: str, owner_id: Optional[str] = None) -> Optional[ContentItem]:
        """
        Retrieve a content item, optionally scoped to its owner.

        Returns:
            ContentItem or None
        """
        async with self.db_pool.acquire() as conn:
            if owner_id is None:
                row = await conn.fetchrow(f"""
                    SELECT {CONTENT_COLUMNS} FROM content WHERE id = $1
                """, content_id)
            else:
                row = await conn.fetchrow(f"""
                    SELECT {CONTENT_COLUMNS} FROM content WHERE id = $1 AND user_id = $2
                """, content_id, owner_id)

        return _row_to_content(row) if row else None

    async def get_by_canonical_url(self, owner_id: str, canonical_url: str) -> Optional[ContentItem]:
        """Duplicate-save lookup"""
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                SELECT {CONTENT_COLUMNS} FROM content
                WHERE user_id = $1 AND canonical_url = $2
            """, owner_id, canonical_url)

        return _row_to_content(row) if row else None

    async def list_for_owner(self, owner_id: str, limit: int = 20, offset: int = 0) -> List[ContentItem]:
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT {CONTENT_COLUMNS} FROM content
                WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2 OFFSET $3
            """, owner_id, limit, offset)

        return [_row_to_content(row) for row in rows]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create(self, item: ContentItem) -> ContentItem:
        """Insert a new pending item (intake)"""
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("""
                INSERT INTO content (
                    id, user_id, url, canonical_url, title,
                    processing_status, content_type, metadata, embedding
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING created_at, updated_at
            """, item.id, item.owner_id, item.url, item.canonical_url, item.title,
                item.processing_status.value, item.content_type, item.metadata, item.embedding)

        item.created_at = row['created_at']
        item.updated_at = row['updated_at']
        logger.debug(f"📄 Created content {item.id}: {item.url}")
        return item

    async def mark_processing(self, content_id: str, owner_id: str) -> bool:
        """pending → processing"""
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                UPDATE content
                SET processing_status = 'processing', updated_at = NOW()
                WHERE id = $1 AND user_id = $2 AND processing_status = 'pending'
            """, content_id, owner_id)
        return _changed(status)

    async def mark_completed(
        self,
        content_id: str,
        owner_id: str,
        title: str,
        full_text: str,
        metadata: dict,
        embedding: List[float],
        content_type: str,
        reading_time_estimate: int,
        author: Optional[str],
        domain: Optional[str],
        published_date: Optional[datetime],
    ) -> bool:
        """processing → completed, persisting every enrichment field"""
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                UPDATE content
                SET title = $3,
                    full_text = $4,
                    metadata = $5,
                    embedding = $6,
                    content_type = $7,
                    reading_time_estimate = $8,
                    author = $9,
                    domain = $10,
                    published_date = $11,
                    processing_status = 'completed',
                    updated_at = NOW()
                WHERE id = $1 AND user_id = $2 AND processing_status = 'processing'
            """, content_id, owner_id, title, full_text, metadata, embedding,
                content_type, reading_time_estimate, author, domain, published_date)
        return _changed(status)

    async def mark_failed(self, content_id: str, owner_id: str) -> bool:
        """pending | processing → failed (status only, nothing else persisted)"""
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                UPDATE content
                SET processing_status = 'failed', updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                  AND processing_status IN ('pending', 'processing')
            """, content_id, owner_id)
        return _changed(status)

    async def reset_for_reprocess(self, content_id: str, owner_id: str) -> bool:
        """
        Start a new enrichment lifecycle for an explicit reprocess request.

        Only items that are not mid-flight can be reset.
        """
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("""
                UPDATE content
                SET processing_status = 'pending', updated_at = NOW()
                WHERE id = $1 AND user_id = $2
                  AND processing_status IN ('completed', 'failed', 'pending')
            """, content_id, owner_id)
        return _changed(status)
