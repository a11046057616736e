"""
Repository Pattern - Storage abstraction layer

Repositories hide PostgreSQL details from workers and services.
Consumers work with domain models, not asyncpg records.

Tables:
- content           ContentItem (embedding + metadata as JSONB)
- clusters          Cluster (citations, conflicts, centroid as JSONB)
- content_clusters  MembershipEdge, UNIQUE (content_id, cluster_id)
"""
from .base import init_connection
from .content_repository import ContentRepository
from .cluster_repository import ClusterRepository

__all__ = [
    'init_connection',
    'ContentRepository',
    'ClusterRepository',
]
