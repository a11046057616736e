"""
Domain Models - Storage-agnostic data structures

- Job / JobStatusRecord: queue records (Redis)
- ContentItem, Cluster, MembershipEdge: relational records (PostgreSQL)
- SuggestionEntry: cached cluster suggestions (Redis, TTL)
- ContentAnalysis / ClusterSynthesis: decoded LLM responses (pydantic)
"""

from .job import (
    Job,
    JobPriority,
    JobStatus,
    JobStatusRecord,
    JobResult,
    FollowUpJob,
    PRIORITY_ORDER,
)
from .content import ContentItem, ProcessingStatus, can_transition
from .cluster import Cluster, MembershipEdge, SuggestionEntry
from .llm import ContentAnalysis, ClusterSynthesis, Citation, Conflict

__all__ = [
    'Job',
    'JobPriority',
    'JobStatus',
    'JobStatusRecord',
    'JobResult',
    'FollowUpJob',
    'PRIORITY_ORDER',
    'ContentItem',
    'ProcessingStatus',
    'can_transition',
    'Cluster',
    'MembershipEdge',
    'SuggestionEntry',
    'ContentAnalysis',
    'ClusterSynthesis',
    'Citation',
    'Conflict',
]
