"""
Cluster, membership and suggestion models
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Cluster:
    """
    Topic cluster owned by one user.

    `embedding` is the centroid of the members' embeddings, rewritten on
    every membership change together with `item_count` and
    `coherence_score`. Summary fields are written by the synthesizer.
    """
    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    synthesized_summary: Optional[str] = None
    citations: List[Dict[str, Any]] = field(default_factory=list)
    conflicts: List[Dict[str, Any]] = field(default_factory=list)
    item_count: int = 0
    coherence_score: float = 0.0
    embedding: List[float] = field(default_factory=list)
    is_auto_generated: bool = False
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class MembershipEdge:
    """ContentItem x Cluster; at most one per (content_id, cluster_id)"""
    content_id: str
    cluster_id: str
    similarity_score: float = 0.0
    is_primary: bool = False

    @property
    def key(self):
        return (self.content_id, self.cluster_id)


@dataclass
class SuggestionEntry:
    """Ranked candidate cluster for a content item (cached, never persisted)"""
    name: str
    confidence: float
    is_new: bool
    cluster_id: Optional[str] = None
    item_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'confidence': round(self.confidence, 4),
            'is_new': self.is_new,
        }
        if self.cluster_id is not None:
            data['cluster_id'] = self.cluster_id
        if self.item_count is not None:
            data['item_count'] = self.item_count
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SuggestionEntry':
        return cls(
            name=data['name'],
            confidence=float(data['confidence']),
            is_new=bool(data['is_new']),
            cluster_id=data.get('cluster_id'),
            item_count=data.get('item_count'),
        )
