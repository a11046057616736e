"""
ContentItem domain model
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessingStatus(str, Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


# Forward-only lifecycle driven by the enrichment pipeline
ALLOWED_TRANSITIONS = {
    ProcessingStatus.PENDING: {ProcessingStatus.PROCESSING, ProcessingStatus.FAILED},
    ProcessingStatus.PROCESSING: {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED},
    ProcessingStatus.COMPLETED: set(),
    ProcessingStatus.FAILED: set(),
}


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    return ProcessingStatus(target) in ALLOWED_TRANSITIONS[ProcessingStatus(current)]


@dataclass
class ContentItem:
    """
    A saved link owned by one user.

    Created pending at intake; mutated only by the enrichment pipeline.
    `metadata` holds author, domain, published_date, excerpt and the
    semantic `analysis` dict.
    """
    id: str
    owner_id: str
    url: str
    canonical_url: Optional[str] = None
    title: str = 'Processing...'
    full_text: Optional[str] = None
    embedding: List[float] = field(default_factory=list)
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    content_type: str = 'article'
    metadata: Dict[str, Any] = field(default_factory=dict)
    reading_time_estimate: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    @property
    def analysis(self) -> Dict[str, Any]:
        return self.metadata.get('analysis') or {}
