"""
Cluster suggestion cache

Written once per completed content job, read by the job status endpoint.
Stored in the job store under content:{content_id}:suggestions with a TTL.
"""
import json
import logging
from typing import List

from curator.models.cluster import SuggestionEntry
from curator.services.job_store import JobStore

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


def suggestions_key(content_id: str) -> str:
    return f"content:{content_id}:suggestions"


class SuggestionCache:

    def __init__(self, store: JobStore, ttl: int = 3600):
        self.store = store
        self.ttl = ttl

    async def store_suggestions(self, content_id: str, suggestions: List[SuggestionEntry]):
        if len(suggestions) > MAX_SUGGESTIONS:
            raise ValueError(f"At most {MAX_SUGGESTIONS} suggestions per item, got {len(suggestions)}")
        payload = json.dumps([s.to_dict() for s in suggestions])
        await self.store.put(suggestions_key(content_id), payload, ttl=self.ttl)

    async def get(self, content_id: str) -> List[SuggestionEntry]:
        """Cached suggestions, or an empty list once expired"""
        raw = await self.store.get(suggestions_key(content_id))
        if not raw:
            return []
        return [SuggestionEntry.from_dict(item) for item in json.loads(raw)]
