"""
Content enrichment pipeline

Runs inside the content worker for payload {owner_id, content_id, url}:

1. Extraction     - fetch + parse the URL (fatal on failure)
2. Analysis       - summary/entities/sentiment/insights (fallback on failure)
3. Embedding      - vector for the body (empty vector on failure)
4. Suggestions    - rank the owner's clusters by cosine similarity (one generic
                    new-cluster proposal on failure)

On success the item is completed with every enrichment field, the
suggestions are cached for the status endpoint, and one low priority
cluster-summary follow-up is emitted per suggested existing cluster.

On any failure after the item entered `processing`, the item is marked
`failed` and the error propagates so the job fails too. Nothing else is
persisted for a failed run.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from curator.errors import AnalysisError, EmbeddingError, ExtractionError
from curator.models.cluster import SuggestionEntry
from curator.models.job import FollowUpJob, JobPriority, JobResult
from curator.models.llm import ContentAnalysis
from curator.services.coherence_service import clamp_unit, cosine_similarity
from curator.services.extractor import ExtractedContent
from curator.services.job_queue import SUMMARY_QUEUE
from curator.services.suggestion_cache import MAX_SUGGESTIONS
from curator.utils.datetime_utils import parse_datetime

logger = logging.getLogger(__name__)

MAX_TITLE_CHARS = 500
MAX_BODY_CHARS = 50000
EXCERPT_CHARS = 200

SIMILARITY_THRESHOLD = 0.30
NEW_CLUSTER_CONFIDENCE = 0.5
DEFAULT_NEW_CLUSTER_NAME = 'New Topic'
FALLBACK_CLUSTER_NAME = 'General'

READING_CHARS_PER_MINUTE = 200


@dataclass
class ContentPayload:
    owner_id: str
    content_id: str
    url: str

    @classmethod
    def from_job(cls, payload: Dict[str, Any]) -> 'ContentPayload':
        try:
            return cls(
                owner_id=payload['owner_id'],
                content_id=payload['content_id'],
                url=payload['url'],
            )
        except KeyError as e:
            raise ValueError(f"Content job payload missing {e.args[0]!r}") from e


class ContentEnrichmentPipeline:
    """Extraction → analysis → embedding → cluster suggestion"""

    def __init__(
        self,
        content_repo,
        cluster_repo,
        suggestion_cache,
        extractor,
        analyzer,
        embedder,
    ):
        self.content_repo = content_repo
        self.cluster_repo = cluster_repo
        self.suggestion_cache = suggestion_cache
        self.extractor = extractor
        self.analyzer = analyzer
        self.embedder = embedder

    async def run(self, payload: Dict[str, Any]) -> JobResult:
        job = ContentPayload.from_job(payload)

        item = await self.content_repo.get_by_id(job.content_id, job.owner_id)
        if item is None:
            raise ValueError(f"Content {job.content_id} not found for owner {job.owner_id}")

        if not await self.content_repo.mark_processing(job.content_id, job.owner_id):
            logger.warning(
                f"⚠️ Content {job.content_id} is {item.processing_status.value}, not pending - skipping"
            )
            return JobResult(detail={
                'content_id': job.content_id,
                'skipped': True,
                'reason': f"processing_status is {item.processing_status.value}",
            })

        try:
            return await self._enrich(job)
        except Exception:
            await self.content_repo.mark_failed(job.content_id, job.owner_id)
            raise

    async def _enrich(self, job: ContentPayload) -> JobResult:
        extracted = await self.extract(job.url)
        analysis = await self.analyze(extracted.body, extracted.title)
        embedding = await self.embed(extracted.body)
        suggestions = await self.suggest_clusters(job.owner_id, analysis, embedding)

        # Written before completion; a cache failure fails the item and the job together
        await self.suggestion_cache.store_suggestions(job.content_id, suggestions)

        completed = await self.content_repo.mark_completed(
            job.content_id,
            job.owner_id,
            title=extracted.title,
            full_text=extracted.body,
            metadata={
                'author': extracted.author,
                'domain': extracted.domain,
                'published_date': extracted.published_date,
                'excerpt': extracted.excerpt,
                'analysis': analysis.to_metadata(),
            },
            embedding=embedding,
            content_type=analysis.content_type,
            reading_time_estimate=math.ceil(len(extracted.body) / READING_CHARS_PER_MINUTE),
            author=extracted.author,
            domain=extracted.domain,
            published_date=parse_datetime(extracted.published_date),
        )
        if not completed:
            logger.warning(f"⚠️ Content {job.content_id} left processing before completion was written")

        follow_ups = [
            FollowUpJob(
                queue_name=SUMMARY_QUEUE,
                payload={'owner_id': job.owner_id, 'cluster_id': s.cluster_id},
                priority=JobPriority.LOW,
            )
            for s in suggestions
            if not s.is_new and s.cluster_id
        ]

        logger.info(
            f"✅ Enriched {job.content_id}: {len(extracted.body)} chars, "
            f"embedding={len(embedding)} dims, {len(suggestions)} suggestions"
        )
        return JobResult(
            detail={
                'content_id': job.content_id,
                'suggestions': len(suggestions),
            },
            follow_ups=follow_ups,
        )

    # =========================================================================
    # STAGES
    # =========================================================================

    async def extract(self, url: str) -> ExtractedContent:
        """Stage 1 - fatal on failure; applies the size limits"""
        try:
            extracted = await self.extractor.extract(url)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(url, f"{e.__class__.__name__}: {e}") from e

        body = (extracted.body or '')[:MAX_BODY_CHARS]
        if not body.strip():
            raise ExtractionError(url, "no readable text found")

        return ExtractedContent(
            title=(extracted.title or url)[:MAX_TITLE_CHARS],
            body=body,
            author=extracted.author or None,
            published_date=extracted.published_date or None,
            domain=extracted.domain,
            excerpt=body[:EXCERPT_CHARS],
        )

    async def analyze(self, body: str, title: str) -> ContentAnalysis:
        """Stage 2 - fallback analysis on failure"""
        try:
            return await self.analyzer.analyze(body, title)
        except AnalysisError as e:
            logger.warning(f"⚠️ Analysis unavailable, using fallback: {e}")
            return ContentAnalysis.fallback(title)
        except Exception as e:
            logger.warning(f"⚠️ Analysis crashed, using fallback: {e.__class__.__name__}: {e}", exc_info=True)
            return ContentAnalysis.fallback(title)

    async def embed(self, body: str) -> List[float]:
        """Stage 3 - empty vector on failure"""
        try:
            return await self.embedder.embed(body)
        except EmbeddingError as e:
            logger.warning(f"⚠️ Embedding unavailable, storing empty vector: {e}")
            return []
        except Exception as e:
            logger.warning(f"⚠️ Embedding crashed, storing empty vector: {e.__class__.__name__}: {e}", exc_info=True)
            return []

    async def suggest_clusters(self, owner_id: str, analysis: ContentAnalysis,
                               embedding: List[float]) -> List[SuggestionEntry]:
        """
        Stage 4 - up to 3 ranked suggestions

        Existing clusters whose centroid clears the similarity threshold,
        best first, padded with one proposed new cluster when fewer than 3
        qualify. If the clusters cannot be ranked, a single generic new
        cluster is proposed instead.
        """
        try:
            return await self._rank_clusters(owner_id, analysis, embedding)
        except Exception as e:
            logger.warning(f"⚠️ Cluster suggestions failed, proposing '{FALLBACK_CLUSTER_NAME}': {e}", exc_info=True)
            return [SuggestionEntry(
                name=FALLBACK_CLUSTER_NAME,
                confidence=NEW_CLUSTER_CONFIDENCE,
                is_new=True,
            )]

    async def _rank_clusters(self, owner_id: str, analysis: ContentAnalysis,
                             embedding: List[float]) -> List[SuggestionEntry]:
        clusters = await self.cluster_repo.list_for_owner(owner_id)

        scored = []
        for cluster in clusters:
            similarity = cosine_similarity(embedding, cluster.embedding)
            if similarity > SIMILARITY_THRESHOLD:
                scored.append(SuggestionEntry(
                    name=cluster.name,
                    confidence=clamp_unit(similarity),
                    is_new=False,
                    cluster_id=cluster.id,
                    item_count=cluster.item_count,
                ))

        scored.sort(key=lambda s: s.confidence, reverse=True)
        suggestions = scored[:MAX_SUGGESTIONS]

        if len(suggestions) < MAX_SUGGESTIONS:
            suggestions.append(SuggestionEntry(
                name=self._new_cluster_name(analysis),
                confidence=NEW_CLUSTER_CONFIDENCE,
                is_new=True,
            ))

        return suggestions

    def _new_cluster_name(self, analysis: Optional[ContentAnalysis]) -> str:
        if analysis and analysis.entities:
            name = analysis.entities[0].strip()
            if name:
                return name
        return DEFAULT_NEW_CLUSTER_NAME
