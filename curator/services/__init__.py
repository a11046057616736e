"""
Services - queue, pipeline, clustering and synthesis
"""
from .job_store import JobStore
from .job_queue import JobQueue, CONTENT_QUEUE, SUMMARY_QUEUE
from .suggestion_cache import SuggestionCache
from .coherence_service import CoherenceService, cosine_similarity, coherence
from .enrichment_pipeline import ContentEnrichmentPipeline
from .summary_synthesizer import SummarySynthesizer, ClusterSynthesisClient
from .cluster_service import ClusterService
from .content_service import ContentService

__all__ = [
    'JobStore',
    'JobQueue',
    'CONTENT_QUEUE',
    'SUMMARY_QUEUE',
    'SuggestionCache',
    'CoherenceService',
    'cosine_similarity',
    'coherence',
    'ContentEnrichmentPipeline',
    'SummarySynthesizer',
    'ClusterSynthesisClient',
    'ClusterService',
    'ContentService',
]
