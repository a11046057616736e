"""
Test: Content Enrichment Pipeline
=================================

Extraction → analysis → embedding → suggestions, including the fallback
paths and the failure transitions of the content item.
"""

import pytest

from curator.errors import ExtractionError, QueueUnavailableError
from curator.models import ContentAnalysis, JobPriority, JobStatus, ProcessingStatus
from curator.services.enrichment_pipeline import (
    DEFAULT_NEW_CLUSTER_NAME,
    FALLBACK_CLUSTER_NAME,
    MAX_BODY_CHARS,
    MAX_TITLE_CHARS,
    NEW_CLUSTER_CONFIDENCE,
    ContentEnrichmentPipeline,
)
from curator.services.extractor import ExtractedContent
from curator.services.job_queue import CONTENT_QUEUE, SUMMARY_QUEUE
from curator.services.semantic_analyzer import ContentAnalyzer
from curator.tests.fakes import (
    FakeOpenAI,
    StubAnalyzer,
    StubEmbedder,
    StubExtractor,
    make_cluster,
    make_content,
)
from curator.workers import ContentWorker


class UnreachableSuggestionCache:
    async def store_suggestions(self, content_id, suggestions):
        raise QueueUnavailableError('Redis unreachable')

    async def get(self, content_id):
        return []


def build_pipeline(content_repo, cluster_repo, suggestion_cache, extractor,
                   analyzer=None, embedder=None):
    return ContentEnrichmentPipeline(
        content_repo=content_repo,
        cluster_repo=cluster_repo,
        suggestion_cache=suggestion_cache,
        extractor=extractor,
        analyzer=analyzer or StubAnalyzer(),
        embedder=embedder or StubEmbedder(),
    )


def pending_item(content_repo, owner_id='user-1'):
    return content_repo.add(make_content(
        owner_id=owner_id,
        title='Processing...',
        full_text=None,
        status=ProcessingStatus.PENDING,
    ))


def payload_for(item):
    return {'owner_id': item.owner_id, 'content_id': item.id, 'url': item.url}


@pytest.fixture
def analysis():
    return ContentAnalysis(
        summary='Kernel maintainers weigh Rust adoption.',
        entities=['Linux', 'Rust'],
        sentiment='positive',
        insights=['Rust drivers are landing'],
        content_type='article',
    )


class TestHappyPath:

    @pytest.mark.asyncio
    async def test_item_completed_with_enrichment(self, content_repo, cluster_repo, suggestion_cache,
                                                  extracted, analysis):
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache,
            StubExtractor(extracted), StubAnalyzer(analysis), StubEmbedder([0.1, 0.2, 0.3]),
        )

        result = await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.COMPLETED
        assert item.title == 'Rust in the Linux kernel'
        assert item.full_text == extracted.body
        assert item.embedding == [0.1, 0.2, 0.3]
        assert item.metadata['author'] == 'Jane Doe'
        assert item.metadata['domain'] == 'example.com'
        assert item.metadata['analysis']['entities'] == ['Linux', 'Rust']
        assert item.metadata['analysis']['sentiment'] == 'positive'
        assert item.reading_time_estimate == -(-len(extracted.body) // 200)
        assert result.detail == {'content_id': item.id, 'suggestions': 1}

    @pytest.mark.asyncio
    async def test_analysis_and_embedding_unavailable(self, content_repo, cluster_repo, suggestion_cache,
                                                      extracted):
        """Both collaborators down: item still completes with fallbacks."""
        item = pending_item(content_repo)
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.COMPLETED
        assert item.embedding == []
        analysis = item.metadata['analysis']
        assert analysis['sentiment'] == 'neutral'
        assert analysis['entities'] == []
        assert analysis['insights'] == []
        assert analysis['summary'] == extracted.title

    @pytest.mark.asyncio
    async def test_analysis_response_without_choices_falls_back(self, content_repo, cluster_repo,
                                                                suggestion_cache, extracted):
        item = pending_item(content_repo)
        analyzer = ContentAnalyzer(FakeOpenAI(no_choices=True))
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted), analyzer=analyzer,
        )

        await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.COMPLETED
        assert item.metadata['analysis']['sentiment'] == 'neutral'

    @pytest.mark.asyncio
    async def test_unexpected_collaborator_errors_fall_back(self, content_repo, cluster_repo,
                                                            suggestion_cache, extracted):
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted),
            StubAnalyzer(error=RuntimeError('unexpected payload')),
            StubEmbedder(error=KeyError('data')),
        )

        await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.COMPLETED
        assert item.embedding == []
        assert item.metadata['analysis']['summary'] == extracted.title

    @pytest.mark.asyncio
    async def test_size_limits_applied(self, content_repo, cluster_repo, suggestion_cache):
        item = pending_item(content_repo)
        huge = ExtractedContent(title='T' * 900, body='b' * (MAX_BODY_CHARS + 5000))
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(huge))

        await pipeline.run(payload_for(item))

        assert len(item.title) == MAX_TITLE_CHARS
        assert len(item.full_text) == MAX_BODY_CHARS
        assert item.metadata['excerpt'] == 'b' * 200

    @pytest.mark.asyncio
    async def test_suggestions_cached(self, content_repo, cluster_repo, suggestion_cache, extracted, analysis):
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache,
            StubExtractor(extracted), StubAnalyzer(analysis), StubEmbedder([1.0, 0.0]),
        )

        await pipeline.run(payload_for(item))
        cached = await suggestion_cache.get(item.id)

        assert len(cached) == 1
        assert cached[0].is_new
        assert cached[0].name == 'Linux'


class TestFailures:

    @pytest.mark.asyncio
    async def test_extraction_failure_marks_item_failed(self, content_repo, cluster_repo, suggestion_cache):
        item = pending_item(content_repo)
        extractor = StubExtractor(error=ExtractionError(item.url, 'HTTP 404'))
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, extractor)

        with pytest.raises(ExtractionError):
            await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.FAILED
        assert item.full_text is None
        assert item.embedding == []
        assert await suggestion_cache.get(item.id) == []

    @pytest.mark.asyncio
    async def test_unexpected_extractor_error_is_extraction_error(self, content_repo, cluster_repo,
                                                                  suggestion_cache):
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache, StubExtractor(error=RuntimeError('parser crashed')),
        )

        with pytest.raises(ExtractionError) as exc_info:
            await pipeline.run(payload_for(item))

        assert 'parser crashed' in str(exc_info.value)
        assert item.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_empty_body_is_extraction_failure(self, content_repo, cluster_repo, suggestion_cache):
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache, StubExtractor(ExtractedContent(title='x', body='   ')),
        )

        with pytest.raises(ExtractionError):
            await pipeline.run(payload_for(item))

        assert item.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_cache_failure_fails_item_and_job(self, job_queue, content_repo, cluster_repo, extracted):
        """Item status and job status agree when the suggestion write fails."""
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, UnreachableSuggestionCache(), StubExtractor(extracted),
        )
        worker = ContentWorker(job_queue, pipeline, poll_interval=0.01)
        job_id = await job_queue.enqueue(CONTENT_QUEUE, payload_for(item))

        await worker.run_once()

        assert item.processing_status == ProcessingStatus.FAILED
        assert (await job_queue.get_status(job_id)).status == JobStatus.FAILED
        assert worker.jobs_failed == 1

    @pytest.mark.asyncio
    async def test_item_not_pending_is_skipped(self, content_repo, cluster_repo, suggestion_cache, extracted):
        item = content_repo.add(make_content(status=ProcessingStatus.COMPLETED))
        extractor = StubExtractor(extracted)
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, extractor)

        result = await pipeline.run(payload_for(item))

        assert result.detail['skipped'] is True
        assert extractor.calls == []
        assert item.processing_status == ProcessingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_missing_item_raises(self, content_repo, cluster_repo, suggestion_cache, extracted):
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        with pytest.raises(ValueError):
            await pipeline.run({'owner_id': 'user-1', 'content_id': 'ct_00000000', 'url': 'https://a.io'})

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self, content_repo, cluster_repo, suggestion_cache, extracted):
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        with pytest.raises(ValueError):
            await pipeline.run({'owner_id': 'user-1'})


class TestSuggestions:

    @pytest.mark.asyncio
    async def test_no_clusters_gives_single_new_entry(self, content_repo, cluster_repo, suggestion_cache,
                                                      extracted):
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        suggestions = await pipeline.suggest_clusters('user-1', ContentAnalysis.fallback('x'), [1.0, 0.0])

        assert len(suggestions) == 1
        assert suggestions[0].is_new
        assert suggestions[0].name == DEFAULT_NEW_CLUSTER_NAME
        assert suggestions[0].confidence == NEW_CLUSTER_CONFIDENCE

    @pytest.mark.asyncio
    async def test_cluster_lookup_failure_proposes_general(self, content_repo, cluster_repo,
                                                           suggestion_cache, extracted, analysis):
        async def broken_lookup(owner_id):
            raise RuntimeError('clusters table unavailable')

        cluster_repo.list_for_owner = broken_lookup
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache,
            StubExtractor(extracted), StubAnalyzer(analysis), StubEmbedder([1.0, 0.0]),
        )

        result = await pipeline.run(payload_for(item))
        cached = await suggestion_cache.get(item.id)

        assert item.processing_status == ProcessingStatus.COMPLETED
        assert [(s.name, s.confidence, s.is_new) for s in cached] == [
            (FALLBACK_CLUSTER_NAME, NEW_CLUSTER_CONFIDENCE, True)
        ]
        assert result.follow_ups == []

    @pytest.mark.asyncio
    async def test_ranked_and_capped_at_three(self, content_repo, cluster_repo, suggestion_cache, extracted,
                                              analysis):
        for name, vector in [('a', [1.0, 0.1]), ('b', [1.0, 0.5]), ('c', [1.0, 0.9]), ('d', [1.0, 0.0])]:
            cluster_repo.add(make_cluster(name=name, embedding=vector))
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        suggestions = await pipeline.suggest_clusters('user-1', analysis, [1.0, 0.0])

        assert len(suggestions) == 3
        assert [s.name for s in suggestions] == ['d', 'a', 'b']
        assert not any(s.is_new for s in suggestions)
        confidences = [s.confidence for s in suggestions]
        assert confidences == sorted(confidences, reverse=True)
        assert all(0.0 <= c <= 1.0 for c in confidences)

    @pytest.mark.asyncio
    async def test_threshold_filters_dissimilar_clusters(self, content_repo, cluster_repo, suggestion_cache,
                                                         extracted, analysis):
        cluster_repo.add(make_cluster(name='close', embedding=[1.0, 0.2]))
        cluster_repo.add(make_cluster(name='far', embedding=[0.0, 1.0]))
        cluster_repo.add(make_cluster(name='empty'))
        cluster_repo.add(make_cluster(owner_id='someone-else', name='foreign', embedding=[1.0, 0.0]))
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        suggestions = await pipeline.suggest_clusters('user-1', analysis, [1.0, 0.0])

        assert [s.name for s in suggestions] == ['close', 'Linux']
        assert suggestions[1].is_new

    @pytest.mark.asyncio
    async def test_empty_embedding_only_proposes_new(self, content_repo, cluster_repo, suggestion_cache,
                                                     extracted, analysis):
        cluster_repo.add(make_cluster(name='close', embedding=[1.0, 0.0]))
        pipeline = build_pipeline(content_repo, cluster_repo, suggestion_cache, StubExtractor(extracted))

        suggestions = await pipeline.suggest_clusters('user-1', analysis, [])

        assert len(suggestions) == 1
        assert suggestions[0].is_new

    @pytest.mark.asyncio
    async def test_follow_up_summary_job_per_existing_suggestion(self, content_repo, cluster_repo,
                                                                 suggestion_cache, extracted, analysis):
        first = cluster_repo.add(make_cluster(name='first', embedding=[1.0, 0.0]))
        second = cluster_repo.add(make_cluster(name='second', embedding=[1.0, 0.3]))
        item = pending_item(content_repo)
        pipeline = build_pipeline(
            content_repo, cluster_repo, suggestion_cache,
            StubExtractor(extracted), StubAnalyzer(analysis), StubEmbedder([1.0, 0.0]),
        )

        result = await pipeline.run(payload_for(item))

        assert {f.payload['cluster_id'] for f in result.follow_ups} == {first.id, second.id}
        assert all(f.queue_name == SUMMARY_QUEUE for f in result.follow_ups)
        assert all(f.priority == JobPriority.LOW for f in result.follow_ups)
        assert all(f.payload['owner_id'] == 'user-1' for f in result.follow_ups)
