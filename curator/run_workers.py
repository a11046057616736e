#!/usr/bin/env python3
"""
Curator Workers
===============

Runs content and cluster-summary workers as asyncio tasks in one process.
SIGINT/SIGTERM stop polling; jobs already executing finish first.

Usage:
    python -m curator.run_workers                    # Run all workers
    python -m curator.run_workers --only content     # Just content workers
    python -m curator.run_workers --only summary     # Just cluster-summary workers
    python -m curator.run_workers --workers 2        # 2 of each worker type
"""
import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from openai import AsyncOpenAI

from curator.config.database import create_job_queue, create_job_store, create_postgres_pool
from curator.config.settings import get_settings
from curator.repositories import ClusterRepository, ContentRepository
from curator.services.enrichment_pipeline import ContentEnrichmentPipeline
from curator.services.extractor import ContentExtractor
from curator.services.job_queue import JobQueue
from curator.services.semantic_analyzer import ContentAnalyzer, Embedder
from curator.services.suggestion_cache import SuggestionCache
from curator.services.summary_synthesizer import ClusterSynthesisClient, SummarySynthesizer
from curator.workers import BaseWorker, ClusterSummaryWorker, ContentWorker, WorkerManager

log = logging.getLogger('worker-manager')


def build_workers(args, job_queue: JobQueue, store, content_repo, cluster_repo,
                  openai_client: AsyncOpenAI) -> List[BaseWorker]:
    """Build worker instances based on args."""
    settings = get_settings()
    workers: List[BaseWorker] = []

    if args.only in (None, 'content', 'all'):
        pipeline = ContentEnrichmentPipeline(
            content_repo=content_repo,
            cluster_repo=cluster_repo,
            suggestion_cache=SuggestionCache(store, ttl=settings.suggestion_ttl),
            extractor=ContentExtractor(timeout=settings.fetch_timeout),
            analyzer=ContentAnalyzer(openai_client, model=settings.analysis_model, timeout=settings.llm_timeout),
            embedder=Embedder(openai_client, model=settings.embedding_model, timeout=settings.llm_timeout),
        )
        for i in range(args.workers):
            workers.append(ContentWorker(
                job_queue,
                pipeline,
                worker_id=i + 1,
                poll_interval=settings.content_poll_interval,
                max_backoff=settings.max_backoff_interval,
            ))

    if args.only in (None, 'summary', 'all'):
        synthesizer = SummarySynthesizer(
            cluster_repo,
            ClusterSynthesisClient(openai_client, model=settings.synthesis_model, timeout=settings.llm_timeout),
        )
        for i in range(args.workers):
            workers.append(ClusterSummaryWorker(
                job_queue,
                cluster_repo,
                synthesizer,
                worker_id=i + 1,
                poll_interval=settings.summary_poll_interval,
                max_backoff=settings.max_backoff_interval,
            ))

    return workers


async def run(args):
    settings = get_settings()

    db_pool = await create_postgres_pool()
    store = await create_job_store()
    openai_client = AsyncOpenAI(api_key=settings.openai_api_key or None)

    try:
        job_queue = await create_job_queue(store)
        workers = build_workers(
            args,
            job_queue,
            store,
            ContentRepository(db_pool),
            ClusterRepository(db_pool),
            openai_client,
        )
        manager = WorkerManager(workers)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, manager.request_stop)

        log.info(f"Starting {len(workers)} worker(s)... Press Ctrl+C to stop.")
        await manager.run()
    finally:
        await openai_client.close()
        await store.close()
        await db_pool.close()
        log.info("Connections closed")


def main():
    env_path = Path.cwd() / '.env'
    load_dotenv(env_path)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s'
    )

    parser = argparse.ArgumentParser(description='Curator Workers')
    parser.add_argument('--only', choices=['content', 'summary', 'all'],
                        help='Run only specific worker type')
    parser.add_argument('--workers', type=int, default=1,
                        help='Number of instances of each worker type (default: 1)')
    args = parser.parse_args()

    if args.workers < 1:
        parser.error('--workers must be at least 1')

    asyncio.run(run(args))


if __name__ == '__main__':
    main()
