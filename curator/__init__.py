"""
Curator - save a link, get it enriched and clustered

Async job pipeline:
- Redis priority job queue + terminal status ledger
- Polling workers (content enrichment, cluster summary)
- Cosine-similarity clustering with coherence scoring
- LLM-backed cluster synthesis with citations
"""
