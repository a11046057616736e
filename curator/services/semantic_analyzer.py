"""
Semantic analysis and embedding collaborators (OpenAI)

- ContentAnalyzer: summary, entities, sentiment, insights, content type
- Embedder: embedding vector for similarity comparison

Both raise their stage error (AnalysisError / EmbeddingError) on any API or
decode failure; the enrichment pipeline decides the fallback.
"""
import logging
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from curator.errors import AnalysisError, EmbeddingError
from curator.models.llm import ContentAnalysis

logger = logging.getLogger(__name__)

ANALYSIS_INPUT_CHARS = 4000
EMBEDDING_INPUT_CHARS = 8000

ANALYSIS_PROMPT = """Analyze the following content and provide:
1. A 2-3 sentence summary
2. Key entities (people, companies, concepts, topics)
3. Sentiment (positive, negative, neutral)
4. Key insights (3-5 main points)
5. Content type classification

Content: {title}

{body}

Respond in JSON format:
{{
  "summary": "brief summary",
  "entities": ["entity1", "entity2"],
  "sentiment": "positive/negative/neutral",
  "insights": ["insight1", "insight2"],
  "contentType": "article/video/social/research"
}}"""


class ContentAnalyzer:
    """Structured analysis of one piece of content"""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", timeout: Optional[float] = 60.0):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def analyze(self, body: str, title: str) -> ContentAnalysis:
        prompt = ANALYSIS_PROMPT.format(title=title, body=body[:ANALYSIS_INPUT_CHARS])

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.3,
                max_tokens=500,
                timeout=self.timeout,
            )
        except OpenAIError as e:
            raise AnalysisError(f"Analysis request failed: {e}") from e

        if not response.choices:
            raise AnalysisError("Analysis response contained no choices")
        raw = response.choices[0].message.content or ''
        try:
            return ContentAnalysis.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Malformed analysis response ({len(raw)} chars): {raw[:200]}")
            raise AnalysisError(f"Malformed analysis response: {e.error_count()} errors") from e


class Embedder:
    """Embedding vector for a text (input truncated to 8000 chars)"""

    def __init__(self, client: AsyncOpenAI, model: str = "text-embedding-3-small", timeout: Optional[float] = 60.0):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Nothing to embed")

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text[:EMBEDDING_INPUT_CHARS],
                timeout=self.timeout,
            )
        except OpenAIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding response contained no vectors")
        return [float(x) for x in response.data[0].embedding]
