"""
Cluster summary synthesis

Turns a cluster's member content into a narrative summary where every
claim cites a member item, plus a list of conflicting viewpoints.

Triggers:
- on demand (ClusterService.regenerate_summary)
- cluster-summary jobs, enqueued when a cluster reaches 3 members after an
  add, or by the enrichment pipeline for each suggested existing cluster

Two triggers can run for the same cluster at once; the later write wins.
"""
import logging
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from curator.errors import SynthesisError, SynthesisParseError
from curator.models.content import ContentItem
from curator.models.llm import ClusterSynthesis
from curator.utils.datetime_utils import parse_datetime, utcnow

logger = logging.getLogger(__name__)

MEMBER_BODY_CHARS = 1000

SYNTHESIS_PROMPT = """Analyze the following cluster of content and create a comprehensive summary.

Requirements:
1. Create a 3-4 paragraph synthesized summary that identifies key themes, insights, and trends
2. For every claim or insight, include a citation in the format "[→ Source Title, saved X days ago]"
3. Identify any conflicting viewpoints or contradictory information
4. Highlight emerging trends or patterns

Content:
{sources}

Respond in JSON format:
{{
  "summary": "comprehensive summary with citations",
  "citations": [
    {{
      "claim": "specific claim from summary",
      "sourceTitle": "Source Title",
      "sourceId": "content id",
      "daysAgo": 5
    }}
  ],
  "conflicts": [
    {{
      "description": "description of conflict",
      "sources": ["source1", "source2"]
    }}
  ]
}}"""


def build_sources_block(members: List[ContentItem]) -> str:
    """Title, id, age and the first 1000 chars of body for every member"""
    now = utcnow()
    blocks = []
    for index, item in enumerate(members, start=1):
        saved_at = parse_datetime(item.created_at)
        days_ago = (now - saved_at).days if saved_at else 0
        body = (item.full_text or '')[:MEMBER_BODY_CHARS]
        blocks.append(
            f"Source {index} (id: {item.id}, saved {days_ago} days ago): {item.title}\n{body}"
        )
    return '\n\n'.join(blocks)


class ClusterSynthesisClient:
    """LLM collaborator: member contents in, ClusterSynthesis out"""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o", timeout: Optional[float] = 60.0):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def synthesize(self, members: List[ContentItem]) -> ClusterSynthesis:
        prompt = SYNTHESIS_PROMPT.format(sources=build_sources_block(members))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=0.3,
                max_tokens=1000,
                timeout=self.timeout,
            )
        except OpenAIError as e:
            raise SynthesisError(f"Synthesis request failed: {e}") from e

        if not response.choices:
            raise SynthesisParseError("Synthesis response contained no choices")
        raw = response.choices[0].message.content or ''
        try:
            return ClusterSynthesis.model_validate_json(raw)
        except ValidationError as e:
            raise SynthesisParseError(f"Malformed synthesis response: {e.error_count()} errors") from e


class SummarySynthesizer:
    """
    Synthesizes and persists a cluster's summary

    Never raises because of the collaborator: empty clusters get the fixed
    "no content yet" result without a request, and failed or malformed
    responses get the fixed "unavailable" result. Neither fallback is
    persisted, so the last good summary stays in place.
    """

    def __init__(self, cluster_repo, client: ClusterSynthesisClient):
        self.cluster_repo = cluster_repo
        self.client = client

    async def synthesize(self, cluster_id: str, owner_id: str) -> ClusterSynthesis:
        members = [item for item, _ in await self.cluster_repo.get_members(cluster_id)]

        if not members:
            logger.info(f"Cluster {cluster_id} has no content, skipping synthesis")
            return ClusterSynthesis.no_content()

        try:
            synthesis = await self.client.synthesize(members)
        except SynthesisError as e:
            logger.error(f"❌ Summary generation failed for cluster {cluster_id}: {e}")
            return ClusterSynthesis.unavailable()
        except Exception as e:
            logger.error(f"❌ Summary generation crashed for cluster {cluster_id}: {e}", exc_info=True)
            return ClusterSynthesis.unavailable()

        await self.cluster_repo.update_summary(cluster_id, owner_id, synthesis)
        logger.info(
            f"✅ Cluster {cluster_id} summary updated "
            f"({len(synthesis.citations)} citations, {len(synthesis.conflicts)} conflicts)"
        )
        return synthesis
