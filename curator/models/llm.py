"""
Pydantic schemas for LLM collaborator responses

Every collaborator response is decoded strictly against one of these
models. A mismatch raises pydantic.ValidationError, which the collaborator
turns into its stage error; callers then substitute the typed fallback
provided here.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


Sentiment = Literal['positive', 'negative', 'neutral']

NO_CONTENT_SUMMARY = 'No content in this cluster yet.'
UNAVAILABLE_SUMMARY = 'Unable to generate summary at this time.'


class ContentAnalysis(BaseModel):
    """Structured semantic analysis of one content item"""
    summary: str
    entities: List[str] = []
    sentiment: Sentiment
    insights: List[str] = []
    content_type: str = Field(default='article', alias='contentType')

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator('sentiment', mode='before')
    @classmethod
    def lowercase_sentiment(cls, v):
        """Models occasionally answer 'Positive'"""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @classmethod
    def fallback(cls, title: str) -> 'ContentAnalysis':
        """Analysis used when the analyzer is unavailable or answers garbage"""
        return cls(
            summary=title,
            entities=[],
            sentiment='neutral',
            insights=[],
            content_type='article',
        )

    def to_metadata(self) -> dict:
        return self.model_dump(by_alias=False)


class Citation(BaseModel):
    """Links one claim in the summary back to a member item"""
    claim: str
    source_title: str = Field(alias='sourceTitle')
    source_id: Optional[str] = Field(default=None, alias='sourceId')
    days_ago: Optional[int] = Field(default=None, alias='daysAgo')

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator('source_id', mode='before')
    @classmethod
    def stringify_source_id(cls, v):
        if v is None:
            return v
        return str(v)


class Conflict(BaseModel):
    """Contradiction between member items"""
    description: str
    sources: List[str] = []

    model_config = {"extra": "ignore"}


class ClusterSynthesis(BaseModel):
    """Synthesized, cited summary of a cluster"""
    summary: str
    citations: List[Citation] = []
    conflicts: List[Conflict] = []

    model_config = {"extra": "ignore"}

    @classmethod
    def no_content(cls) -> 'ClusterSynthesis':
        return cls(summary=NO_CONTENT_SUMMARY, citations=[], conflicts=[])

    @classmethod
    def unavailable(cls) -> 'ClusterSynthesis':
        return cls(summary=UNAVAILABLE_SUMMARY, citations=[], conflicts=[])

    @property
    def is_fallback(self) -> bool:
        return self.summary in (NO_CONTENT_SUMMARY, UNAVAILABLE_SUMMARY) and not self.citations

    def citations_json(self) -> List[dict]:
        return [c.model_dump(by_alias=True) for c in self.citations]

    def conflicts_json(self) -> List[dict]:
        return [c.model_dump() for c in self.conflicts]
