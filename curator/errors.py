"""
Error taxonomy for the enrichment pipeline

Fatal:
- ExtractionError: nothing to enrich, content job fails

Non-fatal (caller substitutes a fallback value):
- AnalysisError, EmbeddingError, SynthesisError / SynthesisParseError

Infrastructure:
- QueueUnavailableError: Redis unreachable, workers back off

Intake:
- IntakeValidationError: rejected before any job is created
"""


class CuratorError(Exception):
    """Base class for all curator errors"""


class ExtractionError(CuratorError):
    """URL could not be fetched or parsed into text"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to extract content from {url}: {reason}")


class AnalysisError(CuratorError):
    """Semantic analysis request failed or returned an unusable shape"""


class EmbeddingError(CuratorError):
    """Embedding request failed"""


class SynthesisError(CuratorError):
    """Cluster synthesis request failed"""


class SynthesisParseError(SynthesisError):
    """Cluster synthesis returned output that does not match the schema"""


class QueueUnavailableError(CuratorError):
    """Job store could not be reached"""


class NotFoundError(CuratorError):
    """Content item or cluster does not exist for this owner"""


class IntakeValidationError(CuratorError):
    """Save request rejected (malformed URL, duplicate save, unknown item)"""
