"""
Cluster coherence engine

Coherence = mean pairwise cosine similarity across a cluster's members that
have a non-empty embedding. Recomputed in full (O(n²) over current members)
after every membership change; there is no incremental update.

The refresh is a best-effort follow-up to the membership write, not part of
the same transaction. A crash in between leaves a stale score that the next
membership change or explicit refresh corrects.
"""
import logging
import math
from itertools import combinations
from typing import List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def clamp_unit(value: float) -> float:
    """Clamp into [0, 1]; NaN and infinities become 0"""
    if value is None or not math.isfinite(value):
        return 0.0
    return min(max(float(value), 0.0), 1.0)


def _as_vector(values) -> Optional[np.ndarray]:
    if values is None:
        return None
    try:
        vec = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if vec.ndim != 1 or vec.size == 0:
        return None
    return vec


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """
    dot(v1, v2) / (|v1| * |v2|)

    Returns 0.0 (never raises, never NaN) when either vector is empty or
    malformed, the lengths differ, or either magnitude is zero.
    """
    a = _as_vector(v1)
    b = _as_vector(v2)
    if a is None or b is None or a.shape != b.shape:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if not math.isfinite(similarity):
        return 0.0
    return min(max(similarity, -1.0), 1.0)


def coherence(embeddings: Sequence[Sequence[float]]) -> float:
    """
    Mean cosine similarity over all unordered pairs of non-empty embeddings

    0.0 when fewer than two members have an embedding. Result is clamped
    into [0, 1].
    """
    embedded = [e for e in embeddings if e]
    if len(embedded) < 2:
        return 0.0

    total = 0.0
    pairs = 0
    for first, second in combinations(embedded, 2):
        total += cosine_similarity(first, second)
        pairs += 1

    return clamp_unit(total / pairs)


def centroid(embeddings: Sequence[Sequence[float]]) -> List[float]:
    """
    Mean vector of the non-empty embeddings sharing the most common length

    Used as the cluster's representative embedding for suggestions.
    """
    embedded = [e for e in embeddings if e]
    if not embedded:
        return []

    lengths = [len(e) for e in embedded]
    dim = max(set(lengths), key=lengths.count)
    matrix = np.asarray([e for e in embedded if len(e) == dim], dtype=np.float64)
    return np.mean(matrix, axis=0).tolist()


class CoherenceService:
    """Rewrites item_count / coherence_score / centroid for a cluster"""

    def __init__(self, cluster_repo):
        self.cluster_repo = cluster_repo

    async def refresh_cluster(self, cluster_id: str) -> float:
        """
        Recompute cluster metadata from its current members

        Returns:
            New coherence score
        """
        embeddings = await self.cluster_repo.get_member_embeddings(cluster_id)
        score = coherence(embeddings)
        await self.cluster_repo.update_metadata(
            cluster_id,
            item_count=len(embeddings),
            coherence_score=score,
            embedding=centroid(embeddings),
        )
        logger.info(
            f"Cluster {cluster_id}: {len(embeddings)} items, coherence={score:.2f}"
        )
        return score
