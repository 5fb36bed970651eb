"""Merge lexical and semantic rankings into one list.

Both policies key documents by id and build the union in a fixed order: every
lexical result in lexical rank order, then semantic-only documents in semantic
rank order. Sorting is stable, so equal fused scores keep that order.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from hybrid_retrieval.exceptions import InvalidArgumentError

from .models import FusedResult, RankedResult

HYBRID_SEARCH_ALPHA = 0.5
RECIPROCAL_RANK_FUSION_K = 60


def normalize_scores(scores: Sequence[float]) -> List[float]:
    """Min-max scale ``scores`` into ``[0, 1]``; a flat list maps to all ones."""

    if not scores:
        return []
    low = min(scores)
    high = max(scores)
    if low == high:
        return [1.0 for _ in scores]
    span = high - low
    return [(score - low) / span for score in scores]


def hybrid_score(lexical_score: float, semantic_score: float, alpha: float = HYBRID_SEARCH_ALPHA) -> float:
    return alpha * lexical_score + (1 - alpha) * semantic_score


def rrf_score(rank: int, k: int = RECIPROCAL_RANK_FUSION_K) -> float:
    return 1 / (rank + k)


def weighted_fusion(
    lexical: Sequence[RankedResult],
    semantic: Sequence[RankedResult],
    *,
    alpha: float = HYBRID_SEARCH_ALPHA,
    limit: int = 5,
) -> List[FusedResult]:
    """Combine min-max normalized scores as ``alpha * lexical + (1 - alpha) * semantic``.

    A document missing from one list contributes ``0`` for that list.
    """

    if not 0 <= alpha <= 1:
        raise InvalidArgumentError(f"alpha must be within [0, 1], got {alpha}")

    fused: Dict[int, FusedResult] = {}
    for rank, (result, normalized) in enumerate(
        zip(lexical, normalize_scores([item.score for item in lexical])), start=1
    ):
        entry = fused.setdefault(result.document.id, FusedResult(result.document, 0.0))
        entry.lexical_score = normalized
        entry.lexical_rank = rank
        entry.lexical_raw_score = result.score

    for rank, (result, normalized) in enumerate(
        zip(semantic, normalize_scores([item.score for item in semantic])), start=1
    ):
        entry = fused.setdefault(result.document.id, FusedResult(result.document, 0.0))
        entry.semantic_score = normalized
        entry.semantic_rank = rank
        entry.semantic_raw_score = result.score

    for entry in fused.values():
        entry.fused_score = hybrid_score(entry.lexical_score, entry.semantic_score, alpha)

    return _top(fused, limit)


def reciprocal_rank_fusion(
    lexical: Sequence[RankedResult],
    semantic: Sequence[RankedResult],
    *,
    k: int = RECIPROCAL_RANK_FUSION_K,
    limit: int = 5,
) -> List[FusedResult]:
    """Fuse by rank position, scoring only documents both indexes returned.

    Each list records ``1 / (rank + k)`` for its documents, but the fused score
    is ``1 / (lexical_rank + k) + 1 / (semantic_rank + k)`` for documents present
    in both lists and ``0`` for the rest.
    """

    if k < 0:
        raise InvalidArgumentError(f"k must be non-negative, got {k}")

    fused: Dict[int, FusedResult] = {}
    for rank, result in enumerate(lexical, start=1):
        entry = fused.setdefault(result.document.id, FusedResult(result.document, 0.0))
        entry.lexical_rank = rank
        entry.lexical_score = rrf_score(rank, k)
        entry.lexical_raw_score = result.score

    for rank, result in enumerate(semantic, start=1):
        entry = fused.setdefault(result.document.id, FusedResult(result.document, 0.0))
        entry.semantic_rank = rank
        entry.semantic_score = rrf_score(rank, k)
        entry.semantic_raw_score = result.score

    for entry in fused.values():
        if entry.lexical_rank is not None and entry.semantic_rank is not None:
            entry.fused_score = rrf_score(entry.lexical_rank, k) + rrf_score(entry.semantic_rank, k)

    return _top(fused, limit)


def _top(fused: Dict[int, FusedResult], limit: int) -> List[FusedResult]:
    results = sorted(fused.values(), key=lambda item: item.fused_score, reverse=True)
    return results[:limit]


__all__ = [
    "HYBRID_SEARCH_ALPHA",
    "RECIPROCAL_RANK_FUSION_K",
    "hybrid_score",
    "normalize_scores",
    "reciprocal_rank_fusion",
    "rrf_score",
    "weighted_fusion",
]
