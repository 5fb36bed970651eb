from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from hybrid_retrieval.exceptions import InvalidArgumentError

from .fusion import (
    HYBRID_SEARCH_ALPHA,
    RECIPROCAL_RANK_FUSION_K,
    reciprocal_rank_fusion,
    weighted_fusion,
)
from .models import FusedResult, RankedResult

logger = logging.getLogger(__name__)


class SearchIndex(Protocol):
    def search(self, query: str, k: int = 5) -> List[RankedResult]:
        """Return up to ``k`` documents ranked by descending score."""


class Reranker(Protocol):
    """Reorders fused results, e.g. with a cross-encoder or an LLM judge."""

    def rerank(self, results: Sequence[FusedResult], query: str) -> Sequence[FusedResult]:
        """Return ``results`` in the preferred order."""


class FusionMethod(str, Enum):
    WEIGHTED = "weighted"
    RRF = "rrf"


@dataclass
class HybridRetrievalConfig:
    alpha: float = HYBRID_SEARCH_ALPHA
    rrf_k: int = RECIPROCAL_RANK_FUSION_K
    limit: int = 5
    overfetch_multiplier: int = 500
    rerank_multiplier: int = 5


class HybridRetriever:
    """Combine lexical BM25 search with cosine vector search."""

    def __init__(
        self,
        bm25_index: SearchIndex,
        vector_index: SearchIndex,
        *,
        config: Optional[HybridRetrievalConfig] = None,
        reranker: Optional[Reranker] = None,
    ) -> None:
        self.bm25 = bm25_index
        self.vector = vector_index
        self.config = config or HybridRetrievalConfig()
        self.reranker = reranker

    def search(
        self,
        query: str,
        *,
        method: FusionMethod | str = FusionMethod.RRF,
        limit: Optional[int] = None,
        alpha: Optional[float] = None,
        k: Optional[int] = None,
    ) -> List[FusedResult]:
        try:
            method = FusionMethod(method)
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown fusion method {method!r}") from exc
        if method is FusionMethod.WEIGHTED:
            return self.weighted_search(query, alpha=alpha, limit=limit)
        return self.rrf_search(query, k=k, limit=limit)

    def weighted_search(
        self,
        query: str,
        *,
        alpha: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[FusedResult]:
        limit = self._limit(limit)
        alpha = self.config.alpha if alpha is None else alpha
        lexical, semantic = self._candidates(query, limit)
        return weighted_fusion(lexical, semantic, alpha=alpha, limit=limit)

    def rrf_search(
        self,
        query: str,
        *,
        k: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[FusedResult]:
        """Fuse by reciprocal rank; with a reranker, rerank a wider pool then truncate."""

        limit = self._limit(limit)
        k = self.config.rrf_k if k is None else k
        pool = limit * self.config.rerank_multiplier if self.reranker else limit

        lexical, semantic = self._candidates(query, pool)
        results = reciprocal_rank_fusion(lexical, semantic, k=k, limit=pool)
        if self.reranker is None:
            return results

        reranked = list(self.reranker.rerank(results, query))
        return reranked[:limit]

    def _candidates(self, query: str, limit: int) -> tuple[List[RankedResult], List[RankedResult]]:
        fetch = limit * self.config.overfetch_multiplier
        lexical = self.bm25.search(query, fetch)
        semantic = self.vector.search(query, fetch)
        logger.debug(
            "Fetched %d lexical and %d semantic candidates (requested %d)",
            len(lexical),
            len(semantic),
            fetch,
        )
        return lexical, semantic

    def _limit(self, limit: Optional[int]) -> int:
        limit = self.config.limit if limit is None else limit
        if limit < 1:
            raise InvalidArgumentError(f"limit must be at least 1, got {limit}")
        return limit


__all__ = [
    "FusionMethod",
    "HybridRetrievalConfig",
    "HybridRetriever",
    "Reranker",
    "SearchIndex",
]
