from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, Sequence

from hybrid_retrieval.exceptions import DimensionMismatchError, EmbeddingError, InvalidArgumentError

logger = logging.getLogger(__name__)

Vector = List[float]


class Embedder(Protocol):
    """Simple embedding interface for pluggable models."""

    def embed(self, texts: Sequence[str]) -> Sequence[Sequence[float]]:
        """Return vector representations for the provided texts, in order."""


def embed_texts(
    embedder: Embedder,
    texts: Sequence[str],
    *,
    batch_size: Optional[int] = None,
    max_workers: int = 1,
) -> List[Vector]:
    """Embed ``texts`` and return vectors positionally aligned with them.

    Without ``batch_size`` every text goes to the provider in a single call.
    Otherwise the texts are split into batches, optionally issued from
    ``max_workers`` threads; results are reassembled in submission order.
    """

    texts = list(texts)
    if not texts:
        return []

    if batch_size is None or batch_size >= len(texts):
        batches = [texts]
    else:
        if batch_size < 1:
            raise InvalidArgumentError(f"batch_size must be positive, got {batch_size}")
        batches = [texts[i : i + batch_size] for i in range(0, len(texts), batch_size)]

    def run(batch: List[str]) -> List[Vector]:
        vectors = embedder.embed(batch)
        if len(vectors) != len(batch):
            raise EmbeddingError(
                f"Embedder returned {len(vectors)} vectors for {len(batch)} texts"
            )
        return [[float(value) for value in vector] for vector in vectors]

    if max_workers > 1 and len(batches) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(run, batches))
    else:
        results = [run(batch) for batch in batches]

    vectors = [vector for batch_vectors in results for vector in batch_vectors]
    dimension = len(vectors[0])
    for vector in vectors:
        if len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))

    logger.debug("Embedded %d texts in %d batches (dim=%d)", len(texts), len(batches), dimension)
    return vectors


__all__ = ["Embedder", "Vector", "embed_texts"]
