"""Hybrid lexical + vector retrieval components."""

from .bm25_index import BM25Index
from .chunking import ChunkingPolicy, ChunkingStrategy
from .embeddings import Embedder, embed_texts
from .fusion import normalize_scores, reciprocal_rank_fusion, weighted_fusion
from .hybrid_index import FusionMethod, HybridRetrievalConfig, HybridRetriever, Reranker
from .models import ChunkMetadata, Document, FusedResult, RankedResult
from .vector_index import VectorIndex, cosine_similarity

__all__ = [
    "BM25Index",
    "ChunkMetadata",
    "ChunkingPolicy",
    "ChunkingStrategy",
    "Document",
    "Embedder",
    "FusedResult",
    "FusionMethod",
    "HybridRetrievalConfig",
    "HybridRetriever",
    "RankedResult",
    "Reranker",
    "VectorIndex",
    "cosine_similarity",
    "embed_texts",
    "normalize_scores",
    "reciprocal_rank_fusion",
    "weighted_fusion",
]
