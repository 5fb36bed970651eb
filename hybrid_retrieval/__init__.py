"""Hybrid lexical and semantic document retrieval.

Indexes are explicit, caller-owned objects: build or load a
:class:`~hybrid_retrieval.api.HybridSearchEngine` (or the individual indexes
from :mod:`hybrid_retrieval.hybrid`) and pass it wherever searches happen.
"""

from .api import HybridSearchEngine
from .config import RetrievalConfig, load_config
from .corpus import load_documents
from .exceptions import (
    ConfigError,
    CorpusError,
    DimensionMismatchError,
    EmbeddingError,
    InvalidArgumentError,
    RetrievalError,
    SnapshotConsistencyError,
    SnapshotError,
)
from .hybrid import (
    BM25Index,
    ChunkingPolicy,
    ChunkingStrategy,
    Document,
    FusedResult,
    FusionMethod,
    HybridRetriever,
    RankedResult,
    VectorIndex,
)

__all__ = [
    "BM25Index",
    "ChunkingPolicy",
    "ChunkingStrategy",
    "ConfigError",
    "CorpusError",
    "DimensionMismatchError",
    "Document",
    "EmbeddingError",
    "FusedResult",
    "FusionMethod",
    "HybridRetriever",
    "HybridSearchEngine",
    "InvalidArgumentError",
    "RankedResult",
    "RetrievalConfig",
    "RetrievalError",
    "SnapshotConsistencyError",
    "SnapshotError",
    "VectorIndex",
    "load_config",
    "load_documents",
]
