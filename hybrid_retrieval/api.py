"""Engine facade tying the keyword index, vector indexes and fusion together.

Example: build once, then search
--------------------------------
```python
from hybrid_retrieval.api import HybridSearchEngine
from hybrid_retrieval.corpus import load_documents

engine = HybridSearchEngine()
documents = load_documents("dataset/movies.json")
engine.build_keyword_index(documents)
engine.build_vector_index(documents, chunked=True)

for result in engine.hybrid_search("space opera", limit=5):
    print(result.document.title, result.fused_score, result.lexical_rank, result.semantic_rank)
```
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from .clients.ollama import OllamaEmbeddingClient
from .config import RetrievalConfig
from .exceptions import InvalidArgumentError
from .hybrid.bm25_index import BM25Index
from .hybrid.embeddings import Embedder
from .hybrid.hybrid_index import FusionMethod, HybridRetriever, Reranker
from .hybrid.models import Document, FusedResult, RankedResult
from .hybrid.vector_index import VectorIndex

logger = logging.getLogger(__name__)

KEYWORD_SEARCH_METHODS = ("basic", "tf-idf", "bm25")


class HybridSearchEngine:
    """Caller-owned set of indexes built from, or loaded for, one corpus.

    The engine holds a keyword index, a document-level vector index and a chunked
    vector index. Hybrid search fuses the keyword index with the chunked vector
    index. Indexes are read-only after :meth:`load` or a build, so one engine can
    serve concurrent searches.
    """

    def __init__(
        self,
        config: Optional[RetrievalConfig] = None,
        *,
        embedder: Optional[Embedder] = None,
        reranker: Optional[Reranker] = None,
    ) -> None:
        self.config = config or RetrievalConfig()
        self.embedder = embedder or OllamaEmbeddingClient(
            model=self.config.embedding_model,
            keep_alive=self.config.embedding_keep_alive,
            base_url=str(self.config.embedding_url),
            timeout=self.config.request_timeout_s,
        )
        self.keyword_index = BM25Index(k1=self.config.bm25_k1, b=self.config.bm25_b)
        self.vector_index = VectorIndex(
            self.embedder,
            batch_size=self.config.embed_batch_size,
            max_workers=self.config.embed_max_workers,
        )
        self.chunked_vector_index = VectorIndex(
            self.embedder,
            chunking=self.config.chunking_policy(),
            batch_size=self.config.embed_batch_size,
            max_workers=self.config.embed_max_workers,
        )
        self.retriever = HybridRetriever(
            self.keyword_index,
            self.chunked_vector_index,
            config=self.config.hybrid_config(),
            reranker=reranker,
        )

    def build_keyword_index(self, documents: Sequence[Document], *, save: bool = True) -> None:
        self.keyword_index.build(documents)
        if save:
            self.keyword_index.save(self.config.keyword_dir)

    def build_vector_index(
        self, documents: Sequence[Document], *, chunked: bool = False, save: bool = True
    ) -> None:
        index = self.chunked_vector_index if chunked else self.vector_index
        directory = self.config.chunked_vector_dir if chunked else self.config.basic_vector_dir
        index.build(documents)
        if save:
            index.save(directory)

    def load(self, *, keyword: bool = True, vector: bool = True, chunked: bool = True) -> None:
        """Load the requested snapshots; any missing or inconsistent artifact is fatal."""

        if keyword:
            self.keyword_index.load(self.config.keyword_dir)
        if vector:
            self.vector_index.load(self.config.basic_vector_dir)
        if chunked:
            self.chunked_vector_index.load(self.config.chunked_vector_dir)

    def keyword_search(
        self, query: str, *, limit: int = 5, method: str = "bm25"
    ) -> Union[List[RankedResult], List[Document]]:
        if method == "bm25":
            return self.keyword_index.search(query, limit)
        if method == "tf-idf":
            return self.keyword_index.tfidf_search(query, limit)
        if method == "basic":
            return self.keyword_index.basic_search(query, limit)
        raise InvalidArgumentError(
            f"Unknown keyword search method {method!r}; expected one of {', '.join(KEYWORD_SEARCH_METHODS)}"
        )

    def semantic_search(self, query: str, *, limit: int = 5, chunked: bool = False) -> List[RankedResult]:
        index = self.chunked_vector_index if chunked else self.vector_index
        return index.search(query, limit)

    def hybrid_search(
        self,
        query: str,
        *,
        limit: int = 5,
        method: Union[FusionMethod, str] = FusionMethod.RRF,
        alpha: Optional[float] = None,
        k: Optional[int] = None,
    ) -> List[FusedResult]:
        return self.retriever.search(query, method=method, limit=limit, alpha=alpha, k=k)


__all__ = ["HybridSearchEngine", "KEYWORD_SEARCH_METHODS"]
