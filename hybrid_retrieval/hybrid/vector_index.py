from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from hybrid_retrieval.exceptions import (
    DimensionMismatchError,
    InvalidArgumentError,
    SnapshotConsistencyError,
    SnapshotError,
)
from hybrid_retrieval.storage.snapshot import (
    expect_keyed_by_id,
    expect_type,
    read_artifact,
    write_artifact,
)

from .chunking import ChunkingPolicy
from .embeddings import Embedder, Vector, embed_texts
from .models import ChunkMetadata, Document, RankedResult

logger = logging.getLogger(__name__)

DOC_MAP_ARTIFACT = "doc_map"
EMBEDDINGS_ARTIFACT = "embeddings"
CHUNK_METADATA_ARTIFACT = "chunk_metadata"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    A zero-magnitude operand yields ``nan``; vectors of unequal length raise
    :class:`DimensionMismatchError`.
    """

    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.dot(left, right) / (np.linalg.norm(left) * np.linalg.norm(right)))


class VectorIndex:
    """Brute-force cosine index over document or chunk embeddings.

    With ``chunking=None`` one vector is stored per document, embedding
    ``"{title}: {description}"``. With a :class:`ChunkingPolicy` each description
    is split into chunks, one vector is stored per chunk, and a document scores
    as well as its best-matching chunk.
    """

    def __init__(
        self,
        embedder: Embedder,
        *,
        chunking: Optional[ChunkingPolicy] = None,
        batch_size: Optional[int] = None,
        max_workers: int = 1,
    ) -> None:
        self.embedder = embedder
        self.chunking = chunking
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.doc_map: Dict[int, Document] = {}
        self.embeddings: List[Vector] = []
        self.chunk_metadata: List[ChunkMetadata] = []
        self._owners: List[int] = []
        self._matrix: Optional[np.ndarray] = None

    @property
    def chunked(self) -> bool:
        return self.chunking is not None

    @property
    def dimension(self) -> Optional[int]:
        if self._matrix is None or not len(self._matrix):
            return None
        return int(self._matrix.shape[1])

    def build(self, documents: Iterable[Document]) -> None:
        """Embed the corpus; vectors stay aligned with chunk metadata by position."""

        doc_map: Dict[int, Document] = {}
        texts: List[str] = []
        chunk_metadata: List[ChunkMetadata] = []

        for document in documents:
            if document.id in doc_map:
                raise InvalidArgumentError(f"Document {document.id} appears twice in the corpus")
            doc_map[document.id] = document
            if self.chunking is None:
                texts.append(f"{document.title}: {document.description}")
                continue
            chunks = self.chunking.chunk(document.description)
            texts.extend(chunks)
            chunk_metadata.extend(
                ChunkMetadata(document.id, index, len(chunks)) for index in range(len(chunks))
            )

        embeddings = embed_texts(
            self.embedder, texts, batch_size=self.batch_size, max_workers=self.max_workers
        )

        self.doc_map = doc_map
        self.embeddings = embeddings
        self.chunk_metadata = chunk_metadata
        self._index_vectors()
        logger.info(
            "Built %s vector index: %d documents, %d vectors",
            "chunked" if self.chunked else "document",
            len(doc_map),
            len(embeddings),
        )

    def search(self, query: str, k: int = 5) -> List[RankedResult]:
        """Rank documents by the maximum cosine similarity of their vectors to ``query``."""

        if k <= 0 or self._matrix is None or not len(self._matrix):
            return []

        query_vector = np.asarray(embed_texts(self.embedder, [query])[0], dtype=np.float64)
        dimension = self._matrix.shape[1]
        if query_vector.shape[0] != dimension:
            raise DimensionMismatchError(dimension, query_vector.shape[0])

        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = (self._matrix @ query_vector) / (
                np.linalg.norm(self._matrix, axis=1) * np.linalg.norm(query_vector)
            )

        best: Dict[int, float] = {}
        skipped = 0
        for doc_id, similarity in zip(self._owners, similarities.tolist()):
            if not np.isfinite(similarity):
                skipped += 1
                continue
            current = best.get(doc_id)
            if current is None or similarity > current:
                best[doc_id] = similarity

        if skipped:
            logger.warning("Skipped %d vectors with undefined cosine similarity", skipped)

        ranked = sorted(best.items(), key=lambda item: item[1], reverse=True)[:k]
        return [RankedResult(self.doc_map[doc_id], score) for doc_id, score in ranked]

    def save(self, directory: Path | str) -> None:
        write_artifact(
            directory,
            DOC_MAP_ARTIFACT,
            {str(doc_id): doc.to_dict() for doc_id, doc in self.doc_map.items()},
        )
        write_artifact(directory, EMBEDDINGS_ARTIFACT, self.embeddings)
        if self.chunked:
            write_artifact(
                directory,
                CHUNK_METADATA_ARTIFACT,
                [metadata.to_dict() for metadata in self.chunk_metadata],
            )
        logger.info("Saved vector index (%d vectors) to %s", len(self.embeddings), directory)

    def load(self, directory: Path | str) -> None:
        """Replace this index's state with the snapshot in ``directory``.

        Cardinality mismatches between the document map, the embeddings and the
        chunk metadata are fatal.
        """

        raw_doc_map = expect_type(read_artifact(directory, DOC_MAP_ARTIFACT), dict, DOC_MAP_ARTIFACT)
        raw_embeddings = expect_type(
            read_artifact(directory, EMBEDDINGS_ARTIFACT), list, EMBEDDINGS_ARTIFACT
        )
        raw_metadata: list = []
        if self.chunked:
            raw_metadata = expect_type(
                read_artifact(directory, CHUNK_METADATA_ARTIFACT), list, CHUNK_METADATA_ARTIFACT
            )

        try:
            doc_map = {int(key): Document.from_dict(value) for key, value in raw_doc_map.items()}
            embeddings = [[float(value) for value in vector] for vector in raw_embeddings]
            chunk_metadata = [ChunkMetadata.from_dict(item) for item in raw_metadata]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SnapshotError(f"Vector snapshot in {directory} is corrupt: {exc}") from exc

        expect_keyed_by_id(doc_map, DOC_MAP_ARTIFACT)
        if self.chunked:
            _check_chunk_metadata(doc_map, embeddings, chunk_metadata)
        elif len(embeddings) != len(doc_map):
            raise SnapshotConsistencyError(
                f"{len(embeddings)} embeddings for {len(doc_map)} documents"
            )
        if embeddings and any(len(vector) != len(embeddings[0]) for vector in embeddings):
            raise SnapshotConsistencyError("Stored embeddings do not share one dimension")

        self.doc_map = doc_map
        self.embeddings = embeddings
        self.chunk_metadata = chunk_metadata
        self._index_vectors()
        logger.info("Loaded vector index (%d vectors) from %s", len(embeddings), directory)

    def _index_vectors(self) -> None:
        if self.chunked:
            self._owners = [metadata.document_id for metadata in self.chunk_metadata]
        else:
            self._owners = list(self.doc_map)

        if not self.embeddings:
            self._matrix = None
            return

        dimension = len(self.embeddings[0])
        for vector in self.embeddings:
            if len(vector) != dimension:
                raise DimensionMismatchError(dimension, len(vector))
        self._matrix = np.asarray(self.embeddings, dtype=np.float64)


def _check_chunk_metadata(
    doc_map: Dict[int, Document],
    embeddings: List[Vector],
    chunk_metadata: List[ChunkMetadata],
) -> None:
    if len(chunk_metadata) != len(embeddings):
        raise SnapshotConsistencyError(
            f"{len(embeddings)} embeddings for {len(chunk_metadata)} chunk metadata entries"
        )

    counts: Dict[int, int] = {}
    totals: Dict[int, int] = {}
    for metadata in chunk_metadata:
        if metadata.document_id not in doc_map:
            raise SnapshotConsistencyError(
                f"Chunk metadata references unknown document {metadata.document_id}"
            )
        counts[metadata.document_id] = counts.get(metadata.document_id, 0) + 1
        if totals.setdefault(metadata.document_id, metadata.total_chunks) != metadata.total_chunks:
            raise SnapshotConsistencyError(
                f"Document {metadata.document_id} reports inconsistent total_chunks"
            )

    for doc_id, count in counts.items():
        if count != totals[doc_id]:
            raise SnapshotConsistencyError(
                f"Document {doc_id} has {count} chunks, metadata reports {totals[doc_id]}"
            )


__all__ = ["VectorIndex", "cosine_similarity"]
