from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Document:
    """A retrievable corpus entry; immutable once ingested."""

    id: int
    title: str
    description: str

    @property
    def text(self) -> str:
        """Text fed to the lexical index."""

        return f"{self.title} {self.description}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            description=str(data["description"]),
        )


@dataclass(frozen=True)
class ChunkMetadata:
    """Position of one embedded chunk within its source document."""

    document_id: int
    chunk_index: int
    total_chunks: int

    def __post_init__(self) -> None:
        if not 0 <= self.chunk_index < self.total_chunks:
            raise ValueError(
                f"chunk_index {self.chunk_index} outside [0, {self.total_chunks}) "
                f"for document {self.document_id}"
            )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkMetadata":
        return cls(
            document_id=int(data["document_id"]),
            chunk_index=int(data["chunk_index"]),
            total_chunks=int(data["total_chunks"]),
        )


@dataclass
class RankedResult:
    """A document scored by a single index.

    Lexical scores are unbounded non-negative BM25/TF-IDF sums; semantic scores
    are cosine similarities in ``[-1, 1]``.
    """

    document: Document
    score: float


@dataclass
class FusedResult:
    """Fusion output carrying per-source scores and ranks for downstream consumers.

    ``lexical_score`` and ``semantic_score`` hold min-max normalized scores under
    weighted fusion and per-list ``1 / (rank + k)`` contributions under
    reciprocal rank fusion. Ranks are 1-based and ``None`` when the document was
    not returned by that index.
    """

    document: Document
    fused_score: float
    lexical_score: float = 0.0
    semantic_score: float = 0.0
    lexical_rank: Optional[int] = None
    semantic_rank: Optional[int] = None
    lexical_raw_score: Optional[float] = None
    semantic_raw_score: Optional[float] = None


__all__ = ["ChunkMetadata", "Document", "FusedResult", "RankedResult"]
