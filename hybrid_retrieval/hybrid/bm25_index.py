from __future__ import annotations

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from hybrid_retrieval.exceptions import InvalidArgumentError, SnapshotConsistencyError, SnapshotError
from hybrid_retrieval.storage.snapshot import (
    expect_keyed_by_id,
    expect_type,
    read_artifact,
    write_artifact,
)
from hybrid_retrieval.text import analyze

from .models import Document, RankedResult

logger = logging.getLogger(__name__)

TokenizeFn = Callable[[str], List[str]]

BM25_K1 = 1.5
BM25_B = 0.75

DOC_MAP_ARTIFACT = "doc_map"
INDEX_ARTIFACT = "index"
TERM_FREQUENCY_ARTIFACT = "term_frequency"
DOCUMENT_LENGTH_ARTIFACT = "document_length"


class BM25Index:
    """Inverted index over document titles and descriptions with BM25/TF-IDF scoring."""

    def __init__(
        self,
        *,
        tokenizer: TokenizeFn | None = None,
        k1: float = BM25_K1,
        b: float = BM25_B,
    ) -> None:
        self.tokenizer: TokenizeFn = tokenizer or analyze
        self.k1 = k1
        self.b = b
        self.doc_map: Dict[int, Document] = {}
        self.index: Dict[str, List[int]] = {}
        self.term_frequency: Dict[int, Counter[str]] = {}
        self.document_length: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self.doc_map)

    def add(self, document: Document) -> None:
        if document.id in self.doc_map:
            raise InvalidArgumentError(f"Document {document.id} is already indexed")

        tokens = self.tokenizer(document.text)
        for token in dict.fromkeys(tokens):
            self.index.setdefault(token, []).append(document.id)

        self.term_frequency[document.id] = Counter(tokens)
        self.document_length[document.id] = len(tokens)
        self.doc_map[document.id] = document

    def build(self, documents: Iterable[Document]) -> None:
        """Index the full corpus in one pass."""

        for document in documents:
            self.add(document)
        logger.info(
            "Built keyword index: %d documents, %d terms", len(self.doc_map), len(self.index)
        )

    def get_documents(self, token: str) -> List[int]:
        """Return the ids whose text contains ``token``, ascending."""

        return sorted(self.index.get(token, ()))

    # ------------------------------------------------------------------
    # Single-term accessors
    # ------------------------------------------------------------------

    def get_tf(self, doc_id: int, term: str) -> int:
        return self._tf(doc_id, self._single_token(term))

    def get_idf(self, term: str) -> float:
        return self._idf(self._single_token(term))

    def get_tf_idf(self, doc_id: int, term: str) -> float:
        token = self._single_token(term)
        return self._tf(doc_id, token) * self._idf(token)

    def get_bm25_idf(self, term: str) -> float:
        return self._bm25_idf(self._single_token(term))

    def get_bm25_tf(
        self,
        doc_id: int,
        term: str,
        k1: Optional[float] = None,
        b: Optional[float] = None,
    ) -> float:
        return self._bm25_tf(doc_id, self._single_token(term), k1, b)

    def get_bm25_tf_idf(
        self,
        doc_id: int,
        term: str,
        k1: Optional[float] = None,
        b: Optional[float] = None,
    ) -> float:
        return self._bm25_score(doc_id, self._single_token(term), k1, b)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        k: int = 5,
        *,
        k1: Optional[float] = None,
        b: Optional[float] = None,
    ) -> List[RankedResult]:
        """Rank documents sharing at least one token with ``query`` by BM25."""

        query_tokens = self.tokenizer(query)
        return self._rank(
            query_tokens,
            lambda doc_id, token: self._bm25_score(doc_id, token, k1, b),
            k,
        )

    def tfidf_search(self, query: str, k: int = 5) -> List[RankedResult]:
        """Rank candidate documents by the plain TF-IDF sum over query tokens."""

        query_tokens = self.tokenizer(query)
        return self._rank(
            query_tokens, lambda doc_id, token: self._tf(doc_id, token) * self._idf(token), k
        )

    def basic_search(self, query: str, k: int = 5) -> List[Document]:
        """Return the first ``k`` documents found walking the query tokens' postings."""

        results: List[Document] = []
        seen: set[int] = set()
        for doc_id in self._candidates(self.tokenizer(query)):
            if doc_id in seen:
                continue
            seen.add(doc_id)
            results.append(self.doc_map[doc_id])
            if len(results) >= k:
                break
        return results

    def _rank(
        self,
        query_tokens: List[str],
        score_token: Callable[[int, str], float],
        k: int,
    ) -> List[RankedResult]:
        if k <= 0 or not query_tokens:
            return []

        scores: Dict[int, float] = {}
        for doc_id in self._candidates(query_tokens):
            if doc_id in scores:
                continue
            scores[doc_id] = sum(score_token(doc_id, token) for token in query_tokens)

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:k]
        logger.debug(
            "Scored %d candidates for %d query tokens", len(scores), len(query_tokens)
        )
        return [RankedResult(self.doc_map[doc_id], score) for doc_id, score in ranked]

    def _candidates(self, query_tokens: List[str]) -> Iterable[int]:
        for token in query_tokens:
            yield from self.get_documents(token)

    # ------------------------------------------------------------------
    # Scoring primitives
    # ------------------------------------------------------------------

    def _single_token(self, term: str) -> str:
        tokens = self.tokenizer(term)
        if len(tokens) != 1:
            raise InvalidArgumentError(
                f"Expected exactly one token in {term!r}, got {len(tokens)}"
            )
        return tokens[0]

    def _tf(self, doc_id: int, token: str) -> int:
        counts = self.term_frequency.get(doc_id)
        return counts.get(token, 0) if counts is not None else 0

    def _df(self, token: str) -> int:
        return len(self.index.get(token, ()))

    def _idf(self, token: str) -> float:
        return math.log((len(self.doc_map) + 1) / (self._df(token) + 1))

    def _bm25_idf(self, token: str) -> float:
        total = len(self.doc_map)
        df = self._df(token)
        return math.log((total - df + 0.5) / (df + 0.5) + 1)

    def _avg_doc_len(self) -> float:
        if not self.document_length:
            return 0.0
        return sum(self.document_length.values()) / len(self.document_length)

    def _bm25_tf(
        self,
        doc_id: int,
        token: str,
        k1: Optional[float] = None,
        b: Optional[float] = None,
    ) -> float:
        k1 = self.k1 if k1 is None else k1
        b = self.b if b is None else b
        tf = self._tf(doc_id, token)
        avg_doc_len = self._avg_doc_len()
        if avg_doc_len > 0:
            length_norm = 1 - b + b * (self.document_length.get(doc_id, 0) / avg_doc_len)
        else:
            length_norm = 1.0
        denom = tf + k1 * length_norm
        if denom == 0:
            return 0.0
        return tf * (k1 + 1) / denom

    def _bm25_score(
        self,
        doc_id: int,
        token: str,
        k1: Optional[float] = None,
        b: Optional[float] = None,
    ) -> float:
        return self._bm25_tf(doc_id, token, k1, b) * self._bm25_idf(token)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, directory: Path | str) -> None:
        write_artifact(
            directory,
            DOC_MAP_ARTIFACT,
            {str(doc_id): doc.to_dict() for doc_id, doc in self.doc_map.items()},
        )
        write_artifact(directory, INDEX_ARTIFACT, self.index)
        write_artifact(
            directory,
            TERM_FREQUENCY_ARTIFACT,
            {str(doc_id): dict(counts) for doc_id, counts in self.term_frequency.items()},
        )
        write_artifact(
            directory,
            DOCUMENT_LENGTH_ARTIFACT,
            {str(doc_id): length for doc_id, length in self.document_length.items()},
        )
        logger.info("Saved keyword index (%d documents) to %s", len(self.doc_map), directory)

    def load(self, directory: Path | str) -> None:
        """Replace this index's state with the snapshot stored in ``directory``."""

        raw_doc_map = expect_type(read_artifact(directory, DOC_MAP_ARTIFACT), dict, DOC_MAP_ARTIFACT)
        raw_index = expect_type(read_artifact(directory, INDEX_ARTIFACT), dict, INDEX_ARTIFACT)
        raw_tf = expect_type(
            read_artifact(directory, TERM_FREQUENCY_ARTIFACT), dict, TERM_FREQUENCY_ARTIFACT
        )
        raw_lengths = expect_type(
            read_artifact(directory, DOCUMENT_LENGTH_ARTIFACT), dict, DOCUMENT_LENGTH_ARTIFACT
        )

        try:
            doc_map = {int(key): Document.from_dict(value) for key, value in raw_doc_map.items()}
            index = {str(token): [int(doc_id) for doc_id in ids] for token, ids in raw_index.items()}
            term_frequency = {
                int(key): Counter({str(token): _count(count) for token, count in counts.items()})
                for key, counts in raw_tf.items()
            }
            document_length = {int(key): _count(value) for key, value in raw_lengths.items()}
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SnapshotError(f"Keyword snapshot in {directory} is corrupt: {exc}") from exc

        expect_keyed_by_id(doc_map, DOC_MAP_ARTIFACT)
        for token, ids in index.items():
            unknown = [doc_id for doc_id in ids if doc_id not in doc_map]
            if unknown:
                raise SnapshotConsistencyError(
                    f"Posting for {token!r} references unknown documents {unknown[:5]}"
                )
            if len(set(ids)) != len(ids):
                raise SnapshotConsistencyError(f"Posting for {token!r} contains duplicate ids")
        for table_name, table in (
            (TERM_FREQUENCY_ARTIFACT, term_frequency),
            (DOCUMENT_LENGTH_ARTIFACT, document_length),
        ):
            if set(table) != set(doc_map):
                raise SnapshotConsistencyError(
                    f"{table_name} covers {len(table)} documents, doc_map has {len(doc_map)}"
                )

        self.doc_map = doc_map
        self.index = index
        self.term_frequency = term_frequency
        self.document_length = document_length
        logger.info("Loaded keyword index (%d documents) from %s", len(doc_map), directory)


def _count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"expected a non-negative integer count, got {value!r}")
    return value


__all__ = ["BM25Index", "BM25_B", "BM25_K1"]
