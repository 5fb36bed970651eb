"""Split document descriptions into word- or sentence-bounded chunks before embedding.

Three strategies share one ``chunk_size`` / ``overlap`` parameterization:

* ``FIXED``: consecutive groups of ``chunk_size`` words.
* ``OVERLAPPING``: a word window sliding by ``chunk_size - overlap``; a trailing
  window no longer than ``overlap`` only repeats the previous one and is dropped.
* ``SEMANTIC``: the same sliding window over sentences. The first window is kept
  even when short; later short windows are dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from hybrid_retrieval.exceptions import InvalidArgumentError

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class ChunkingStrategy(str, Enum):
    FIXED = "fixed"
    OVERLAPPING = "overlapping"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class ChunkingPolicy:
    strategy: ChunkingStrategy = ChunkingStrategy.SEMANTIC
    chunk_size: int = 4
    overlap: int = 1

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise InvalidArgumentError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.overlap < self.chunk_size:
            raise InvalidArgumentError(
                f"overlap must be in [0, chunk_size), got {self.overlap} for chunk_size {self.chunk_size}"
            )
        try:
            strategy = ChunkingStrategy(self.strategy)
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown chunking strategy {self.strategy!r}") from exc
        object.__setattr__(self, "strategy", strategy)

    def chunk(self, text: str) -> List[str]:
        if self.strategy is ChunkingStrategy.FIXED:
            return fixed_size_chunks(text, self.chunk_size)
        if self.strategy is ChunkingStrategy.OVERLAPPING:
            return overlapping_chunks(text, self.chunk_size, self.overlap)
        return semantic_chunks(text, self.chunk_size, self.overlap)


def fixed_size_chunks(text: str, chunk_size: int) -> List[str]:
    if not text.strip():
        return []

    words = text.split(" ")
    return [" ".join(words[i : i + chunk_size]) for i in range(0, len(words), chunk_size)]


def overlapping_chunks(text: str, chunk_size: int, overlap: int) -> List[str]:
    if not text.strip():
        return []

    words = text.split(" ")
    chunks: List[str] = []
    for start in range(0, len(words), chunk_size - overlap):
        window = words[start : start + chunk_size]
        if len(window) <= overlap:
            continue
        chunks.append(" ".join(window))
    return chunks


def split_sentences(text: str) -> List[str]:
    sentences = (sentence.strip() for sentence in _SENTENCE_BOUNDARY.split(text))
    return [sentence for sentence in sentences if sentence]


def semantic_chunks(text: str, chunk_size: int, overlap: int) -> List[str]:
    if not text.strip():
        return []

    sentences = split_sentences(text)
    chunks: List[str] = []
    for start in range(0, len(sentences), chunk_size - overlap):
        window = sentences[start : start + chunk_size]
        if chunks and len(window) <= overlap:
            continue
        chunks.append(" ".join(window))
    return chunks


__all__ = [
    "ChunkingPolicy",
    "ChunkingStrategy",
    "fixed_size_chunks",
    "overlapping_chunks",
    "semantic_chunks",
    "split_sentences",
]
