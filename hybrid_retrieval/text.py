"""Text normalization and tokenization shared by the lexical index and queries."""

from __future__ import annotations

import re
from typing import Iterable, List

from nltk.stem.porter import PorterStemmer

_NON_ALPHANUMERIC = re.compile(r"[^\w\s]|_")

_stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)

STOP_WORDS = frozenset(
    """
    a about above after again against all am an and any are as at be because been
    before being below between both but by can did do does doing down during each
    few for from further had has have having he her here hers herself him himself
    his how i if in into is it its itself just me more most my myself no nor not
    now of off on once only or other our ours ourselves out over own same she
    should so some such than that the their theirs them themselves then there
    these they this those through to too under until up very was we were what
    when where which while who whom why will with you your yours yourself
    yourselves
    """.split()
)


def normalize(text: str) -> str:
    """Lowercase ``text`` and drop everything but letters, digits and whitespace."""

    return _NON_ALPHANUMERIC.sub("", text.lower().strip())


def tokenize(text: str, *, stop_words: Iterable[str] = STOP_WORDS) -> List[str]:
    """Split normalized text into stemmed tokens, skipping stop words."""

    stop_words = stop_words if isinstance(stop_words, (set, frozenset)) else set(stop_words)
    tokens = [_stemmer.stem(token) for token in text.split() if token not in stop_words]
    return [token for token in tokens if token]


def analyze(text: str) -> List[str]:
    """Normalize then tokenize raw text; the default analyzer for indexing and queries."""

    return tokenize(normalize(text))


__all__ = ["STOP_WORDS", "analyze", "normalize", "tokenize"]
