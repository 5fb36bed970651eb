"""Load a document corpus from JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from .exceptions import CorpusError
from .hybrid.models import Document

logger = logging.getLogger(__name__)

CORPUS_KEYS = ("documents", "movies")


def parse_documents(payload: Any) -> List[Document]:
    """Turn decoded JSON into documents, keeping corpus order.

    ``payload`` is either a list of ``{"id", "title", "description"}`` objects or
    an object holding that list under ``documents`` or ``movies``.
    """

    if isinstance(payload, dict):
        for key in CORPUS_KEYS:
            if key in payload:
                payload = payload[key]
                break
        else:
            raise CorpusError(f"Corpus object has none of the keys {', '.join(CORPUS_KEYS)}")

    if not isinstance(payload, list):
        raise CorpusError("Corpus must be a list of documents")

    documents: List[Document] = []
    seen: set[int] = set()
    for position, item in enumerate(payload):
        try:
            document = Document.from_dict(item)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorpusError(f"Invalid document at position {position}: {exc}") from exc
        if document.id in seen:
            raise CorpusError(f"Duplicate document id {document.id}")
        seen.add(document.id)
        documents.append(document)
    return documents


def load_documents(path: Path | str) -> List[Document]:
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CorpusError(f"Cannot read corpus {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CorpusError(f"Corpus {path} is not valid JSON: {exc}") from exc

    documents = parse_documents(payload)
    logger.info("Loaded %d documents from %s", len(documents), path)
    return documents


__all__ = ["load_documents", "parse_documents"]
