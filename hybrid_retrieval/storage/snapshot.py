"""Flat JSON snapshots for index state.

Each index flavor owns one directory holding a handful of JSON artifacts. Writes
go through a temporary file and :func:`os.replace` so a crash never leaves a
half-written artifact behind; a snapshot is always overwritten wholesale.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from hybrid_retrieval.exceptions import SnapshotConsistencyError, SnapshotError

logger = logging.getLogger(__name__)

KEYWORD_DIR = "keyword"
BASIC_VECTOR_DIR = Path("vector") / "basic"
CHUNKED_VECTOR_DIR = Path("vector") / "chunked"


def _atomic_write_text(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8") as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    try:
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def write_artifact(directory: Path | str, name: str, payload: Any) -> Path:
    """Serialize ``payload`` to ``<directory>/<name>.json``."""

    path = Path(directory) / f"{name}.json"
    _atomic_write_text(path, json.dumps(payload, indent=2))
    logger.debug("Wrote snapshot artifact %s", path)
    return path


def read_artifact(directory: Path | str, name: str) -> Any:
    """Load ``<directory>/<name>.json``; missing or unparsable files are fatal."""

    path = Path(directory) / f"{name}.json"
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot artifact not found: {path}") from exc
    except OSError as exc:
        raise SnapshotError(f"Snapshot artifact unreadable: {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot artifact corrupt: {path}: {exc}") from exc


def expect_type(payload: Any, expected: type, name: str) -> Any:
    if not isinstance(payload, expected):
        raise SnapshotError(
            f"Snapshot artifact {name!r} must be a JSON {expected.__name__}, "
            f"got {type(payload).__name__}"
        )
    return payload


def expect_keyed_by_id(doc_map: Dict[int, Any], name: str) -> None:
    """Each entry of a loaded document map must sit under its own ``id``."""

    for key, document in doc_map.items():
        if document.id != key:
            raise SnapshotConsistencyError(
                f"Snapshot artifact {name!r} stores document {document.id} under key {key}"
            )


__all__ = [
    "BASIC_VECTOR_DIR",
    "CHUNKED_VECTOR_DIR",
    "KEYWORD_DIR",
    "expect_keyed_by_id",
    "expect_type",
    "read_artifact",
    "write_artifact",
]
