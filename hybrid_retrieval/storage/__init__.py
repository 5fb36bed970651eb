"""Persistence helpers for index snapshots."""

from .snapshot import (
    BASIC_VECTOR_DIR,
    CHUNKED_VECTOR_DIR,
    KEYWORD_DIR,
    expect_keyed_by_id,
    expect_type,
    read_artifact,
    write_artifact,
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
