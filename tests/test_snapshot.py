from __future__ import annotations

import json
import os
from typing import Sequence

import pytest

from hybrid_retrieval.exceptions import SnapshotConsistencyError, SnapshotError
from hybrid_retrieval.hybrid import ChunkingPolicy, Document, VectorIndex
from hybrid_retrieval.storage.snapshot import expect_type, read_artifact, write_artifact


class HashEmbedder:
    """Deterministic three-dimensional vectors derived from character codes."""

    def embed(self, texts: Sequence[str]) -> Sequence[Sequence[float]]:
        vectors = []
        for text in texts:
            codes = [ord(char) for char in text] or [0]
            vectors.append([sum(codes[0::3]) + 1.0, sum(codes[1::3]) + 0.5, len(text) / 7])
        return vectors


DOCUMENTS = [
    Document(1, "Blade Runner", "A detective hunts replicants. Rain falls. Memories fade."),
    Document(2, "Up", "An old man ties balloons to his house."),
    Document(3, "Empty", ""),
]


def build(chunked: bool) -> VectorIndex:
    chunking = ChunkingPolicy(chunk_size=2, overlap=1) if chunked else None
    index = VectorIndex(HashEmbedder(), chunking=chunking)
    index.build(DOCUMENTS)
    return index


def test_write_artifact_replaces_atomically(tmp_path):
    path = write_artifact(tmp_path / "nested", "payload", {"a": 1})
    write_artifact(tmp_path / "nested", "payload", {"a": 2})

    assert path == tmp_path / "nested" / "payload.json"
    assert json.loads(path.read_text()) == {"a": 2}
    assert os.listdir(tmp_path / "nested") == ["payload.json"]


def test_read_artifact_reports_missing_and_corrupt_files(tmp_path):
    with pytest.raises(SnapshotError, match="not found"):
        read_artifact(tmp_path, "missing")

    (tmp_path / "broken.json").write_text("{not json")
    with pytest.raises(SnapshotError, match="corrupt"):
        read_artifact(tmp_path, "broken")


def test_expect_type_rejects_wrong_json_shape():
    assert expect_type({"a": 1}, dict, "doc_map") == {"a": 1}
    with pytest.raises(SnapshotError, match="doc_map"):
        expect_type([1, 2], dict, "doc_map")


@pytest.mark.parametrize("chunked", [False, True])
def test_vector_round_trip_reproduces_search(tmp_path, chunked):
    index = build(chunked)
    index.save(tmp_path)

    restored = VectorIndex(HashEmbedder(), chunking=index.chunking)
    restored.load(tmp_path)

    assert restored.doc_map == index.doc_map
    assert restored.embeddings == index.embeddings
    assert restored.chunk_metadata == index.chunk_metadata
    assert restored.search("replicants in the rain", k=3) == index.search("replicants in the rain", k=3)


def test_document_mode_snapshot_has_no_chunk_metadata(tmp_path):
    build(chunked=False).save(tmp_path)

    assert sorted(path.name for path in tmp_path.iterdir()) == ["doc_map.json", "embeddings.json"]


def test_chunked_snapshot_layout(tmp_path):
    index = build(chunked=True)
    index.save(tmp_path)

    metadata = json.loads((tmp_path / "chunk_metadata.json").read_text())

    assert metadata[0] == {"document_id": 1, "chunk_index": 0, "total_chunks": 2}
    assert len(metadata) == len(json.loads((tmp_path / "embeddings.json").read_text()))
    assert 3 not in {item["document_id"] for item in metadata}


def test_chunked_load_requires_chunk_metadata(tmp_path):
    build(chunked=True).save(tmp_path)
    (tmp_path / "chunk_metadata.json").unlink()

    with pytest.raises(SnapshotError):
        VectorIndex(HashEmbedder(), chunking=ChunkingPolicy()).load(tmp_path)


def test_document_mode_detects_embedding_count_mismatch(tmp_path):
    build(chunked=False).save(tmp_path)
    embeddings = json.loads((tmp_path / "embeddings.json").read_text())
    (tmp_path / "embeddings.json").write_text(json.dumps(embeddings[:-1]))

    with pytest.raises(SnapshotConsistencyError):
        VectorIndex(HashEmbedder()).load(tmp_path)


def test_chunked_mode_detects_metadata_mismatch(tmp_path):
    build(chunked=True).save(tmp_path)
    metadata = json.loads((tmp_path / "chunk_metadata.json").read_text())
    (tmp_path / "chunk_metadata.json").write_text(json.dumps(metadata[:-1]))

    with pytest.raises(SnapshotConsistencyError):
        VectorIndex(HashEmbedder(), chunking=ChunkingPolicy()).load(tmp_path)


def test_chunked_mode_detects_unknown_document(tmp_path):
    build(chunked=True).save(tmp_path)
    metadata = json.loads((tmp_path / "chunk_metadata.json").read_text())
    metadata[0]["document_id"] = 99
    (tmp_path / "chunk_metadata.json").write_text(json.dumps(metadata))

    with pytest.raises(SnapshotConsistencyError, match="unknown document"):
        VectorIndex(HashEmbedder(), chunking=ChunkingPolicy()).load(tmp_path)


def test_load_detects_mixed_dimensions(tmp_path):
    build(chunked=False).save(tmp_path)
    embeddings = json.loads((tmp_path / "embeddings.json").read_text())
    embeddings[0] = embeddings[0][:2]
    (tmp_path / "embeddings.json").write_text(json.dumps(embeddings))

    with pytest.raises(SnapshotConsistencyError, match="dimension"):
        VectorIndex(HashEmbedder()).load(tmp_path)


def test_failed_load_leaves_index_untouched(tmp_path):
    index = build(chunked=False)
    (tmp_path / "doc_map.json").write_text("[]")

    with pytest.raises(SnapshotError):
        index.load(tmp_path)

    assert set(index.doc_map) == {1, 2, 3}


@pytest.mark.parametrize("chunked", [False, True])
def test_load_detects_document_stored_under_wrong_key(tmp_path, chunked):
    build(chunked).save(tmp_path)
    doc_map = json.loads((tmp_path / "doc_map.json").read_text())
    doc_map["2"]["id"] = 99
    (tmp_path / "doc_map.json").write_text(json.dumps(doc_map))

    chunking = ChunkingPolicy(chunk_size=2, overlap=1) if chunked else None
    with pytest.raises(SnapshotConsistencyError, match="under key 2"):
        VectorIndex(HashEmbedder(), chunking=chunking).load(tmp_path)
