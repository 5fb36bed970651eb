import pytest

from hybrid_retrieval.exceptions import InvalidArgumentError
from hybrid_retrieval.hybrid import (
    Document,
    RankedResult,
    normalize_scores,
    reciprocal_rank_fusion,
    weighted_fusion,
)
from hybrid_retrieval.hybrid.fusion import hybrid_score, rrf_score


def doc(doc_id: int) -> Document:
    return Document(doc_id, f"title {doc_id}", "")


def ranked(*pairs):
    return [RankedResult(doc(doc_id), score) for doc_id, score in pairs]


def ids(results):
    return [result.document.id for result in results]


def test_normalize_scores_maps_into_unit_interval():
    assert normalize_scores([2.0, 4.0, 3.0]) == [0.0, 1.0, 0.5]
    assert normalize_scores([]) == []


def test_normalize_scores_of_flat_list_is_all_ones():
    assert normalize_scores([0.3, 0.3, 0.3]) == [1.0, 1.0, 1.0]


def test_score_helpers():
    assert hybrid_score(1.0, 0.0, alpha=0.25) == pytest.approx(0.25)
    assert rrf_score(1) == pytest.approx(1 / 61)
    assert rrf_score(3, k=0) == pytest.approx(1 / 3)


def test_alpha_one_equals_lexical_normalized_score():
    lexical = ranked((1, 9.0), (2, 5.0), (3, 1.0))
    semantic = ranked((3, 0.9), (2, 0.5), (4, 0.1))

    results = weighted_fusion(lexical, semantic, alpha=1.0, limit=4)

    assert ids(results) == [1, 2, 3, 4]
    for result in results:
        assert result.fused_score == pytest.approx(result.lexical_score)
    assert results[-1].lexical_rank is None
    assert results[-1].fused_score == 0.0


def test_alpha_zero_equals_semantic_normalized_score():
    lexical = ranked((1, 9.0), (2, 5.0), (3, 1.0))
    semantic = ranked((3, 0.9), (2, 0.5), (4, 0.1))

    results = weighted_fusion(lexical, semantic, alpha=0.0, limit=4)

    assert ids(results) == [3, 2, 1, 4]
    for result in results:
        assert result.fused_score == pytest.approx(result.semantic_score)
    assert results[2].semantic_rank is None
    assert results[2].fused_score == 0.0


def test_weighted_tie_keeps_lexical_document_first():
    lexical = ranked((1, 10.0), (2, 0.0))
    semantic = ranked((2, 1.0), (1, 0.0))

    results = weighted_fusion(lexical, semantic, alpha=0.5, limit=2)

    assert ids(results) == [1, 2]
    assert [result.fused_score for result in results] == [pytest.approx(0.5), pytest.approx(0.5)]


def test_weighted_fusion_fills_sources_and_missing_sides():
    lexical = ranked((1, 4.0), (2, 2.0))
    semantic = ranked((3, 0.8), (1, 0.4))

    results = {result.document.id: result for result in weighted_fusion(lexical, semantic, limit=5)}

    assert results[1].lexical_rank == 1
    assert results[1].semantic_rank == 2
    assert results[1].lexical_raw_score == 4.0
    assert results[1].semantic_raw_score == 0.4
    assert results[2].semantic_rank is None
    assert results[2].semantic_score == 0.0
    assert results[3].lexical_rank is None
    assert results[3].fused_score == pytest.approx(0.5)


def test_weighted_fusion_respects_limit_and_alpha_bounds():
    lexical = ranked((1, 3.0), (2, 2.0), (3, 1.0))

    assert len(weighted_fusion(lexical, [], limit=2)) == 2
    with pytest.raises(InvalidArgumentError):
        weighted_fusion(lexical, [], alpha=1.5)


def test_rrf_scores_only_documents_in_both_lists():
    lexical = ranked((1, 9.0), (2, 8.0), (3, 7.0))
    semantic = ranked((3, 0.9), (4, 0.8))

    results = reciprocal_rank_fusion(lexical, semantic, k=60, limit=4)

    assert ids(results) == [3, 1, 2, 4]
    assert results[0].fused_score == pytest.approx(1 / (3 + 60) + 1 / (1 + 60))
    assert [result.fused_score for result in results[1:]] == [0.0, 0.0, 0.0]


def test_rrf_records_per_list_contributions():
    lexical = ranked((1, 9.0), (2, 8.0))
    semantic = ranked((2, 0.9))

    results = {result.document.id: result for result in reciprocal_rank_fusion(lexical, semantic, k=10)}

    assert results[1].lexical_score == pytest.approx(1 / 11)
    assert results[1].semantic_rank is None
    assert results[2].lexical_rank == 2
    assert results[2].semantic_score == pytest.approx(1 / 11)
    assert results[2].fused_score == pytest.approx(1 / 12 + 1 / 11)


def test_rrf_rejects_negative_k():
    with pytest.raises(InvalidArgumentError):
        reciprocal_rank_fusion([], [], k=-1)


def test_empty_inputs_fuse_to_nothing():
    assert weighted_fusion([], []) == []
    assert reciprocal_rank_fusion([], []) == []
