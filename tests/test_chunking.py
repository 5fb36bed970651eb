import pytest

from hybrid_retrieval.exceptions import InvalidArgumentError
from hybrid_retrieval.hybrid.chunking import (
    ChunkingPolicy,
    ChunkingStrategy,
    fixed_size_chunks,
    overlapping_chunks,
    semantic_chunks,
    split_sentences,
)

TEN_WORDS = "one two three four five six seven eight nine ten"


def test_fixed_size_chunks_split_consecutive_groups():
    assert fixed_size_chunks(TEN_WORDS, 4) == [
        "one two three four",
        "five six seven eight",
        "nine ten",
    ]


def test_overlapping_chunks_drop_trailing_repeat():
    chunks = overlapping_chunks(TEN_WORDS, 4, 1)

    assert chunks == [
        "one two three four",
        "four five six seven",
        "seven eight nine ten",
    ]


def test_overlapping_chunks_without_overlap_match_fixed():
    assert overlapping_chunks(TEN_WORDS, 3, 0) == fixed_size_chunks(TEN_WORDS, 3)


def test_split_sentences_on_terminal_punctuation():
    text = "Neo wakes up. Is this real? Yes!  Trinity arrives."

    assert split_sentences(text) == ["Neo wakes up.", "Is this real?", "Yes!", "Trinity arrives."]


def test_semantic_chunks_slide_over_sentences():
    text = "First. Second. Third."

    assert semantic_chunks(text, 2, 1) == ["First. Second.", "Second. Third."]


def test_semantic_chunks_keep_short_first_window():
    assert semantic_chunks("Only one sentence here.", 4, 1) == ["Only one sentence here."]


@pytest.mark.parametrize("strategy", list(ChunkingStrategy))
@pytest.mark.parametrize("text", ["", "   "])
def test_blank_text_yields_no_chunks(strategy, text):
    policy = ChunkingPolicy(strategy, chunk_size=4, overlap=1)

    assert policy.chunk(text) == []


def test_policy_dispatches_on_strategy():
    assert ChunkingPolicy("fixed", 4, 0).chunk(TEN_WORDS) == fixed_size_chunks(TEN_WORDS, 4)
    assert ChunkingPolicy(ChunkingStrategy.OVERLAPPING, 4, 1).chunk(TEN_WORDS) == overlapping_chunks(
        TEN_WORDS, 4, 1
    )
    assert ChunkingPolicy().strategy is ChunkingStrategy.SEMANTIC


@pytest.mark.parametrize("chunk_size, overlap", [(0, 0), (4, 4), (4, -1), (2, 5)])
def test_policy_rejects_invalid_windows(chunk_size, overlap):
    with pytest.raises(InvalidArgumentError):
        ChunkingPolicy(ChunkingStrategy.FIXED, chunk_size, overlap)


def test_policy_rejects_unknown_strategy():
    with pytest.raises(InvalidArgumentError, match="paragraph"):
        ChunkingPolicy("paragraph", 4, 1)
