"""Tests for the more-like-this similarity index."""

import math
from pathlib import Path

import pytest

from tagrec.recommender.exceptions import IndexNotFoundError
from tagrec.recommender.index import build_index, compute_term_frequencies, group_documents
from tagrec.recommender.similarity import SimilarityIndex

SCENARIO_ROWS = [
    (1, "action"),
    (1, "thriller"),
    (2, "action"),
    (2, "comedy"),
    (3, "romance"),
]


def make_index(rows) -> SimilarityIndex:
    """Build an in-memory index from (item_id, tag) rows."""
    documents = group_documents(rows)
    term_frequencies, vocabulary = compute_term_frequencies(documents)
    return SimilarityIndex(
        item_ids=[doc.item_id for doc in documents],
        texts=[doc.text for doc in documents],
        term_frequencies=term_frequencies,
        vocabulary=vocabulary,
    )


@pytest.fixture
def index() -> SimilarityIndex:
    return make_index(SCENARIO_ROWS)


def test_index_statistics(index: SimilarityIndex):
    assert index.num_documents == 3
    assert len(index) == 3
    assert index.num_terms == 4
    assert index.item_ids == [1, 2, 3]
    assert index.document_frequency("action") == 2
    assert index.document_frequency("romance") == 1
    assert index.document_frequency("missing") == 0


def test_idf_matches_formula(index: SimilarityIndex):
    assert index.idf("action") == pytest.approx(math.log(1 + 3 / 2))
    assert index.idf("comedy") == pytest.approx(math.log(1 + 3 / 1))
    assert index.idf("missing") == 0.0


def test_document_lookup(index: SimilarityIndex):
    assert index.document(1) == ("action", "thriller")
    assert index.document(42) is None
    assert 1 in index
    assert 42 not in index


def test_postings_list_item_and_frequency():
    index = make_index([(1, "heist"), (1, "heist"), (2, "heist"), (3, "war")])

    assert index.postings("heist") == [(1, 2), (2, 1)]
    assert index.postings("war") == [(3, 1)]
    assert index.postings("missing") == []


def test_repeated_item_resolves_to_later_document():
    index = make_index([(1, "noir"), (2, "heist"), (1, "heist")])

    assert index.num_documents == 3
    assert index.document(1) == ("heist",)
    assert index.query({"noir": 1.0}, limit=10) == []
    assert [item_id for item_id, _ in index.query({"heist": 1.0}, limit=10)] == [1, 2]
    assert index.postings("noir") == []
    assert index.postings("heist") == [(2, 1), (1, 1)]


def test_term_weights_are_tf_times_idf():
    index = make_index([(1, "heist"), (1, "heist"), (1, "war"), (2, "heist")])

    weights = index.term_weights(1)

    assert weights["heist"] == pytest.approx(2 * math.log(1 + 2 / 2))
    assert weights["war"] == pytest.approx(math.log(1 + 2 / 1))
    assert index.term_weights(99) == {}


def test_query_scores_shared_terms_only(index: SimilarityIndex):
    idf_action = math.log(2.5)
    idf_rare = math.log(4.0)

    results = index.query(index.term_weights(1), limit=10)

    assert [item_id for item_id, _ in results] == [1, 2]
    assert results[0][1] == pytest.approx(idf_action**2 + idf_rare**2)
    assert results[1][1] == pytest.approx(idf_action**2)


def test_query_breaks_ties_by_item_id():
    index = make_index([(10, "noir"), (5, "noir"), (7, "noir"), (7, "crime")])

    results = index.query({"noir": 1.0}, limit=10)

    assert [item_id for item_id, _ in results] == [5, 7, 10]
    assert results[0][1] == results[1][1] == results[2][1]


def test_query_respects_limit(index: SimilarityIndex):
    assert len(index.query({"action": 1.0}, limit=1)) == 1
    assert index.query({"action": 1.0}, limit=0) == []
    assert index.query({"action": 1.0}, limit=-3) == []


def test_query_empty_or_unknown_terms_returns_empty(index: SimilarityIndex):
    assert index.query({}, limit=5) == []
    assert index.query({"no-such-term": 3.0}, limit=5) == []


def test_query_ignores_unknown_terms_among_known(index: SimilarityIndex):
    results = index.query({"romance": 1.0, "no-such-term": 5.0}, limit=5)

    assert [item_id for item_id, _ in results] == [3]


def test_empty_index_answers_queries():
    index = make_index([])

    assert index.num_documents == 0
    assert index.query({"action": 1.0}, limit=5) == []
    assert index.term_weights(1) == {}


def test_load_matches_in_memory_index(tmp_path: Path, index: SimilarityIndex):
    build_index(SCENARIO_ROWS, tmp_path / "index")

    loaded = SimilarityIndex.load(tmp_path / "index")

    assert loaded.item_ids == index.item_ids
    for item_id in index.item_ids:
        assert loaded.document(item_id) == index.document(item_id)
        assert loaded.query(loaded.term_weights(item_id), 5) == index.query(
            index.term_weights(item_id), 5
        )


def test_load_missing_index_raises(tmp_path: Path):
    with pytest.raises(IndexNotFoundError):
        SimilarityIndex.load(tmp_path / "nowhere")


def test_mismatched_inputs_raise_value_error():
    documents = group_documents(SCENARIO_ROWS)
    term_frequencies, vocabulary = compute_term_frequencies(documents)

    with pytest.raises(ValueError):
        SimilarityIndex([1, 2], ["a", "b"], term_frequencies, vocabulary)
