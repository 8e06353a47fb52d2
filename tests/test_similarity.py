"""Tests for Jaccard similarity and the precomputed similarity index."""

import pytest

from catalogrec.recommender.models import UserInteractions
from catalogrec.recommender.similarity import (
    SimilarityIndex,
    jaccard_similarity,
    load_similarity_index,
    save_similarity_index,
)


@pytest.fixture
def users():
    """Fixture providing a small population of like-sets."""
    return [
        UserInteractions(user_id=1, likes=frozenset({1, 2})),
        UserInteractions(user_id=2, likes=frozenset({1, 3})),
        UserInteractions(user_id=3, likes=frozenset({1})),
        UserInteractions(user_id=4, likes=frozenset()),
        UserInteractions(user_id=5, likes=frozenset({7, 8, 9})),
    ]


def test_jaccard_known_value():
    assert jaccard_similarity({"a", "b", "c"}, {"b", "c", "d"}) == 0.5


def test_jaccard_both_empty_is_zero():
    assert jaccard_similarity(set(), set()) == 0.0


def test_jaccard_identical_non_empty_is_one():
    assert jaccard_similarity({1, 2, 3}, {1, 2, 3}) == 1.0


def test_jaccard_one_empty_is_zero():
    assert jaccard_similarity({1}, set()) == 0.0


@pytest.mark.parametrize(
    "first,second",
    [({1, 2}, {2, 3, 4}), (set(), {1}), ({5}, {5, 6}), ({1, 2, 3}, {4})],
)
def test_jaccard_is_symmetric(first, second):
    assert jaccard_similarity(first, second) == jaccard_similarity(second, first)


def test_jaccard_accepts_frozensets():
    assert jaccard_similarity(frozenset({1, 2}), frozenset({2})) == 0.5


def test_index_matches_pairwise_similarity(users):
    """Index scores equal the pure function for every user."""
    index = SimilarityIndex.build(users)
    target = frozenset({1, 2, 9})

    scores = dict(index.score_users(target))
    for user in users:
        assert scores[user.user_id] == pytest.approx(jaccard_similarity(target, user.likes))


def test_index_excludes_requested_user(users):
    index = SimilarityIndex.build(users)
    scored = index.score_users(frozenset({1}), exclude_user_id=3)

    assert 3 not in {uid for uid, _ in scored}
    assert len(scored) == len(users) - 1


def test_index_handles_unknown_products(users):
    """Liked ids no indexed user has still count towards the union."""
    index = SimilarityIndex.build(users)
    scores = dict(index.score_users(frozenset({1, 100})))

    # {1,100} vs {1}: 1 / 2
    assert scores[3] == pytest.approx(0.5)


def test_index_empty_target_against_empty_user(users):
    index = SimilarityIndex.build(users)
    scores = dict(index.score_users(frozenset()))

    assert scores[4] == 0.0


def test_index_with_no_users():
    index = SimilarityIndex.build([])
    assert index.score_users(frozenset({1})) == []


def test_save_and_load_index(users, tmp_path):
    index = SimilarityIndex.build(users)
    save_similarity_index(index, str(tmp_path / "index"))

    loaded = load_similarity_index(str(tmp_path / "index"))

    assert loaded is not None
    assert loaded.user_id_to_idx == index.user_id_to_idx
    assert loaded.product_id_to_idx == index.product_id_to_idx
    assert loaded.score_users(frozenset({1, 2})) == index.score_users(frozenset({1, 2}))


def test_load_missing_index_returns_none(tmp_path):
    assert load_similarity_index(str(tmp_path / "missing")) is None
