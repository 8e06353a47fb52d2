"""Tests for hybrid recommendations.

Covers the limit split, the merge step and the blended engine output.
"""

from datetime import datetime, timezone

import pytest

from catalogrec.recommender.engine import RecommendationEngine
from catalogrec.recommender.hybrid import merge_recommendations, split_limit
from catalogrec.recommender.models import Product, UserInteractions
from catalogrec.recommender.store import InMemoryCatalogStore, InMemoryInteractionStore

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_product(product_id, **overrides):
    fields = {
        "product_id": product_id,
        "product_name": f"Product {product_id}",
        "category": "Electronics",
        "subcategory": "Phones",
        "price": 100.0,
        "manufacturer": "Acme",
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Product(**fields)


def ids(products):
    return [product.product_id for product in products]


@pytest.mark.parametrize(
    "limit,expected",
    [(10, (6, 4)), (35, (21, 14)), (5, (3, 2)), (1, (1, 1)), (0, (0, 0)), (7, (5, 3))],
)
def test_split_limit_rounds_each_share_up(limit, expected):
    assert split_limit(limit) == expected


def test_merge_keeps_first_occurrence():
    first = [make_product(1), make_product(2)]
    second = [make_product(2, rating=5.0), make_product(3)]

    merged = merge_recommendations([first, second], limit=10)

    assert ids(merged) == [1, 2, 3]
    assert merged[1].rating == 0.0


def test_merge_truncates_to_limit():
    first = [make_product(pid) for pid in range(1, 6)]
    second = [make_product(pid) for pid in range(6, 11)]

    assert ids(merge_recommendations([first, second], limit=7)) == [1, 2, 3, 4, 5, 6, 7]


def test_merge_of_empty_lists():
    assert merge_recommendations([[], []], limit=5) == []


@pytest.fixture
def engine():
    """Engine whose content and collaborative results overlap."""
    products = [
        make_product(1),
        make_product(2, rating=4.0),
        make_product(3, category="Home", manufacturer="Zenith", price=900.0, like_count=7),
        make_product(4, rating=3.0, like_count=2),
        make_product(5, category="Books", manufacturer="Initech", price=900.0, like_count=1),
    ]
    users = [
        UserInteractions(user_id=1, likes=frozenset({1})),
        UserInteractions(user_id=2, likes=frozenset({1, 3, 4})),
        UserInteractions(user_id=3, likes=frozenset({1, 5})),
    ]
    return RecommendationEngine(InMemoryCatalogStore(products), InMemoryInteractionStore(users))


def test_hybrid_puts_content_results_first(engine):
    content = ids(engine.content_based(1, 6))
    result = ids(engine.hybrid(1, 10))

    assert content == [2, 4]
    assert result[: len(content)] == content


def test_hybrid_has_no_duplicates_and_respects_limit(engine):
    for limit in range(0, 6):
        result = ids(engine.hybrid(1, limit))
        assert len(result) == len(set(result))
        assert len(result) <= limit


def test_hybrid_adds_collaborative_results(engine):
    # collaborative: 3 (7 likes), 4 (2 likes), 5 (1 like); 4 is already present
    assert ids(engine.hybrid(1, 10)) == [2, 4, 3, 5]


def test_hybrid_excludes_liked_products(engine):
    assert 1 not in ids(engine.hybrid(1, 10))
