"""Tests for the FastAPI application endpoints.

This module contains integration tests for the CatalogRec API endpoints,
run against small in-memory stores injected with ``set_services``.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from catalogrec.api.dependencies import build_services, set_services
from catalogrec.api.main import app
from catalogrec.api.metrics import metrics_service
from catalogrec.recommender.models import Product, UserInteractions
from catalogrec.recommender.store import InMemoryCatalogStore, InMemoryInteractionStore

# Create test client
client = TestClient(app)

NOW = datetime.now(timezone.utc)


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


def make_stores():
    catalog = InMemoryCatalogStore([
        make_product(1, like_count=5),
        make_product(2, price=110.0, like_count=3, rating=4.0, is_featured=True),
        make_product(3, category="Home", subcategory="Furniture", manufacturer="Zenith",
                     price=50.0, like_count=1, is_on_sale=True, sale_price=40.0),
        make_product(4, rating=4.5, view_count=50, updated_at=NOW - timedelta(days=1)),
        make_product(5, rating=3.0, view_count=10, updated_at=NOW - timedelta(days=90)),
    ])
    interactions = InMemoryInteractionStore([
        UserInteractions(user_id=1, likes=frozenset({1, 2})),
        UserInteractions(user_id=2, likes=frozenset({1, 3})),
        UserInteractions(user_id=3, likes=frozenset({1})),
    ])
    return catalog, interactions


@pytest.fixture(autouse=True)
def services():
    """Inject fresh in-memory services for every test."""
    catalog, interactions = make_stores()
    injected = build_services(catalog, interactions)
    set_services(injected)
    metrics_service.reset()
    yield injected
    set_services(None)


def ids(payload):
    return [product["product_id"] for product in payload]


def test_ping_endpoint():
    """Test that the /ping endpoint returns correct status and JSON."""
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_endpoint_reports_loaded_catalog():
    response = client.get("/status")

    assert response.status_code == 200
    data = response.json()
    assert data["catalog_loaded"] is True
    assert data["num_products"] == 5
    assert data["num_users"] == 3
    assert isinstance(data["timestamp_last_loaded"], str)


def test_request_id_header_is_echoed():
    response = client.get("/ping", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert client.get("/ping").headers["X-Request-ID"]


# ===== Recommendations =====


def test_content_based_endpoint():
    response = client.get("/recommendations/content-based?user_id=3&limit=5")

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "content-based"
    assert data["count"] == len(data["recommendations"])
    assert 1 not in ids(data["recommendations"])


def test_collaborative_endpoint():
    response = client.get("/recommendations/collaborative?user_id=3&limit=5")

    assert response.status_code == 200
    assert ids(response.json()["recommendations"]) == [2, 3]


def test_trending_endpoint():
    response = client.get("/recommendations/trending?limit=2")

    assert response.status_code == 200
    assert ids(response.json()["recommendations"]) == [4, 1]


def test_similar_endpoint():
    response = client.get("/recommendations/similar/1?limit=10")

    assert response.status_code == 200
    result = ids(response.json()["recommendations"])
    assert 1 not in result
    assert result[0] == 4


def test_hybrid_endpoint_has_no_duplicates():
    response = client.get("/recommendations/hybrid?user_id=3&limit=4")

    assert response.status_code == 200
    result = ids(response.json()["recommendations"])
    assert len(result) == len(set(result)) <= 4


def test_personalized_endpoint_excludes_interacted():
    response = client.get("/recommendations/personalized?user_id=1")

    assert response.status_code == 200
    assert not {1, 2} & set(ids(response.json()["recommendations"]))


def test_dashboard_endpoint():
    response = client.get("/recommendations/dashboard?user_id=3")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"personalized", "trending", "content-based", "collaborative"}
    assert data["trending"]["type"] == "trending"


def test_unknown_user_returns_empty_list():
    response = client.get("/recommendations/content-based?user_id=999")

    assert response.status_code == 200
    assert response.json()["count"] == 0


def test_unknown_user_strict_mode_returns_404():
    set_services(build_services(*make_stores(), strict=True))

    response = client.get("/recommendations/collaborative?user_id=999")

    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "NotFoundError"
    assert data["details"] == {"entity": "user", "id": 999}


def test_negative_limit_returns_400():
    response = client.get("/recommendations/trending?limit=-1")

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "InvalidArgumentError"
    assert data["details"]["argument"] == "limit"


def test_non_integer_user_id_rejected():
    response = client.get("/recommendations/hybrid?user_id=abc")

    assert response.status_code == 422


def test_metrics_track_recommendation_calls():
    client.get("/recommendations/trending")
    client.get("/recommendations/hybrid?user_id=1")

    data = client.get("/metrics").json()

    assert data["call_count"] == 2
    assert set(data["by_type"]) == {"trending", "hybrid"}


# ===== Products =====


def test_list_products_paginates():
    response = client.get("/products?limit=2&page=2&sort=rating")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["total_pages"] == 3
    assert data["current_page"] == 2
    assert len(data["products"]) == 2


def test_list_products_filters_category():
    response = client.get("/products?category=Home")

    assert ids(response.json()["products"]) == [3]


def test_list_products_category_and_subcategory_both_apply():
    set_services(build_services(
        InMemoryCatalogStore([
            make_product(1, category="Electronics", subcategory="Laptops"),
            make_product(2, category="Electronics", subcategory="Phones"),
            make_product(3, category="Home", subcategory="Laptops"),
        ]),
        InMemoryInteractionStore(),
    ))

    response = client.get("/products?category=Electronics&subcategory=Laptops")

    assert ids(response.json()["products"]) == [1]
    assert response.json()["total"] == 1


def test_list_products_filters_ignore_case():
    response = client.get("/products?category=home&subcategory=FURNITURE")

    assert ids(response.json()["products"]) == [3]


def test_list_products_search():
    set_services(build_services(
        InMemoryCatalogStore([
            make_product(1, product_name="Desk Lamp"),
            make_product(2, description="A lamp for reading"),
            make_product(3, manufacturer="LampWorks"),
            make_product(4, product_name="Sofa"),
        ]),
        InMemoryInteractionStore(),
    ))

    response = client.get("/products?search=LAMP")

    assert sorted(ids(response.json()["products"])) == [1, 2, 3]


def test_list_products_invalid_sort():
    response = client.get("/products?sort=popularity")

    assert response.status_code == 400


def test_featured_and_sale_products():
    assert ids(client.get("/products/featured").json()) == [2]
    assert ids(client.get("/products/sale").json()) == [3]


def test_categories_endpoint():
    data = client.get("/products/categories").json()

    assert data["categories"] == ["Electronics", "Home"]
    assert {"category": "Home", "subcategories": ["Furniture"]} in data["subcategories"]


def test_get_product_and_missing():
    assert client.get("/products/2").json()["product_id"] == 2
    assert client.get("/products/999").status_code == 404


def test_like_toggle_endpoint(services):
    first = client.post("/products/3/like?user_id=3")
    second = client.post("/products/3/like?user_id=3")

    assert first.json() == {"message": "Product liked", "is_liked": True}
    assert second.json()["is_liked"] is False
    assert services.catalog.get_product(3).like_count == 1


def test_view_and_purchase_endpoints(services):
    assert client.post("/products/2/view?user_id=1").status_code == 200
    assert client.post("/products/2/purchase?user_id=1").status_code == 200

    user = services.interactions.get_user(1)
    assert 2 in user.views and 2 in user.purchases
    assert services.catalog.get_product(2).view_count == 1


def test_event_for_unknown_user_returns_404():
    response = client.post("/products/1/view?user_id=999")

    assert response.status_code == 404


# ===== Users =====


def test_register_user_and_duplicate():
    created = client.post("/users/50?email=fifty@example.com")
    duplicate = client.post("/users/50")

    assert created.status_code == 201
    assert duplicate.status_code == 400


def test_user_interactions_endpoint():
    response = client.get("/users/1/interactions")

    assert response.status_code == 200
    assert ids(response.json()["likes"]) == [1, 2]
    assert client.get("/users/999/interactions").status_code == 404


def test_user_stats_endpoint():
    data = client.get("/users/2/stats").json()

    assert data["total_likes"] == 2
    assert data["top_categories"][0]["count"] == 1


def test_clear_interactions_endpoint(services):
    assert client.delete("/users/1/interactions?type=likes").status_code == 200
    assert services.interactions.get_user(1).likes == frozenset()

    assert client.delete("/users/1/interactions?type=bogus").status_code == 400
