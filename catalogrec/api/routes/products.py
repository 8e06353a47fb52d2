"""Catalog browsing and interaction event endpoints.

Event endpoints (view, like, purchase) go through ``InteractionRecorder``,
which keeps user sets and product counters in step.
"""

import logging
import math
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, ValidationError

from catalogrec.api.dependencies import Services, get_services
from catalogrec.recommender.exceptions import InvalidArgumentError, NotFoundError
from catalogrec.recommender.models import Product, ProductQuery

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["products"],
)

FEATURED_LIMIT = 6
SALE_LIMIT = 10


class ProductPage(BaseModel):
    """One page of catalog results."""

    products: List[Product]
    total_pages: int = Field(..., description="Pages available at this page size")
    current_page: int
    total: int = Field(..., description="Products matching the filters")


class LikeResponse(BaseModel):
    """Result of a like toggle."""

    message: str
    is_liked: bool


@router.get("", response_model=ProductPage)
def list_products(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    sort: str = "updated_at",
    services: Services = Depends(get_services),
) -> ProductPage:
    """List products, optionally filtered and searched.

    ``category`` and ``subcategory`` are case-insensitive substring filters
    and must both hold when given. ``search`` matches the product name,
    description or manufacturer.
    """
    try:
        base = ProductQuery(
            category_contains=category or None,
            subcategory_contains=subcategory or None,
            search=search or None,
            sort_by=(sort,),
        )
    except ValidationError:
        raise InvalidArgumentError("sort", sort, "not a product field") from None

    total = len(services.catalog.find_products(base))
    products = services.catalog.find_products(
        base.model_copy(update={"limit": limit, "offset": (page - 1) * limit})
    )
    return ProductPage(
        products=products,
        total_pages=math.ceil(total / limit),
        current_page=page,
        total=total,
    )


@router.get("/featured", response_model=List[Product])
def featured_products(services: Services = Depends(get_services)) -> List[Product]:
    return services.catalog.find_products(
        ProductQuery(is_featured=True, limit=FEATURED_LIMIT)
    )


@router.get("/sale", response_model=List[Product])
def sale_products(services: Services = Depends(get_services)) -> List[Product]:
    return services.catalog.find_products(ProductQuery(is_on_sale=True, limit=SALE_LIMIT))


@router.get("/categories")
def product_categories(services: Services = Depends(get_services)) -> Dict:
    """Distinct categories and the subcategories found under each."""
    categories = services.catalog.distinct_values("category")
    grouped = []
    for category in categories:
        products = services.catalog.find_products(
            ProductQuery(categories=frozenset({category}))
        )
        grouped.append({
            "category": category,
            "subcategories": sorted({product.subcategory for product in products}),
        })
    return {"categories": categories, "subcategories": grouped}


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int, services: Services = Depends(get_services)) -> Product:
    product = services.catalog.get_product(product_id)
    if product is None:
        raise NotFoundError("product", product_id)
    return product


@router.post("/{product_id}/view")
def track_view(
    product_id: int,
    user_id: int,
    services: Services = Depends(get_services),
) -> Dict[str, str]:
    services.recorder.record_view(user_id, product_id)
    return {"message": "View tracked successfully"}


@router.post("/{product_id}/like", response_model=LikeResponse)
def toggle_like(
    product_id: int,
    user_id: int,
    services: Services = Depends(get_services),
) -> LikeResponse:
    """Like the product, or unlike it when the user already likes it."""
    is_liked = services.recorder.toggle_like(user_id, product_id)
    return LikeResponse(
        message="Product liked" if is_liked else "Product unliked",
        is_liked=is_liked,
    )


@router.post("/{product_id}/purchase")
def record_purchase(
    product_id: int,
    user_id: int,
    services: Services = Depends(get_services),
) -> Dict[str, str]:
    services.recorder.record_purchase(user_id, product_id)
    return {"message": "Purchase recorded successfully"}
