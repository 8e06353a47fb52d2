"""Recommendation endpoints for the CatalogRec API.

Thin handlers around ``RecommendationEngine``: each one calls a single
scorer and frames the ordered product list as
``{type, recommendations, count}``.
"""

import logging
import time
from typing import Callable, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from catalogrec.api.config import settings
from catalogrec.api.dependencies import (
    Services,
    get_services,
    load_services_if_needed,
    set_services,
)
from catalogrec.api.metrics import metrics_service
from catalogrec.recommender.engine import DEFAULT_DASHBOARD_LIMIT, DEFAULT_SIMILAR_LIMIT
from catalogrec.recommender.models import Product

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
)


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests.

    Attributes:
        type: Recommendation kind that produced the list.
        recommendations: Products in ranked order.
        count: Number of products returned.
    """

    type: str = Field(..., description="Recommendation kind")
    recommendations: List[Product] = Field(..., description="Products in ranked order")
    count: int = Field(..., description="Number of recommendations")


def _respond(kind: str, scorer: Callable[[], List[Product]]) -> RecommendationResponse:
    """Run one scorer, record its latency and frame the result."""
    start_time = time.time()
    recommendations = scorer()
    latency_ms = (time.time() - start_time) * 1000
    metrics_service.record_call(kind, latency_ms)

    logger.info(
        "Recommendations served",
        extra={
            "type": kind,
            "count": len(recommendations),
            "latency_ms": round(latency_ms, 2),
        },
    )
    return RecommendationResponse(
        type=kind,
        recommendations=recommendations,
        count=len(recommendations),
    )


@router.get("/personalized", response_model=RecommendationResponse)
def get_personalized(
    user_id: int,
    limit: int = Query(settings.default_limit),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Recommendations from the user's weighted category/manufacturer profile."""
    return _respond("personalized", lambda: services.engine.personalized(user_id, limit))


@router.get("/hybrid", response_model=RecommendationResponse)
def get_hybrid(
    user_id: int,
    limit: int = Query(settings.default_limit),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Content-based and collaborative results blended 60/40."""
    return _respond("hybrid", lambda: services.engine.hybrid(user_id, limit))


@router.get("/content-based", response_model=RecommendationResponse)
def get_content_based(
    user_id: int,
    limit: int = Query(settings.default_limit),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Products resembling the ones the user liked."""
    return _respond("content-based", lambda: services.engine.content_based(user_id, limit))


@router.get("/collaborative", response_model=RecommendationResponse)
def get_collaborative(
    user_id: int,
    limit: int = Query(settings.default_limit),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Products liked by users with overlapping taste."""
    return _respond("collaborative", lambda: services.engine.collaborative(user_id, limit))


@router.get("/trending", response_model=RecommendationResponse)
def get_trending(
    limit: int = Query(settings.default_limit),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Most viewed products of the last 30 days. No user required."""
    return _respond("trending", lambda: services.engine.trending(limit))


@router.get("/similar/{product_id}", response_model=RecommendationResponse)
def get_similar(
    product_id: int,
    limit: int = Query(DEFAULT_SIMILAR_LIMIT),
    services: Services = Depends(get_services),
) -> RecommendationResponse:
    """Products similar to one reference product."""
    return _respond("similar", lambda: services.engine.similar(product_id, limit))


@router.get("/dashboard", response_model=Dict[str, RecommendationResponse])
def get_dashboard(
    user_id: int,
    limit: int = Query(DEFAULT_DASHBOARD_LIMIT),
    services: Services = Depends(get_services),
) -> Dict[str, RecommendationResponse]:
    """Personalized, trending, content-based and collaborative in one call.

    Example:
        GET /recommendations/dashboard?user_id=42
        Returns five products of each kind for user 42.
    """
    start_time = time.time()
    results = services.engine.dashboard(user_id, limit)
    metrics_service.record_call("dashboard", (time.time() - start_time) * 1000)

    return {
        kind: RecommendationResponse(
            type=kind, recommendations=products, count=len(products)
        )
        for kind, products in results.items()
    }


@router.post("/reload-catalog")
def reload_catalog() -> Dict[str, str]:
    """Reload the catalog and interactions from disk.

    Useful after regenerating the data files without restarting the server.
    """
    logger.info("Reloading catalog...")
    set_services(None)
    services = load_services_if_needed()
    return {
        "status": "Catalog reloaded successfully",
        "num_products": str(len(services.catalog)),
        "num_users": str(len(services.interactions)),
    }
