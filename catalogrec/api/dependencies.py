"""Shared service state for the route handlers.

The stores, engine and recorder are built once from the configured data
directory and cached at module level, like a loaded model. Tests swap in
their own stores with ``set_services``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status

from catalogrec.api.config import settings
from catalogrec.recommender.engine import RecommendationEngine
from catalogrec.recommender.recorder import InteractionRecorder
from catalogrec.recommender.similarity import load_similarity_index
from catalogrec.recommender.store import CatalogStore, InteractionStore
from catalogrec.recommender.utils import check_data_exists, load_stores

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs."""

    catalog: CatalogStore
    interactions: InteractionStore
    engine: RecommendationEngine
    recorder: InteractionRecorder
    loaded_at: datetime


# Cache for loaded services
_services: Optional[Services] = None


def build_services(
    catalog: CatalogStore,
    interactions: InteractionStore,
    strict: bool = False,
    index_dir: str = "",
) -> Services:
    """Wire an engine and a recorder around the given stores."""
    similarity_index = load_similarity_index(index_dir) if index_dir else None
    return Services(
        catalog=catalog,
        interactions=interactions,
        engine=RecommendationEngine(
            catalog, interactions, similarity_index=similarity_index, strict=strict
        ),
        recorder=InteractionRecorder(catalog, interactions),
        loaded_at=datetime.now(timezone.utc),
    )


def set_services(services: Optional[Services]) -> None:
    """Replace (or clear, with None) the cached services."""
    global _services
    _services = services


def peek_services() -> Optional[Services]:
    """Return the cached services without loading anything."""
    return _services


def load_services_if_needed(data_dir: Optional[str] = None) -> Services:
    """Load stores from disk if not already loaded.

    Raises:
        HTTPException: 503 if the catalog data is missing or fails to load.
    """
    global _services

    if _services is not None:
        return _services

    data_dir = data_dir or settings.data_dir
    if not check_data_exists(data_dir, settings.products_filename):
        logger.error(f"Catalog data not found in {data_dir}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Catalog data not found in {data_dir}. Please generate or load data first.",
        )

    try:
        logger.info(f"Loading catalog from {data_dir}")
        catalog, interactions = load_stores(
            data_dir,
            products_filename=settings.products_filename,
            interactions_filename=settings.interactions_filename,
        )
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load catalog: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to load catalog: {str(e)}",
        )

    _services = build_services(
        catalog,
        interactions,
        strict=settings.strict_lookups,
        index_dir=settings.index_dir,
    )
    logger.info(
        "Catalog loaded successfully",
        extra={"num_products": len(catalog), "num_users": len(interactions)},
    )
    return _services


def get_services() -> Services:
    """FastAPI dependency returning the loaded services."""
    return load_services_if_needed()
