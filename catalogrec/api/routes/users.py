"""User interaction history endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from catalogrec.api.dependencies import Services, get_services
from catalogrec.recommender.exceptions import NotFoundError
from catalogrec.recommender.models import InteractionKind, Product

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


class InteractionsResponse(BaseModel):
    """A user's interactions resolved to products (dangling ids dropped)."""

    likes: List[Product]
    views: List[Product]
    purchases: List[Product]


@router.post("/{user_id}", status_code=201)
def register_user(
    user_id: int,
    email: Optional[str] = None,
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Register a user with empty interaction sets."""
    user = services.interactions.create_user(user_id, email=email)
    logger.info("User registered", extra={"user_id": user_id})
    return {"message": "User created successfully", "user_id": user.user_id}


@router.get("/{user_id}/interactions", response_model=InteractionsResponse)
def get_interactions(
    user_id: int,
    services: Services = Depends(get_services),
) -> InteractionsResponse:
    user = services.interactions.get_user(user_id)
    if user is None:
        raise NotFoundError("user", user_id)

    def resolve(kind: InteractionKind) -> List[Product]:
        return services.catalog.get_products(sorted(user.ids_for(kind)))

    return InteractionsResponse(
        likes=resolve(InteractionKind.LIKES),
        views=resolve(InteractionKind.VIEWS),
        purchases=resolve(InteractionKind.PURCHASES),
    )


@router.get("/{user_id}/stats")
def get_stats(user_id: int, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Interaction totals and top categories/manufacturers."""
    return services.recorder.interaction_stats(user_id)


@router.delete("/{user_id}/interactions")
def clear_interactions(
    user_id: int,
    type: Optional[str] = None,
    services: Services = Depends(get_services),
) -> Dict[str, str]:
    """Clear likes, views, purchases, or all of them (``type=all``)."""
    services.recorder.clear_interactions(user_id, type)
    return {"message": f"{type} interactions cleared successfully"}
