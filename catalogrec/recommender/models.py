"""Typed records shared by the stores and the recommendation engine.

Products and user interaction sets are validated once at the store
boundary, so scoring code can rely on every field being present and typed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class InteractionKind(str, Enum):
    """The three kinds of user interaction tracked per product."""

    LIKES = "likes"
    VIEWS = "views"
    PURCHASES = "purchases"


# Popularity counters on Product that interaction events adjust
COUNTER_FIELDS = ("view_count", "like_count", "purchase_count")

# Counter adjusted by each kind of interaction event
KIND_TO_COUNTER = {
    InteractionKind.LIKES: "like_count",
    InteractionKind.VIEWS: "view_count",
    InteractionKind.PURCHASES: "purchase_count",
}


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Product(BaseModel):
    """A catalog product.

    Attributes:
        product_id: Stable unique identifier.
        price: Non-negative list price.
        rating: Average rating in the 0-5 range.
        sale_price: Only meaningful when ``is_on_sale`` is set.
        view_count: Cumulative views, adjusted by interaction events.
        purchase_count: Cumulative purchases, adjusted by interaction events.
        like_count: Current number of likes, adjusted by interaction events.
        updated_at: Last time the record changed (timezone-aware, UTC).
    """

    product_id: int
    product_name: str
    category: str
    subcategory: str
    price: float = Field(..., ge=0)
    manufacturer: str
    description: Optional[str] = None
    rating: float = Field(default=0.0, ge=0, le=5)
    is_featured: bool = False
    is_on_sale: bool = False
    sale_price: Optional[float] = Field(default=None, ge=0)
    quantity_in_stock: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    purchase_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    image_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}

    @field_validator("updated_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class UserInteractions(BaseModel):
    """A user's interaction history as three sets of product ids.

    Ids may reference products that no longer exist; scorers drop them when
    resolving against the catalog.
    """

    user_id: int
    likes: FrozenSet[int] = frozenset()
    views: FrozenSet[int] = frozenset()
    purchases: FrozenSet[int] = frozenset()
    email: Optional[str] = None

    model_config = {"frozen": True}

    def ids_for(self, kind: InteractionKind) -> FrozenSet[int]:
        """Return the id set for one interaction kind."""
        return getattr(self, kind.value)

    @property
    def all_interacted(self) -> FrozenSet[int]:
        """Union of liked, viewed and purchased product ids."""
        return self.likes | self.views | self.purchases


class ProductQuery(BaseModel):
    """Catalog query understood by every ``CatalogStore``.

    Match criteria (categories, subcategories, manufacturers, price_range)
    are OR-ed together: a product matches if it satisfies ANY of the ones
    given. Every other constraint is AND-ed on top, including the
    case-insensitive text filters (category_contains, subcategory_contains,
    search). price_range is open unless price_range_closed is set.
    Results are ordered by ``sort_by`` fields descending, then by product
    id ascending.
    """

    include_ids: Optional[FrozenSet[int]] = None
    exclude_ids: FrozenSet[int] = frozenset()
    categories: Optional[FrozenSet[str]] = None
    subcategories: Optional[FrozenSet[str]] = None
    manufacturers: Optional[FrozenSet[str]] = None
    price_range: Optional[Tuple[float, float]] = None
    price_range_closed: bool = False
    modified_since: Optional[datetime] = None
    is_featured: Optional[bool] = None
    is_on_sale: Optional[bool] = None
    category_contains: Optional[str] = None
    subcategory_contains: Optional[str] = None
    # Matched against product_name, description and manufacturer
    search: Optional[str] = None
    sort_by: Tuple[str, ...] = ()
    limit: Optional[int] = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_sort_fields(self) -> "ProductQuery":
        unknown = [name for name in self.sort_by if name not in Product.model_fields]
        if unknown:
            raise ValueError(f"Unknown sort fields: {unknown}")
        return self

    @property
    def has_match_criteria(self) -> bool:
        """Whether any OR-ed match criterion was supplied."""
        return any(
            criterion is not None
            for criterion in (
                self.categories,
                self.subcategories,
                self.manufacturers,
                self.price_range,
            )
        )
