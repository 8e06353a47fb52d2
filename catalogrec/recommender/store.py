"""Catalog and interaction stores.

The engine only talks to the abstract ``CatalogStore`` and
``InteractionStore`` interfaces defined here. The in-memory implementations
keep products in a pandas DataFrame so that filter, range, exclusion and
sort-limit queries run as vectorised column operations.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional

import pandas as pd

from catalogrec.recommender.exceptions import (
    CatalogRecException,
    InvalidArgumentError,
    NotFoundError,
    StoreUnavailableError,
)
from catalogrec.recommender.models import (
    COUNTER_FIELDS,
    InteractionKind,
    Product,
    ProductQuery,
    UserInteractions,
    utcnow,
)

# Configure module logger
logger = logging.getLogger(__name__)


class CatalogStore(ABC):
    """Read/write access to product records."""

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Return one product, or None if the id does not resolve."""

    @abstractmethod
    def get_products(self, product_ids: Iterable[int]) -> List[Product]:
        """Resolve a set of ids, silently dropping unknown ones."""

    @abstractmethod
    def find_products(self, query: ProductQuery) -> List[Product]:
        """Run a filter/sort/limit query over the catalog."""

    @abstractmethod
    def distinct_values(self, field: str) -> List[Any]:
        """Return the sorted distinct values of one product field."""

    @abstractmethod
    def increment_counter(self, product_id: int, counter: str, delta: int = 1) -> Product:
        """Adjust a popularity counter, flooring it at zero."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of products in the catalog."""


class InteractionStore(ABC):
    """Read/write access to per-user interaction sets."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserInteractions]:
        """Return a user's interactions, or None if the user is unknown."""

    @abstractmethod
    def iter_users(self) -> Iterator[UserInteractions]:
        """Iterate over every user (full scan)."""

    @abstractmethod
    def create_user(self, user_id: int, email: Optional[str] = None) -> UserInteractions:
        """Register a user with empty interaction sets."""

    @abstractmethod
    def add_interaction(self, user_id: int, kind: InteractionKind, product_id: int) -> bool:
        """Add a product id to one set. Returns False if already present."""

    @abstractmethod
    def remove_interaction(self, user_id: int, kind: InteractionKind, product_id: int) -> bool:
        """Remove a product id from one set. Returns False if absent."""

    @abstractmethod
    def clear_interactions(
        self, user_id: int, kind: Optional[InteractionKind] = None
    ) -> UserInteractions:
        """Empty one interaction set, or all three when kind is None."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of registered users."""


@contextmanager
def _store_errors(store: str):
    """Surface unexpected backend failures as StoreUnavailableError."""
    try:
        yield
    except CatalogRecException:
        raise
    except Exception as e:
        logger.error(
            "Store operation failed",
            extra={"store": store, "error": str(e), "error_type": type(e).__name__},
        )
        raise StoreUnavailableError(store, e) from e


def _contains(column: pd.Series, text: str) -> pd.Series:
    """Case-insensitive literal substring match; missing values never match."""
    return column.fillna("").astype(str).str.contains(text, case=False, regex=False)


def _as_utc_timestamp(value: datetime) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


class InMemoryCatalogStore(CatalogStore):
    """Catalog held in memory and queried through a pandas DataFrame.

    Product records are the source of truth; the DataFrame is rebuilt
    lazily after writes. All access is serialised by a re-entrant lock so
    each query sees a consistent snapshot.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._lock = threading.RLock()
        self._products: Dict[int, Product] = {}
        self._frame: Optional[pd.DataFrame] = None
        for product in products:
            self._products[product.product_id] = product
        logger.info(f"Initialized InMemoryCatalogStore with {len(self._products)} products")

    def __len__(self) -> int:
        return len(self._products)

    def _get_frame(self) -> pd.DataFrame:
        if self._frame is None:
            records = [product.model_dump() for product in self._products.values()]
            frame = pd.DataFrame(records, columns=list(Product.model_fields))
            frame["updated_at"] = pd.to_datetime(frame["updated_at"], utc=True)
            frame.index = frame["product_id"].to_numpy()
            self._frame = frame
        return self._frame

    def upsert_product(self, product: Product) -> None:
        """Insert a product or replace the record with the same id."""
        with self._lock, _store_errors("catalog"):
            self._products[product.product_id] = product
            self._frame = None

    def get_product(self, product_id: int) -> Optional[Product]:
        with self._lock, _store_errors("catalog"):
            return self._products.get(product_id)

    def get_products(self, product_ids: Iterable[int]) -> List[Product]:
        with self._lock, _store_errors("catalog"):
            return [
                self._products[pid] for pid in product_ids if pid in self._products
            ]

    def find_products(self, query: ProductQuery) -> List[Product]:
        with self._lock, _store_errors("catalog"):
            frame = self._get_frame()
            if frame.empty:
                return []

            mask = pd.Series(True, index=frame.index)
            if query.include_ids is not None:
                mask &= frame["product_id"].isin(list(query.include_ids))
            if query.exclude_ids:
                mask &= ~frame["product_id"].isin(list(query.exclude_ids))

            if query.has_match_criteria:
                any_match = pd.Series(False, index=frame.index)
                if query.categories is not None:
                    any_match |= frame["category"].isin(list(query.categories))
                if query.subcategories is not None:
                    any_match |= frame["subcategory"].isin(list(query.subcategories))
                if query.manufacturers is not None:
                    any_match |= frame["manufacturer"].isin(list(query.manufacturers))
                if query.price_range is not None:
                    low, high = query.price_range
                    if query.price_range_closed:
                        any_match |= frame["price"].between(low, high, inclusive="both")
                    else:
                        any_match |= (frame["price"] > low) & (frame["price"] < high)
                mask &= any_match

            if query.modified_since is not None:
                mask &= frame["updated_at"] >= _as_utc_timestamp(query.modified_since)
            if query.is_featured is not None:
                mask &= frame["is_featured"] == query.is_featured
            if query.is_on_sale is not None:
                mask &= frame["is_on_sale"] == query.is_on_sale
            if query.category_contains:
                mask &= _contains(frame["category"], query.category_contains)
            if query.subcategory_contains:
                mask &= _contains(frame["subcategory"], query.subcategory_contains)
            if query.search:
                mask &= (
                    _contains(frame["product_name"], query.search)
                    | _contains(frame["description"], query.search)
                    | _contains(frame["manufacturer"], query.search)
                )

            selected = frame[mask]
            sort_fields = list(query.sort_by) + ["product_id"]
            ascending = [False] * len(query.sort_by) + [True]
            ordered = selected.sort_values(by=sort_fields, ascending=ascending, kind="mergesort")

            stop = None if query.limit is None else query.offset + query.limit
            page = ordered.iloc[query.offset:stop]
            return [self._products[int(pid)] for pid in page["product_id"]]

    def distinct_values(self, field: str) -> List[Any]:
        if field not in Product.model_fields:
            raise InvalidArgumentError("field", field, "not a product field")
        with self._lock, _store_errors("catalog"):
            frame = self._get_frame()
            return sorted(frame[field].dropna().unique().tolist())

    def increment_counter(self, product_id: int, counter: str, delta: int = 1) -> Product:
        if counter not in COUNTER_FIELDS:
            raise InvalidArgumentError("counter", counter, f"must be one of {COUNTER_FIELDS}")
        with self._lock, _store_errors("catalog"):
            product = self._products.get(product_id)
            if product is None:
                raise NotFoundError("product", product_id)
            value = max(0, getattr(product, counter) + delta)
            updated = product.model_copy(update={counter: value, "updated_at": utcnow()})
            self._products[product_id] = updated
            self._frame = None
            return updated


class InMemoryInteractionStore(InteractionStore):
    """Per-user interaction sets held in a dictionary."""

    def __init__(self, users: Iterable[UserInteractions] = ()):
        self._lock = threading.RLock()
        self._users: Dict[int, UserInteractions] = {}
        for user in users:
            self._users[user.user_id] = user
        logger.info(f"Initialized InMemoryInteractionStore with {len(self._users)} users")

    def __len__(self) -> int:
        return len(self._users)

    def get_user(self, user_id: int) -> Optional[UserInteractions]:
        with self._lock, _store_errors("interactions"):
            return self._users.get(user_id)

    def iter_users(self) -> Iterator[UserInteractions]:
        with self._lock, _store_errors("interactions"):
            snapshot = list(self._users.values())
        return iter(snapshot)

    def create_user(self, user_id: int, email: Optional[str] = None) -> UserInteractions:
        with self._lock, _store_errors("interactions"):
            if user_id in self._users:
                raise InvalidArgumentError("user_id", user_id, "user already exists")
            user = UserInteractions(user_id=user_id, email=email)
            self._users[user_id] = user
            return user

    def _require(self, user_id: int) -> UserInteractions:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def add_interaction(self, user_id: int, kind: InteractionKind, product_id: int) -> bool:
        with self._lock, _store_errors("interactions"):
            user = self._require(user_id)
            current = user.ids_for(kind)
            if product_id in current:
                return False
            self._users[user_id] = user.model_copy(
                update={kind.value: current | {product_id}}
            )
            return True

    def remove_interaction(self, user_id: int, kind: InteractionKind, product_id: int) -> bool:
        with self._lock, _store_errors("interactions"):
            user = self._require(user_id)
            current = user.ids_for(kind)
            if product_id not in current:
                return False
            self._users[user_id] = user.model_copy(
                update={kind.value: current - {product_id}}
            )
            return True

    def clear_interactions(
        self, user_id: int, kind: Optional[InteractionKind] = None
    ) -> UserInteractions:
        with self._lock, _store_errors("interactions"):
            user = self._require(user_id)
            kinds = list(InteractionKind) if kind is None else [kind]
            cleared = user.model_copy(update={k.value: frozenset() for k in kinds})
            self._users[user_id] = cleared
            return cleared
