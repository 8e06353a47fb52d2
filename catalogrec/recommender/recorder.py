"""Interaction event recording.

Views, likes and purchases change both a user's interaction sets and the
product's popularity counters. ``InteractionRecorder`` applies both writes
under a single lock so concurrent toggles cannot lose updates. The engine
never calls into this module; it only reads what the recorder wrote.
"""

import logging
import threading
from collections import Counter
from typing import Any, Dict, Optional

from catalogrec.recommender.exceptions import InvalidArgumentError, NotFoundError
from catalogrec.recommender.models import (
    KIND_TO_COUNTER,
    InteractionKind,
    Product,
    UserInteractions,
)
from catalogrec.recommender.store import CatalogStore, InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

# Accepted values for clear_interactions besides the three kinds
CLEAR_ALL = "all"

# Number of categories/manufacturers reported in interaction stats
STATS_TOP_N = 5


class InteractionRecorder:
    """Records interaction events against the catalog and interaction stores."""

    def __init__(self, catalog: CatalogStore, interactions: InteractionStore):
        self.catalog = catalog
        self.interactions = interactions
        self._lock = threading.Lock()

    def _require_user(self, user_id: int) -> UserInteractions:
        user = self.interactions.get_user(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def _require_product(self, product_id: int) -> Product:
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        return product

    def record_view(self, user_id: int, product_id: int) -> Product:
        """Count a view; the product joins the user's views on first sight."""
        with self._lock:
            self._require_user(user_id)
            self._require_product(product_id)
            updated = self.catalog.increment_counter(
                product_id, KIND_TO_COUNTER[InteractionKind.VIEWS], 1
            )
            self.interactions.add_interaction(user_id, InteractionKind.VIEWS, product_id)

        logger.info("View recorded", extra={"user_id": user_id, "product_id": product_id})
        return updated

    def toggle_like(self, user_id: int, product_id: int) -> bool:
        """Like the product, or unlike it if already liked.

        Returns:
            True if the product is liked after the call.
        """
        with self._lock:
            user = self._require_user(user_id)
            self._require_product(product_id)
            if product_id in user.likes:
                self.interactions.remove_interaction(user_id, InteractionKind.LIKES, product_id)
                self.catalog.increment_counter(product_id, KIND_TO_COUNTER[InteractionKind.LIKES], -1)
                is_liked = False
            else:
                self.interactions.add_interaction(user_id, InteractionKind.LIKES, product_id)
                self.catalog.increment_counter(product_id, KIND_TO_COUNTER[InteractionKind.LIKES], 1)
                is_liked = True

        logger.info(
            "Product liked" if is_liked else "Product unliked",
            extra={"user_id": user_id, "product_id": product_id},
        )
        return is_liked

    def record_purchase(self, user_id: int, product_id: int) -> Product:
        """Count a purchase; repeat purchases bump the counter each time."""
        with self._lock:
            self._require_user(user_id)
            self._require_product(product_id)
            updated = self.catalog.increment_counter(
                product_id, KIND_TO_COUNTER[InteractionKind.PURCHASES], 1
            )
            self.interactions.add_interaction(user_id, InteractionKind.PURCHASES, product_id)

        logger.info("Purchase recorded", extra={"user_id": user_id, "product_id": product_id})
        return updated

    def clear_interactions(self, user_id: int, kind: Optional[str]) -> UserInteractions:
        """Clear one interaction set ("likes", "views", "purchases") or "all".

        Counters are left untouched: they are cumulative catalog statistics.
        """
        if kind == CLEAR_ALL:
            target = None
        else:
            try:
                target = InteractionKind(kind)
            except ValueError:
                raise InvalidArgumentError(
                    "type", kind, "must be likes, views, purchases or all"
                ) from None

        with self._lock:
            cleared = self.interactions.clear_interactions(user_id, target)

        logger.info("Interactions cleared", extra={"user_id": user_id, "kind": kind})
        return cleared

    def interaction_stats(self, user_id: int) -> Dict[str, Any]:
        """Totals per interaction kind and the user's most frequent
        categories and manufacturers across all three sets."""
        user = self._require_user(user_id)

        categories: Counter = Counter()
        manufacturers: Counter = Counter()
        for kind in InteractionKind:
            for product in self.catalog.get_products(user.ids_for(kind)):
                categories[product.category] += 1
                manufacturers[product.manufacturer] += 1

        def top(counts: Counter, label: str):
            ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
            return [{label: name, "count": count} for name, count in ranked[:STATS_TOP_N]]

        return {
            "total_likes": len(user.likes),
            "total_views": len(user.views),
            "total_purchases": len(user.purchases),
            "top_categories": top(categories, "category"),
            "top_manufacturers": top(manufacturers, "manufacturer"),
        }

