"""Recommendation engine.

Turns a user's interaction history and the product catalog into ordered
product lists. Every scorer is a read-only pass over the stores: it pulls
what it needs, ranks deterministically (product id ascending breaks every
tie) and truncates to the caller's limit.
"""

import logging
import time
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from catalogrec.recommender.exceptions import InvalidArgumentError, NotFoundError
from catalogrec.recommender.hybrid import merge_recommendations, split_limit
from catalogrec.recommender.models import (
    InteractionKind,
    Product,
    ProductQuery,
    UserInteractions,
    utcnow,
)
from catalogrec.recommender.similarity import SimilarityIndex, jaccard_similarity
from catalogrec.recommender.store import CatalogStore, InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

# Default result sizes per operation
DEFAULT_CONTENT_LIMIT = 5
DEFAULT_COLLABORATIVE_LIMIT = 5
DEFAULT_HYBRID_LIMIT = 10
DEFAULT_PERSONALIZED_LIMIT = 10
DEFAULT_TRENDING_LIMIT = 10
DEFAULT_SIMILAR_LIMIT = 5
DEFAULT_DASHBOARD_LIMIT = 5

# Content-based price band around the mean liked price (open interval)
CONTENT_PRICE_BAND = (0.5, 1.5)

# Collaborative filtering neighbourhood
SIMILARITY_THRESHOLD = 0.1  # exclusive
MAX_SIMILAR_USERS = 10

# Personalization weights per interaction kind
INTERACTION_WEIGHTS = {
    InteractionKind.PURCHASES: 3,
    InteractionKind.LIKES: 2,
    InteractionKind.VIEWS: 1,
}
TOP_PREFERENCES = 3

TRENDING_WINDOW = timedelta(days=30)

# Similar-item price band around the reference price (bounds included)
SIMILAR_PRICE_BAND = (0.7, 1.3)

# Sort keys, all descending; product id ascending is appended by the store
CONTENT_SORT = ("rating", "like_count")
CONTENT_FALLBACK_SORT = ("like_count", "view_count")
COLLABORATIVE_SORT = ("like_count", "rating")
COLLABORATIVE_FALLBACK_SORT = ("purchase_count", "like_count")
PERSONALIZED_SORT = ("rating", "like_count", "view_count")
TRENDING_SORT = ("view_count", "like_count", "purchase_count", "rating")
SIMILAR_SORT = ("rating", "like_count")


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise InvalidArgumentError("limit", limit, "must be >= 0")


def _top_keys(scores: Dict[str, int], n: int) -> List[str]:
    """Highest-scoring keys, ties broken alphabetically."""
    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [key for key, _ in ranked[:n]]


class RecommendationEngine:
    """Rule-based scorers over injected catalog and interaction stores.

    The engine keeps no state between calls. Unknown user or product ids
    are logged and yield an empty list; with ``strict=True`` they raise
    ``NotFoundError`` instead. Store failures always propagate.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        interactions: InteractionStore,
        similarity_index: Optional[SimilarityIndex] = None,
        strict: bool = False,
    ):
        self.catalog = catalog
        self.interactions = interactions
        self.similarity_index = similarity_index
        self.strict = strict

        logger.info(
            f"Initialized RecommendationEngine: strict={strict}, "
            f"similarity_index={'enabled' if similarity_index else 'disabled'}"
        )

    def _resolve_user(self, user_id: int, operation: str) -> Optional[UserInteractions]:
        user = self.interactions.get_user(user_id)
        if user is None:
            if self.strict:
                raise NotFoundError("user", user_id)
            logger.warning(
                "User not found, returning no recommendations",
                extra={"user_id": user_id, "operation": operation},
            )
        return user

    def content_based(self, user_id: int, limit: int = DEFAULT_CONTENT_LIMIT) -> List[Product]:
        """Recommend products resembling the ones a user liked.

        Candidates share a category or a manufacturer with a liked product,
        or are priced within 0.5x-1.5x of the mean liked price. Users with
        no (resolvable) likes get the most liked products instead.

        Args:
            user_id: Target user.
            limit: Maximum number of products to return.

        Returns:
            Products ordered by rating, then like count.
        """
        _check_limit(limit)
        user = self._resolve_user(user_id, "content_based")
        if user is None:
            return []

        liked = self.catalog.get_products(user.likes)
        if not liked:
            logger.info(f"No likes for user {user_id}, using popularity fallback")
            return self.catalog.find_products(
                ProductQuery(sort_by=CONTENT_FALLBACK_SORT, limit=limit)
            )

        mean_price = sum(product.price for product in liked) / len(liked)
        low, high = CONTENT_PRICE_BAND

        return self.catalog.find_products(
            ProductQuery(
                exclude_ids=user.likes,
                categories=frozenset(product.category for product in liked),
                manufacturers=frozenset(product.manufacturer for product in liked),
                price_range=(mean_price * low, mean_price * high),
                sort_by=CONTENT_SORT,
                limit=limit,
            )
        )

    def _similar_users(self, user: UserInteractions) -> List[Tuple[int, float]]:
        """Neighbours above the similarity threshold, most similar first."""
        if self.similarity_index is not None:
            scored = self.similarity_index.score_users(user.likes, exclude_user_id=user.user_id)
        else:
            scored = [
                (other.user_id, jaccard_similarity(user.likes, other.likes))
                for other in self.interactions.iter_users()
                if other.user_id != user.user_id
            ]

        neighbours = [(uid, sim) for uid, sim in scored if sim > SIMILARITY_THRESHOLD]
        neighbours.sort(key=lambda item: (-item[1], item[0]))
        return neighbours[:MAX_SIMILAR_USERS]

    def collaborative(
        self, user_id: int, limit: int = DEFAULT_COLLABORATIVE_LIMIT
    ) -> List[Product]:
        """Recommend products liked by users with overlapping taste.

        Users whose like-set has Jaccard similarity above 0.1 with the
        target's are neighbours; the ten closest contribute their likes.
        Users with no likes get the most purchased products instead.
        """
        _check_limit(limit)
        start_time = time.time()
        user = self._resolve_user(user_id, "collaborative")
        if user is None:
            return []

        if not user.likes:
            logger.info(f"No likes for user {user_id}, using popularity fallback")
            return self.catalog.find_products(
                ProductQuery(sort_by=COLLABORATIVE_FALLBACK_SORT, limit=limit)
            )

        neighbours = self._similar_users(user)
        candidate_ids = set()
        for neighbour_id, _ in neighbours:
            neighbour = self.interactions.get_user(neighbour_id)
            if neighbour is not None:
                candidate_ids |= neighbour.likes
        candidate_ids -= user.likes

        logger.debug(
            "Collected collaborative candidates",
            extra={
                "user_id": user_id,
                "num_neighbours": len(neighbours),
                "num_candidates": len(candidate_ids),
                "scan_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )

        if not candidate_ids:
            return []

        return self.catalog.find_products(
            ProductQuery(
                include_ids=frozenset(candidate_ids),
                sort_by=COLLABORATIVE_SORT,
                limit=limit,
            )
        )

    def personalized(
        self, user_id: int, limit: int = DEFAULT_PERSONALIZED_LIMIT
    ) -> List[Product]:
        """Recommend from the user's top categories and manufacturers.

        Every interacted product adds its kind's weight (purchase 3, like 2,
        view 1) to its category and its manufacturer. Products the user has
        not interacted with that fall in one of the top three categories or
        top three manufacturers are candidates.
        """
        _check_limit(limit)
        user = self._resolve_user(user_id, "personalized")
        if user is None:
            return []

        category_scores: Dict[str, int] = defaultdict(int)
        manufacturer_scores: Dict[str, int] = defaultdict(int)
        for kind, weight in INTERACTION_WEIGHTS.items():
            for product in self.catalog.get_products(user.ids_for(kind)):
                category_scores[product.category] += weight
                manufacturer_scores[product.manufacturer] += weight

        top_categories = _top_keys(category_scores, TOP_PREFERENCES)
        top_manufacturers = _top_keys(manufacturer_scores, TOP_PREFERENCES)
        logger.debug(
            "Computed preference profile",
            extra={
                "user_id": user_id,
                "top_categories": top_categories,
                "top_manufacturers": top_manufacturers,
            },
        )

        return self.catalog.find_products(
            ProductQuery(
                exclude_ids=user.all_interacted,
                categories=frozenset(top_categories),
                manufacturers=frozenset(top_manufacturers),
                sort_by=PERSONALIZED_SORT,
                limit=limit,
            )
        )

    def trending(
        self, limit: int = DEFAULT_TRENDING_LIMIT, now: Optional[datetime] = None
    ) -> List[Product]:
        """Most viewed products modified within the last 30 days.

        Never padded with older products, so the result can be shorter
        than ``limit``.
        """
        _check_limit(limit)
        now = now or utcnow()
        return self.catalog.find_products(
            ProductQuery(
                modified_since=now - TRENDING_WINDOW,
                sort_by=TRENDING_SORT,
                limit=limit,
            )
        )

    def similar(self, product_id: int, limit: int = DEFAULT_SIMILAR_LIMIT) -> List[Product]:
        """Products sharing category, subcategory, manufacturer or price band."""
        _check_limit(limit)
        product = self.catalog.get_product(product_id)
        if product is None:
            if self.strict:
                raise NotFoundError("product", product_id)
            logger.warning(
                "Product not found, returning no similar products",
                extra={"product_id": product_id},
            )
            return []

        low, high = SIMILAR_PRICE_BAND
        return self.catalog.find_products(
            ProductQuery(
                exclude_ids=frozenset({product.product_id}),
                categories=frozenset({product.category}),
                subcategories=frozenset({product.subcategory}),
                manufacturers=frozenset({product.manufacturer}),
                price_range=(product.price * low, product.price * high),
                price_range_closed=True,
                sort_by=SIMILAR_SORT,
                limit=limit,
            )
        )

    def hybrid(self, user_id: int, limit: int = DEFAULT_HYBRID_LIMIT) -> List[Product]:
        """Blend content-based (60%) and collaborative (40%) results.

        Content results come first and win duplicates.
        """
        _check_limit(limit)
        content_limit, collaborative_limit = split_limit(limit)
        content = self.content_based(user_id, content_limit)
        collaborative = self.collaborative(user_id, collaborative_limit)

        recommendations = merge_recommendations([content, collaborative], limit)
        logger.info(
            f"Generated {len(recommendations)} hybrid recommendations for user {user_id}"
        )
        return recommendations

    def dashboard(
        self, user_id: int, limit: int = DEFAULT_DASHBOARD_LIMIT
    ) -> Dict[str, List[Product]]:
        """All per-user views plus trending, keyed by recommendation type."""
        _check_limit(limit)
        return {
            "personalized": self.personalized(user_id, limit),
            "trending": self.trending(limit),
            "content-based": self.content_based(user_id, limit),
            "collaborative": self.collaborative(user_id, limit),
        }
