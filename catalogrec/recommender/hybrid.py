"""Hybrid recommendation module.

Combines content-based and collaborative results into one ranking.
"""

import logging
import math
from fractions import Fraction
from typing import List, Sequence, Tuple

from catalogrec.recommender.models import Product

# Configure module logger
logger = logging.getLogger(__name__)

# Share of the hybrid limit requested from each scorer (rounded up)
CONTENT_SHARE = Fraction(3, 5)
COLLABORATIVE_SHARE = Fraction(2, 5)


def split_limit(limit: int) -> Tuple[int, int]:
    """Split a hybrid limit into (content, collaborative) request sizes.

    Exact fractions keep e.g. ``ceil(35 * 0.4)`` at 14.

    Example:
        >>> split_limit(10)
        (6, 4)
        >>> split_limit(5)
        (3, 2)
    """
    return math.ceil(CONTENT_SHARE * limit), math.ceil(COLLABORATIVE_SHARE * limit)


def merge_recommendations(
    ranked_lists: Sequence[Sequence[Product]],
    limit: int,
) -> List[Product]:
    """Concatenate ranked lists, keep the first occurrence of each product.

    Earlier lists win ties, so their products keep their position.
    """
    seen = set()
    merged: List[Product] = []
    for ranked in ranked_lists:
        for product in ranked:
            if product.product_id in seen:
                continue
            seen.add(product.product_id)
            merged.append(product)

    if len(merged) > limit:
        logger.debug(f"Truncating merged recommendations from {len(merged)} to {limit}")
    return merged[:limit]
