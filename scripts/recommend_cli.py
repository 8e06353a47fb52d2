"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads the catalog from a data directory,
runs one scorer and prints the ranked products to the console.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalogrec.recommender.engine import RecommendationEngine
from catalogrec.recommender.exceptions import CatalogRecException
from catalogrec.recommender.models import Product
from catalogrec.recommender.similarity import load_similarity_index
from catalogrec.recommender.utils import load_stores

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)

USER_MODES = ("hybrid", "content-based", "collaborative", "personalized")
MODES = USER_MODES + ("trending", "similar")


def get_recommendations(
    engine: RecommendationEngine,
    mode: str,
    target_id: int,
    limit: int,
) -> List[Product]:
    """Dispatch to the scorer for ``mode``.

    Args:
        engine: Engine over the loaded stores
        mode: One of MODES
        target_id: User id, or product id for "similar"; ignored for "trending"
        limit: Number of recommendations to return

    Returns:
        Ranked products
    """
    scorers = {
        "hybrid": engine.hybrid,
        "content-based": engine.content_based,
        "collaborative": engine.collaborative,
        "personalized": engine.personalized,
        "similar": engine.similar,
    }
    if mode == "trending":
        return engine.trending(limit)
    return scorers[mode](target_id, limit)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend_cli.py 42
  python scripts/recommend_cli.py 42 --mode collaborative --limit 5
  python scripts/recommend_cli.py 0 --mode trending
  python scripts/recommend_cli.py 17 --mode similar
        """
    )

    parser.add_argument(
        "target_id",
        type=int,
        help="User ID (or product ID with --mode similar)"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of recommendations to return (default: 10)"
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=MODES,
        default="hybrid",
        help="Recommendation type (default: hybrid)"
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing products.csv and interactions.csv (default: data)"
    )

    parser.add_argument(
        "--index-dir",
        type=str,
        default=None,
        help="Directory with a precomputed similarity index (optional)"
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unknown user/product instead of printing nothing"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        catalog, interactions = load_stores(args.data_dir)
        index = load_similarity_index(args.index_dir) if args.index_dir else None
        engine = RecommendationEngine(
            catalog, interactions, similarity_index=index, strict=args.strict
        )
        recommendations = get_recommendations(engine, args.mode, args.target_id, args.limit)
    except FileNotFoundError as e:
        print(f"Error: Data not found in {args.data_dir}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except CatalogRecException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print(f"\n{args.mode} recommendations for {args.target_id}:")
    if not recommendations:
        print("  (none)")
    for rank, product in enumerate(recommendations, start=1):
        print(
            f"  {rank:>2}. [{product.product_id}] {product.product_name} "
            f"({product.category}/{product.manufacturer}, ${product.price:.2f}, "
            f"rating {product.rating}, likes {product.like_count})"
        )
    print()


if __name__ == "__main__":
    main()
