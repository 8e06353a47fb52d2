"""Command-line interface for building the user similarity index.

Precomputes the sparse user x product like-matrix that collaborative
filtering can score against instead of scanning every user per request.

Example:
    Build an index from the default data directory:
        $ python scripts/build_similarity_index.py data/interactions.csv

    Build into a custom output directory:
        $ python scripts/build_similarity_index.py data/interactions.csv \\
            --output-dir indexes/prod
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalogrec.recommender.similarity import SimilarityIndex, save_similarity_index
from catalogrec.recommender.utils import load_interactions


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Build a user similarity index from interaction data.",
    )
    parser.add_argument(
        "interactions_path",
        type=str,
        help="CSV with columns: user_id, product_id, interaction_type",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="indexes",
        help="Directory where the index will be saved (default: indexes)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    args = parse_arguments()
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        users = load_interactions(args.interactions_path)
        index = SimilarityIndex.build(users)
        index_path = save_similarity_index(index, args.output_dir)
    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Index build interrupted by user")
        return 130

    logger.info(f"Users indexed:    {len(index.user_id_to_idx)}")
    logger.info(f"Products indexed: {len(index.product_id_to_idx)}")
    logger.info(f"Index saved to:   {index_path.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
