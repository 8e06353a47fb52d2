"""Utility functions for loading catalog and interaction data.

This module reads product and interaction files with pandas, validates each
row into the typed records at the store boundary, and builds the in-memory
stores the engine runs against.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pandas as pd
from pydantic import ValidationError

from catalogrec.recommender.models import InteractionKind, Product, UserInteractions
from catalogrec.recommender.store import InMemoryCatalogStore, InMemoryInteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

# Default data filenames
PRODUCTS_FILENAME = "products.csv"
INTERACTIONS_FILENAME = "interactions.csv"

REQUIRED_PRODUCT_COLUMNS = {
    "product_id",
    "product_name",
    "category",
    "subcategory",
    "price",
    "manufacturer",
}
REQUIRED_INTERACTION_COLUMNS = {"user_id", "product_id", "interaction_type"}

# Accepted spellings of each interaction type
INTERACTION_ALIASES = {
    "like": InteractionKind.LIKES,
    "likes": InteractionKind.LIKES,
    "view": InteractionKind.VIEWS,
    "views": InteractionKind.VIEWS,
    "purchase": InteractionKind.PURCHASES,
    "purchases": InteractionKind.PURCHASES,
}


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".json":
        return pd.read_json(path)
    return pd.read_csv(path)


def load_products(products_path: str) -> List[Product]:
    """Load and validate product records from a CSV or JSON file.

    Missing optional values fall back to the model defaults. Rows that
    fail validation reject the whole file.

    Args:
        products_path: Path to a ``.csv`` or ``.json`` product file.

    Returns:
        Validated products in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If columns are missing, a row is invalid, or product
            ids are duplicated.

    Example:
        >>> products = load_products("data/products.csv")
        >>> print(f"Loaded {len(products)} products")
    """
    path = Path(products_path)
    if not path.exists():
        raise FileNotFoundError(f"Products file not found: {products_path}")

    logger.info(f"Loading products from {products_path}")
    df = _read_table(path)

    if not REQUIRED_PRODUCT_COLUMNS.issubset(df.columns):
        missing = REQUIRED_PRODUCT_COLUMNS - set(df.columns)
        raise ValueError(f"Products file missing required columns: {missing}")

    duplicated = df["product_id"][df["product_id"].duplicated()].tolist()
    if duplicated:
        raise ValueError(f"Duplicate product ids: {duplicated}")

    known_columns = [column for column in df.columns if column in Product.model_fields]
    products = []
    for row_number, record in enumerate(df[known_columns].to_dict(orient="records")):
        cleaned = {key: value for key, value in record.items() if not pd.isna(value)}
        try:
            products.append(Product.model_validate(cleaned))
        except ValidationError as e:
            raise ValueError(f"Invalid product on row {row_number}: {e}") from e

    logger.info(f"Loaded {len(products)} products")
    return products


def load_interactions(interactions_path: str) -> List[UserInteractions]:
    """Load user interaction sets from a CSV file.

    The file holds one row per event with columns ``user_id``,
    ``product_id`` and ``interaction_type`` (like/view/purchase, singular
    or plural). Repeated events collapse into the per-user sets. A row with
    an empty ``product_id`` registers a user with no interactions.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If columns are missing or an interaction type is unknown.
    """
    path = Path(interactions_path)
    if not path.exists():
        raise FileNotFoundError(f"Interactions file not found: {interactions_path}")

    logger.info(f"Loading interactions from {interactions_path}")
    df = pd.read_csv(path)

    if not REQUIRED_INTERACTION_COLUMNS.issubset(df.columns):
        missing = REQUIRED_INTERACTION_COLUMNS - set(df.columns)
        raise ValueError(f"Interactions file missing required columns: {missing}")

    users: Dict[int, Dict[InteractionKind, Set[int]]] = {}
    emails: Dict[int, Optional[str]] = {}
    for record in df.to_dict(orient="records"):
        user_id = int(record["user_id"])
        sets = users.setdefault(user_id, {kind: set() for kind in InteractionKind})
        if "email" in record and not pd.isna(record["email"]):
            emails[user_id] = str(record["email"])

        if pd.isna(record["product_id"]):
            continue

        raw_type = str(record["interaction_type"]).strip().lower()
        kind = INTERACTION_ALIASES.get(raw_type)
        if kind is None:
            raise ValueError(f"Unknown interaction type: {record['interaction_type']!r}")
        sets[kind].add(int(record["product_id"]))

    result = [
        UserInteractions(
            user_id=user_id,
            likes=frozenset(sets[InteractionKind.LIKES]),
            views=frozenset(sets[InteractionKind.VIEWS]),
            purchases=frozenset(sets[InteractionKind.PURCHASES]),
            email=emails.get(user_id),
        )
        for user_id, sets in sorted(users.items())
    ]

    logger.info(f"Loaded interactions for {len(result)} users from {len(df)} events")
    return result


def load_stores(
    data_dir: str,
    products_filename: str = PRODUCTS_FILENAME,
    interactions_filename: str = INTERACTIONS_FILENAME,
) -> Tuple[InMemoryCatalogStore, InMemoryInteractionStore]:
    """Build in-memory stores from a data directory.

    The products file is required; a missing interactions file yields an
    empty interaction store.

    Raises:
        FileNotFoundError: If the data directory or products file is missing.
    """
    data_path = Path(data_dir)
    if not data_path.exists():
        raise FileNotFoundError(f"Data directory does not exist: {data_dir}")

    catalog = InMemoryCatalogStore(load_products(str(data_path / products_filename)))

    interactions_path = data_path / interactions_filename
    if interactions_path.exists():
        interactions = InMemoryInteractionStore(load_interactions(str(interactions_path)))
    else:
        logger.warning(f"No interactions file at {interactions_path}, starting empty")
        interactions = InMemoryInteractionStore()

    return catalog, interactions


def check_data_exists(data_dir: str, products_filename: str = PRODUCTS_FILENAME) -> bool:
    """Check if the products file exists in ``data_dir``."""
    return (Path(data_dir) / products_filename).exists()
