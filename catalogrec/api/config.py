"""Application settings read from the environment."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # Data files
    data_dir: str = os.getenv("CATALOGREC_DATA_DIR", str(BASE_DIR / "data"))
    products_filename: str = os.getenv("CATALOGREC_PRODUCTS_FILE", "products.csv")
    interactions_filename: str = os.getenv("CATALOGREC_INTERACTIONS_FILE", "interactions.csv")

    # Optional precomputed similarity index directory
    index_dir: str = os.getenv("CATALOGREC_INDEX_DIR", "")

    # Logging
    log_level: str = os.getenv("CATALOGREC_LOG_LEVEL", "INFO")

    # Raise 404 for unknown users/products instead of returning empty lists
    strict_lookups: bool = _env_flag("CATALOGREC_STRICT_LOOKUPS", False)

    default_limit: int = int(os.getenv("CATALOGREC_DEFAULT_LIMIT", "10"))


settings = Settings()
