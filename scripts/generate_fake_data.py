"""Generate a fake product catalog and interaction history.

This module creates synthetic catalog and user interaction data for
development and demos. It writes two CSV files that
``catalogrec.recommender.utils.load_stores`` can read directly.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_catalog
        products = generate_fake_catalog(num_products=200)
"""

import argparse
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

# Default configuration constants
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_EVENTS = 1500
DEFAULT_DAYS_BACK = 60
DEFAULT_RANDOM_SEED = 42

CATALOG_TREE = {
    "Electronics": ["Phones", "Laptops", "Audio", "Cameras"],
    "Home": ["Furniture", "Kitchen", "Lighting"],
    "Sports": ["Fitness", "Outdoor", "Cycling"],
    "Books": ["Fiction", "Science", "Cooking"],
    "Clothing": ["Shoes", "Outerwear", "Accessories"],
}
MANUFACTURERS = ["Acme", "Zenith", "Northwind", "Globex", "Initech", "Umbrella", "Stark"]

# Relative frequency of each event type
EVENT_WEIGHTS = {"view": 0.6, "like": 0.25, "purchase": 0.15}


def generate_fake_catalog(
    num_products: int = DEFAULT_NUM_PRODUCTS,
    days_back: int = DEFAULT_DAYS_BACK,
    now: Optional[datetime] = None,
    random_seed: int = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Generate synthetic product records.

    Counters start at zero; ``generate_fake_interactions`` fills them in.

    Args:
        num_products: Number of products to create. Must be positive.
        days_back: ``updated_at`` values are spread over this many days
            before ``now``, so some products fall outside the trending window.
        now: Reference time (defaults to the current UTC time).
        random_seed: Seed for reproducible output.

    Returns:
        DataFrame with one row per product and the product columns.

    Raises:
        ValueError: If num_products or days_back is non-positive.
    """
    if num_products <= 0 or days_back <= 0:
        raise ValueError("num_products and days_back must be positive")

    rng = random.Random(random_seed)
    now = now or datetime.now(timezone.utc)

    products = []
    for product_id in range(1, num_products + 1):
        category = rng.choice(sorted(CATALOG_TREE))
        subcategory = rng.choice(CATALOG_TREE[category])
        manufacturer = rng.choice(MANUFACTURERS)
        price = round(rng.uniform(5, 1500), 2)
        is_on_sale = rng.random() < 0.2

        products.append({
            "product_id": product_id,
            "product_name": f"{manufacturer} {subcategory} {product_id}",
            "category": category,
            "subcategory": subcategory,
            "price": price,
            "manufacturer": manufacturer,
            "description": f"A {subcategory.lower()} item from {manufacturer}",
            "rating": round(rng.uniform(1, 5), 1),
            "is_featured": rng.random() < 0.1,
            "is_on_sale": is_on_sale,
            "sale_price": round(price * 0.8, 2) if is_on_sale else None,
            "quantity_in_stock": rng.randint(0, 500),
            "view_count": 0,
            "purchase_count": 0,
            "like_count": 0,
            "updated_at": (now - timedelta(seconds=rng.randrange(days_back * 86400))).isoformat(),
        })

    return pd.DataFrame(products)


def generate_fake_interactions(
    catalog: pd.DataFrame,
    num_users: int = DEFAULT_NUM_USERS,
    num_events: int = DEFAULT_NUM_EVENTS,
    random_seed: int = DEFAULT_RANDOM_SEED,
) -> pd.DataFrame:
    """Generate interaction events and update catalog counters in place.

    Each user favours two categories, so like-sets overlap enough for
    collaborative filtering to find neighbours.

    Returns:
        DataFrame with columns user_id, product_id, interaction_type.
    """
    if num_users <= 0 or num_events <= 0:
        raise ValueError("num_users and num_events must be positive")

    rng = random.Random(random_seed)
    by_category = catalog.groupby("category")["product_id"].apply(list).to_dict()
    categories = sorted(by_category)
    favourites = {
        user_id: rng.sample(categories, k=min(2, len(categories)))
        for user_id in range(1, num_users + 1)
    }

    event_types = list(EVENT_WEIGHTS)
    weights = list(EVENT_WEIGHTS.values())
    counter_columns = {"view": "view_count", "like": "like_count", "purchase": "purchase_count"}

    events = []
    liked = set()
    for _ in range(num_events):
        user_id = rng.randint(1, num_users)
        category = rng.choice(favourites[user_id]) if rng.random() < 0.8 else rng.choice(categories)
        product_id = rng.choice(by_category[category])
        event = rng.choices(event_types, weights=weights)[0]

        # A like is a set membership: count it once per user
        if event == "like":
            if (user_id, product_id) in liked:
                continue
            liked.add((user_id, product_id))

        events.append({"user_id": user_id, "product_id": product_id, "interaction_type": event})
        catalog.loc[catalog["product_id"] == product_id, counter_columns[event]] += 1

    return pd.DataFrame(events)


def main() -> None:
    """Generate data and write data/products.csv and data/interactions.csv."""
    parser = argparse.ArgumentParser(description="Generate fake catalog and interaction data")
    parser.add_argument("--num-products", type=int, default=DEFAULT_NUM_PRODUCTS)
    parser.add_argument("--num-users", type=int, default=DEFAULT_NUM_USERS)
    parser.add_argument("--num-events", type=int, default=DEFAULT_NUM_EVENTS)
    parser.add_argument("--seed", type=int, default=DEFAULT_RANDOM_SEED)
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(Path(__file__).parent.parent / "data"),
        help="Directory for the generated CSV files (default: data/)",
    )
    args = parser.parse_args()

    print(f"Generating {args.num_products} products and {args.num_events} events...")

    try:
        catalog = generate_fake_catalog(num_products=args.num_products, random_seed=args.seed)
        interactions = generate_fake_interactions(
            catalog,
            num_users=args.num_users,
            num_events=args.num_events,
            random_seed=args.seed,
        )
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    catalog.to_csv(output_dir / "products.csv", index=False)
    interactions.to_csv(output_dir / "interactions.csv", index=False)

    print(f"\nData generated successfully!")
    print(f"Saved to: {output_dir}")
    print(f"\nData summary:")
    print(f"  Products: {len(catalog)}")
    print(f"  Events: {len(interactions)}")
    print(f"  Users with events: {interactions['user_id'].nunique()}")
    print(f"  Event mix: {interactions['interaction_type'].value_counts().to_dict()}")


if __name__ == '__main__':
    main()
