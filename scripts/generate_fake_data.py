"""Generate fake tag and rating data for testing and development.

This module creates a synthetic item tag file and a user rating file in the
formats TagRec reads.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_tags
        tags = generate_fake_tags(num_items=200)
"""

import random
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_ITEMS = 100
DEFAULT_NUM_RATINGS = 1000
DEFAULT_MAX_TAGS_PER_ITEM = 5
DEFAULT_SEED = 42

TAG_VOCABULARY = (
    "action", "adventure", "animation", "based on a book", "classic",
    "comedy", "crime", "dark comedy", "documentary", "drama", "dystopia",
    "family", "fantasy", "film noir", "heist", "horror", "musical",
    "mystery", "romance", "satire", "sci-fi", "space", "superhero",
    "thriller", "time travel", "war", "western",
)


def generate_fake_tags(
    num_items: int = DEFAULT_NUM_ITEMS,
    max_tags_per_item: int = DEFAULT_MAX_TAGS_PER_ITEM,
    vocabulary: Sequence[str] = TAG_VOCABULARY,
    seed: Optional[int] = DEFAULT_SEED,
) -> pd.DataFrame:
    """Generate synthetic item tags.

    Args:
        num_items: Number of items, numbered 1 to num_items.
        max_tags_per_item: Each item gets between 1 and this many tags.
        vocabulary: Tags to draw from. Tags may contain spaces and mixed case.
        seed: Random seed for reproducibility.

    Returns:
        DataFrame with columns item_id and tag, rows of each item contiguous.

    Raises:
        ValueError: If a count is non-positive or the vocabulary is empty.
    """
    if num_items <= 0 or max_tags_per_item <= 0:
        raise ValueError("num_items and max_tags_per_item must be positive")
    if not vocabulary:
        raise ValueError("vocabulary must not be empty")

    rng = random.Random(seed)
    rows = []
    for item_id in range(1, num_items + 1):
        count = rng.randint(1, min(max_tags_per_item, len(vocabulary)))
        for tag in rng.sample(list(vocabulary), count):
            rows.append({"item_id": item_id, "tag": tag.title() if rng.random() < 0.2 else tag})

    return pd.DataFrame(rows, columns=["item_id", "tag"])


def generate_fake_ratings(
    num_users: int = DEFAULT_NUM_USERS,
    num_items: int = DEFAULT_NUM_ITEMS,
    num_ratings: int = DEFAULT_NUM_RATINGS,
    seed: Optional[int] = DEFAULT_SEED,
) -> pd.DataFrame:
    """Generate synthetic explicit ratings on a 0.5 to 5.0 scale.

    Repeated (user, item) draws are dropped, so fewer than num_ratings rows
    may be returned.

    Returns:
        DataFrame with columns user_id, item_id and rating, sorted by user.

    Raises:
        ValueError: If any count is non-positive.
    """
    if num_users <= 0 or num_items <= 0 or num_ratings <= 0:
        raise ValueError("num_users, num_items, and num_ratings must be positive")

    rng = random.Random(seed)
    ratings = [
        {
            "user_id": rng.randint(1, num_users),
            "item_id": rng.randint(1, num_items),
            "rating": rng.randint(1, 10) / 2,
        }
        for _ in range(num_ratings)
    ]

    df = pd.DataFrame(ratings)
    df = df.drop_duplicates(subset=["user_id", "item_id"], keep="first")
    return df.sort_values(["user_id", "item_id"]).reset_index(drop=True)


def main() -> None:
    """Generate default data into data/tags.csv and data/ratings.csv."""
    print(f"Generating tags for {DEFAULT_NUM_ITEMS} items...")
    tags = generate_fake_tags()
    print(f"Generating {DEFAULT_NUM_RATINGS} ratings from {DEFAULT_NUM_USERS} users...")
    ratings = generate_fake_ratings()

    data_dir = Path(__file__).parent.parent / "data"
    data_dir.mkdir(exist_ok=True)

    # Tag rows are read as raw item_id,tag lines, so no header
    tags_path = data_dir / "tags.csv"
    tags.to_csv(tags_path, index=False, header=False)
    ratings_path = data_dir / "ratings.csv"
    ratings.to_csv(ratings_path, index=False)

    print(f"\nData generated successfully!")
    print(f"Saved tags to:    {tags_path}")
    print(f"Saved ratings to: {ratings_path}")
    print(f"\nData summary:")
    print(f"  Tag rows:      {len(tags)}")
    print(f"  Distinct tags: {tags['tag'].str.lower().nunique()}")
    print(f"  Ratings:       {len(ratings)}")
    print(f"  Unique users:  {ratings['user_id'].nunique()}")
    print(f"  Rated items:   {ratings['item_id'].nunique()}")


if __name__ == "__main__":
    main()
