"""Read-only store of user ratings.

Ratings come from a ``user_id,item_id,rating`` CSV file, with or without a
header row. Extra trailing columns such as a timestamp are ignored.
"""

import logging
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

import pandas as pd

# Configure module logger
logger = logging.getLogger(__name__)

PREFERENCE_COLUMNS = ["user_id", "item_id", "rating"]


class PreferenceStore:
    """Immutable lookup of (user, item, rating) triples."""

    def __init__(self, preferences: pd.DataFrame):
        """Initialize the store from a DataFrame.

        Args:
            preferences: DataFrame with columns user_id, item_id and rating.
                When a (user, item) pair repeats, the last rating wins.

        Raises:
            ValueError: If required columns are missing or values are not
                numeric.
        """
        missing = set(PREFERENCE_COLUMNS) - set(preferences.columns)
        if missing:
            raise ValueError(f"Preferences missing required columns: {missing}")

        df = preferences[PREFERENCE_COLUMNS].drop_duplicates(
            subset=["user_id", "item_id"], keep="last"
        )
        try:
            user_ids = df["user_id"].astype("int64")
            item_ids = df["item_id"].astype("int64")
            ratings = df["rating"].astype("float64")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Preferences contain non-numeric values: {e}") from e

        self._ratings: Dict[int, Dict[int, float]] = {}
        for user_id, item_id, rating in zip(user_ids, item_ids, ratings):
            self._ratings.setdefault(int(user_id), {})[int(item_id)] = float(rating)

        self._rated_items = {
            user_id: frozenset(items) for user_id, items in self._ratings.items()
        }
        self._item_ids = sorted({int(item_id) for item_id in item_ids})
        self._num_preferences = len(df)

        logger.info(
            f"Initialized PreferenceStore: {len(self._ratings)} users, "
            f"{len(self._item_ids)} items, {self._num_preferences} ratings"
        )

    @classmethod
    def from_records(
        cls, records: Iterable[Tuple[int, int, float]]
    ) -> "PreferenceStore":
        """Build a store from (user_id, item_id, rating) tuples."""
        return cls(pd.DataFrame(list(records), columns=PREFERENCE_COLUMNS))

    @property
    def num_preferences(self) -> int:
        return self._num_preferences

    def item_ids(self) -> List[int]:
        """All catalog item IDs, sorted."""
        return list(self._item_ids)

    def user_ids(self) -> List[int]:
        return sorted(self._ratings)

    def rated_items(self, user_id: int) -> FrozenSet[int]:
        """Items the user has rated; empty for unknown users."""
        return self._rated_items.get(user_id, frozenset())

    def rating(self, user_id: int, item_id: int) -> Optional[float]:
        """The user's rating for an item, or None if they have not rated it."""
        return self._ratings.get(user_id, {}).get(item_id)


def load_preferences(csv_path: Union[str, Path]) -> PreferenceStore:
    """Load ratings from CSV into a PreferenceStore.

    Args:
        csv_path: Path to a ``user_id,item_id,rating`` file. A header row
            naming those columns is optional.

    Returns:
        Loaded PreferenceStore.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If the CSV is empty, has fewer than three columns or
            contains non-numeric values.

    Example:
        >>> store = load_preferences("data/ratings.csv")
        >>> store.rated_items(42)
        frozenset({10, 17})
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading preferences from {csv_path}")
    try:
        df = pd.read_csv(csv_file, header=None, usecols=[0, 1, 2], dtype=str)
    except pd.errors.EmptyDataError as e:
        raise ValueError("Cannot load preferences from empty CSV") from e

    df.columns = PREFERENCE_COLUMNS
    df = df.apply(lambda column: column.str.strip())

    if not df.empty and df.iloc[0].str.lower().tolist() == PREFERENCE_COLUMNS:
        df = df.iloc[1:]

    if df.empty:
        raise ValueError("Cannot load preferences from empty CSV")

    try:
        df = df.apply(pd.to_numeric)
    except ValueError as e:
        raise ValueError(f"Preferences contain non-numeric values: {e}") from e

    logger.info(f"Loaded {len(df)} preference records")
    return PreferenceStore(df)
