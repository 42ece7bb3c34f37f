"""Module for getting recommendations.

Ranks every catalog item a user has not rated by its predicted rating and
returns the best ones. ``TagRecommender`` wires the index, neighborhoods,
predictor and ranking together and is the entry point used by the API and
the command-line scripts.
"""

import logging
import time
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

from tagrec.config import DEFAULT_NEIGHBORHOOD_SIZE, DEFAULT_TOP_N
from tagrec.recommender.index import build_or_reuse_index
from tagrec.recommender.neighborhood import NeighborhoodFinder
from tagrec.recommender.predict import Prediction, Predictor
from tagrec.recommender.preferences import PreferenceStore, load_preferences
from tagrec.recommender.similarity import SimilarityIndex

# Configure module logger
logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Recommender:
    """Top-N ranking over a user's unrated items."""

    def __init__(self, preferences: PreferenceStore, predictor: Predictor):
        self.preferences = preferences
        self.predictor = predictor

    def recommend(
        self, user_id: int, top_n: int = DEFAULT_TOP_N
    ) -> List[Tuple[int, float]]:
        """Recommend up to top_n items the user has not rated.

        Items without a positive prediction are left out, so fewer than
        top_n items may come back.

        Args:
            user_id: The user to recommend for.
            top_n: Maximum number of items to return.

        Returns:
            List of (item_id, predicted_rating) by descending rating, ties
            broken by ascending item_id.
        """
        if top_n <= 0:
            return []

        rated_items = self.preferences.rated_items(user_id)
        scored = []
        for item_id in self.preferences.item_ids():
            if item_id in rated_items:
                continue
            prediction = self.predictor.predict(user_id, item_id)
            if prediction.has_rating and prediction.rating > 0.0:
                scored.append((item_id, prediction.rating))

        scored.sort(key=lambda pair: (-pair[1], pair[0]))
        return scored[:top_n]


class TagRecommender:
    """Item-item recommender using tag similarity.

    Holds one loaded index and preference store for the life of the process.
    Both are read-only, so a single instance can be shared across threads.
    """

    def __init__(
        self,
        index: SimilarityIndex,
        preferences: PreferenceStore,
        nnbrs: int = DEFAULT_NEIGHBORHOOD_SIZE,
    ):
        """Initialize the recommender.

        Args:
            index: Loaded tag similarity index.
            preferences: Store of known ratings.
            nnbrs: Neighborhood size used when estimating ratings.
        """
        self.index = index
        self.preferences = preferences
        self.neighborhoods = NeighborhoodFinder(index)
        self.predictor = Predictor(preferences, self.neighborhoods, nnbrs=nnbrs)
        self.recommender = Recommender(preferences, self.predictor)

        logger.info(
            f"Initialized TagRecommender: {index.num_documents} tagged items, "
            f"{len(preferences.item_ids())} catalog items, nnbrs={nnbrs}"
        )

    @classmethod
    def from_paths(
        cls,
        tags_path: PathLike,
        ratings_path: PathLike,
        index_dir: PathLike,
        nnbrs: int = DEFAULT_NEIGHBORHOOD_SIZE,
    ) -> "TagRecommender":
        """Build or reuse the tag index, then load it with the ratings.

        Raises:
            ParseError: If the tag file has a malformed row.
            IndexIOError: If the tag file is unreadable or the index can't be
                written.
            BuildAborted: If a new index could not be published.
            FileNotFoundError: If the ratings file does not exist.
            ValueError: If the ratings file is empty or malformed.
        """
        build_or_reuse_index(tags_path, index_dir)
        index = SimilarityIndex.load(index_dir)
        preferences = load_preferences(ratings_path)
        return cls(index, preferences, nnbrs=nnbrs)

    def similar_items(self, item_id: int, nnbrs: int) -> List[Tuple[int, float]]:
        return self.neighborhoods.similar_items(item_id, nnbrs)

    def predict(self, user_id: int, item_id: int) -> Prediction:
        return self.predictor.predict(user_id, item_id)

    def recommend(
        self, user_id: int, top_n: int = DEFAULT_TOP_N
    ) -> List[Tuple[int, float]]:
        """Get recommendations for a user.

        Unknown users and users whose rated items have no tag neighbors get
        an empty list.
        """
        start_time = time.time()

        recommendations = self.recommender.recommend(user_id, top_n)

        total_time = time.time() - start_time
        logger.info(
            "Recommendations generated",
            extra={
                "user_id": user_id,
                "top_n": top_n,
                "num_recommendations": len(recommendations),
                "total_time_ms": round(total_time * 1000, 2),
            },
        )
        return recommendations

    def batch_recommend(
        self, user_ids: Iterable[int], top_n: int = DEFAULT_TOP_N
    ) -> Dict[int, List[Tuple[int, float]]]:
        """Generate recommendations for multiple users in batch.

        A failure for one user is logged and yields an empty list for that
        user; the remaining users are still processed.

        Example:
            >>> recommender.batch_recommend([1, 5, 10], top_n=5)
            {1: [(31, 4.5), ...], 5: [...], 10: []}
        """
        user_ids = list(user_ids)
        logger.info(
            f"Generating batch recommendations for {len(user_ids)} users, "
            f"top_n={top_n}"
        )

        results = {}
        for user_id in user_ids:
            try:
                results[user_id] = self.recommender.recommend(user_id, top_n)
            except Exception as e:
                logger.error(
                    f"Failed to generate recommendations for user {user_id}: {e}",
                    exc_info=True,
                )
                results[user_id] = []

        logger.info(f"Batch recommendations completed for {len(results)} users")
        return results
