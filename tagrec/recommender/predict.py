"""Rating prediction from tag-similar items the user has rated.

The estimate for an unrated item is the similarity-weighted average of the
user's ratings on items inside that item's neighborhood. Similarity is read
from the target item's neighborhood only, so it is not symmetric.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tagrec.config import DEFAULT_NEIGHBORHOOD_SIZE
from tagrec.recommender.neighborhood import NeighborhoodFinder
from tagrec.recommender.preferences import PreferenceStore

# Configure module logger
logger = logging.getLogger(__name__)


class PredictionKind(str, Enum):
    KNOWN = "known"
    ESTIMATED = "estimated"
    NO_PREDICTION = "no_prediction"


@dataclass(frozen=True)
class Prediction:
    """Outcome of a rating prediction.

    Attributes:
        kind: KNOWN for the user's actual rating, ESTIMATED for a computed
            one, NO_PREDICTION when none of the user's rated items is similar.
        rating: The rating, or None for NO_PREDICTION.
    """

    kind: PredictionKind
    rating: Optional[float] = None

    @classmethod
    def known(cls, rating: float) -> "Prediction":
        return cls(PredictionKind.KNOWN, float(rating))

    @classmethod
    def estimated(cls, rating: float) -> "Prediction":
        return cls(PredictionKind.ESTIMATED, float(rating))

    @property
    def has_rating(self) -> bool:
        return self.kind is not PredictionKind.NO_PREDICTION


NO_PREDICTION = Prediction(PredictionKind.NO_PREDICTION)


class Predictor:
    """Predicts a user's rating for an item."""

    def __init__(
        self,
        preferences: PreferenceStore,
        neighborhoods: NeighborhoodFinder,
        nnbrs: int = DEFAULT_NEIGHBORHOOD_SIZE,
    ):
        """Initialize the predictor.

        Args:
            preferences: Store of known ratings.
            neighborhoods: Source of item neighborhoods.
            nnbrs: Neighborhood size used for each estimate.
        """
        self.preferences = preferences
        self.neighborhoods = neighborhoods
        self.nnbrs = nnbrs

    def predict(self, user_id: int, item_id: int) -> Prediction:
        """Predict the rating user_id would give item_id.

        Returns the actual rating when the user already rated the item.
        Otherwise averages the user's ratings over the rated items inside the
        item's neighborhood, weighted by their similarity score. Rated items
        outside the neighborhood contribute nothing.

        The estimate is computed as ``sum(sim / total_sim * rating)`` rather
        than ``sum(sim * rating) / total_sim``. The two agree up to
        floating-point rounding, and this form returns a lone contributor's
        rating exactly.

        Returns:
            Prediction of kind KNOWN, ESTIMATED or NO_PREDICTION.
        """
        actual = self.preferences.rating(user_id, item_id)
        if actual is not None:
            return Prediction.known(actual)

        rated_items = self.preferences.rated_items(user_id)
        if not rated_items:
            logger.debug("User has no ratings", extra={"user_id": user_id})
            return NO_PREDICTION

        similarities = {}
        for neighbor_id, score in self.neighborhoods.similar_items(item_id, self.nnbrs):
            similarities.setdefault(neighbor_id, score)

        contributors = [
            (similarities[j], self.preferences.rating(user_id, j))
            for j in sorted(rated_items)
            if similarities.get(j, 0.0) > 0.0
        ]
        denominator = sum(sim for sim, _ in contributors)
        if denominator == 0.0:
            return NO_PREDICTION

        # A single contributor returns its rating unchanged
        estimate = sum((sim / denominator) * rating for sim, rating in contributors)

        logger.debug(
            "Estimated rating",
            extra={
                "user_id": user_id,
                "item_id": item_id,
                "num_contributors": len(contributors),
                "estimate": estimate,
            },
        )
        return Prediction.estimated(estimate)
