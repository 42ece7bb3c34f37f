"""Item neighborhoods from tag similarity.

A neighborhood is the list of items most similar to a seed item, found by
querying the index with the seed document's own term weights.
"""

import logging
from typing import List, Tuple

from tagrec.config import DEFAULT_NEIGHBORHOOD_SIZE
from tagrec.recommender.similarity import SimilarityIndex

# Configure module logger
logger = logging.getLogger(__name__)


class NeighborhoodFinder:
    """Finds the items most similar to a seed item."""

    def __init__(self, index: SimilarityIndex):
        self.index = index

    def similar_items(self, item_id: int, nnbrs: int) -> List[Tuple[int, float]]:
        """Find a neighborhood of up to nnbrs items most similar to item_id.

        The seed item matches its own query, so nnbrs + 1 hits are requested
        and the seed is dropped afterwards. Items without a document get an
        empty neighborhood.

        Args:
            item_id: The seed item.
            nnbrs: Neighborhood size.

        Returns:
            List of (item_id, score) with positive scores, by descending score,
            ties broken by ascending item_id. Never contains the seed.
        """
        if nnbrs <= 0:
            return []

        weights = self.index.term_weights(item_id)
        if not weights:
            logger.debug("Item has no tag document", extra={"item_id": item_id})
            return []

        hits = self.index.query(weights, nnbrs + 1)
        neighbors = [
            (neighbor_id, score)
            for neighbor_id, score in hits
            if neighbor_id != item_id and score > 0.0
        ]
        return neighbors[:nnbrs]

    def similarity(
        self,
        item_i: int,
        item_j: int,
        nnbrs: int = DEFAULT_NEIGHBORHOOD_SIZE,
    ) -> float:
        """Similarity of item_j to item_i, limited to item_i's neighborhood.

        Returns 0.0 when item_j falls outside the nnbrs most similar items.
        Not symmetric: similarity(i, j) is computed from i's neighborhood.
        """
        for neighbor_id, score in self.similar_items(item_i, nnbrs):
            if neighbor_id == item_j:
                return score
        return 0.0
