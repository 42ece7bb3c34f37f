"""Rating prediction and item neighborhood endpoints for the TagRec API."""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from tagrec.api.exceptions import ItemNotFoundError
from tagrec.api.metrics import metrics_service
from tagrec.api.routes.recommend import ScoredItem, load_recommender_if_needed

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["items"])

DEFAULT_NNBRS = 10


class PredictionResponse(BaseModel):
    """Response model for rating predictions.

    Attributes:
        kind: "known" for an actual rating, "estimated" for a computed one,
            "no_prediction" when none of the user's rated items is similar.
        rating: The rating, null for "no_prediction".
    """

    user_id: int
    item_id: int
    kind: str = Field(..., description="known, estimated or no_prediction")
    rating: Optional[float] = None


class NeighborhoodResponse(BaseModel):
    item_id: int
    neighbors: List[ScoredItem]


@router.get("/predict/{user_id}/{item_id}", response_model=PredictionResponse)
def predict_rating(user_id: int, item_id: int) -> PredictionResponse:
    """Predict the rating a user would give an item."""
    recommender = load_recommender_if_needed()

    start_time = time.time()
    prediction = recommender.predict(user_id, item_id)
    metrics_service.record("predict", (time.time() - start_time) * 1000)

    return PredictionResponse(
        user_id=user_id,
        item_id=item_id,
        kind=prediction.kind.value,
        rating=prediction.rating,
    )


@router.get("/similar/{item_id}", response_model=NeighborhoodResponse)
def similar_items(
    item_id: int,
    nnbrs: int = Query(DEFAULT_NNBRS, ge=0, description="Neighborhood size"),
    strict: bool = Query(False, description="404 instead of [] for untagged items"),
) -> NeighborhoodResponse:
    """Get the items most similar to an item by tags.

    Example:
        GET /similar/7?nnbrs=5
    """
    recommender = load_recommender_if_needed()

    if strict and item_id not in recommender.index:
        logger.warning(f"Item {item_id} not found in tag index")
        raise ItemNotFoundError(item_id)

    start_time = time.time()
    neighbors = recommender.similar_items(item_id, nnbrs)
    metrics_service.record("similar_items", (time.time() - start_time) * 1000)

    return NeighborhoodResponse(
        item_id=item_id,
        neighbors=[ScoredItem(item_id=nid, score=score) for nid, score in neighbors],
    )
