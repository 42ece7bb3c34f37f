"""Recommendation endpoints for the TagRec API.

This module provides the top-N recommendation endpoint and owns the
process-wide recommender, which is loaded once on first use and shared by
every request.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from tagrec import config
from tagrec.api.exceptions import IndexUnavailableError, RecommendationError
from tagrec.api.metrics import metrics_service
from tagrec.recommender.exceptions import TagRecError
from tagrec.recommender.recommend import TagRecommender

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)

# Loaded recommender shared by all requests
_recommender_cache: Optional[Dict[str, Any]] = None


class ScoredItem(BaseModel):
    item_id: int = Field(..., description="Item ID")
    score: float = Field(..., description="Predicted rating or similarity score")


class RecommendationResponse(BaseModel):
    """Response model for recommendation requests.

    Attributes:
        user_id: The user ID for which recommendations were generated.
        recommendations: Recommended items with their predicted ratings.
    """

    user_id: int = Field(..., description="User ID for recommendations")
    recommendations: List[ScoredItem] = Field(
        ..., description="Recommended items, best first"
    )


def load_recommender_if_needed() -> TagRecommender:
    """Load the recommender on first use and return the cached instance.

    Builds the tag index from ``config.TAGS_PATH`` if ``config.INDEX_DIR``
    does not hold one yet.

    Raises:
        IndexUnavailableError: If the index or ratings cannot be loaded.
    """
    global _recommender_cache

    if _recommender_cache is not None:
        return _recommender_cache["recommender"]

    try:
        logger.info(f"Loading recommender from {config.INDEX_DIR}")
        recommender = TagRecommender.from_paths(
            tags_path=config.TAGS_PATH,
            ratings_path=config.RATINGS_PATH,
            index_dir=config.INDEX_DIR,
            nnbrs=config.DEFAULT_NEIGHBORHOOD_SIZE,
        )
    except (TagRecError, OSError, ValueError) as e:
        logger.error(f"Failed to load recommender: {e}", exc_info=True)
        raise IndexUnavailableError(str(config.INDEX_DIR), e) from e

    _recommender_cache = {
        "recommender": recommender,
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }
    logger.info("Recommender loaded successfully")
    return recommender


def reset_recommender_cache() -> None:
    global _recommender_cache
    _recommender_cache = None


def get_cache_status() -> Dict[str, Any]:
    """Describe the cached recommender without loading it."""
    if _recommender_cache is None:
        return {
            "index_loaded": False,
            "timestamp_last_loaded": None,
            "num_items": 0,
            "num_users": 0,
            "num_documents": 0,
        }

    recommender = _recommender_cache["recommender"]
    return {
        "index_loaded": True,
        "timestamp_last_loaded": _recommender_cache["loaded_at"],
        "num_items": len(recommender.preferences.item_ids()),
        "num_users": len(recommender.preferences.user_ids()),
        "num_documents": recommender.index.num_documents,
    }


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: int,
    top_n: int = Query(config.DEFAULT_TOP_N, ge=0, description="Number of items"),
) -> RecommendationResponse:
    """Get item recommendations for a user.

    Example:
        GET /recommend/42?top_n=5
        Returns up to 5 unrated items for user 42, best predicted rating first.
    """
    recommender = load_recommender_if_needed()

    start_time = time.time()
    try:
        recommendations = recommender.recommend(user_id, top_n)
    except Exception as e:
        logger.error(
            f"Error generating recommendations for user {user_id}: {e}",
            exc_info=True,
        )
        raise RecommendationError(user_id, e) from e
    metrics_service.record("recommend", (time.time() - start_time) * 1000)

    return RecommendationResponse(
        user_id=user_id,
        recommendations=[
            ScoredItem(item_id=item_id, score=score) for item_id, score in recommendations
        ],
    )


@router.post("/reload")
def reload_recommender() -> Dict[str, str]:
    """Drop the cached recommender and load it again from disk.

    Raises:
        IndexUnavailableError: If the index or ratings cannot be loaded.
    """
    logger.info("Reloading recommender...")
    reset_recommender_cache()
    load_recommender_if_needed()
    return {"status": "Recommender reloaded successfully"}
