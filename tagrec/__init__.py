"""TagRec: item-item recommendations from user ratings and item tags.

This package predicts ratings and recommends items by weighting a user's
known ratings with the tag similarity between items.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Tag index, similarity queries, prediction and ranking
"""

__version__ = "0.1.0"
