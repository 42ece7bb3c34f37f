"""Custom exceptions for the TagRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class TagRecAPIException(Exception):
    """Base exception for TagRec API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class IndexUnavailableError(TagRecAPIException):
    """Raised when the tag index or the ratings cannot be loaded."""

    def __init__(self, index_dir: str, error: Exception):
        message = f"Recommender unavailable for index '{index_dir}': {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "index_dir": index_dir,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class ItemNotFoundError(TagRecAPIException):
    """Raised when a strict lookup asks for an item without tags."""

    def __init__(self, item_id: int, details: Optional[Dict[str, Any]] = None):
        message = f"Item {item_id} has no tags in the index."
        super().__init__(
            message=message,
            status_code=404,
            details=details or {"item_id": item_id},
        )


class RecommendationError(TagRecAPIException):
    """Raised when recommendation generation fails."""

    def __init__(self, user_id: int, error: Exception):
        message = f"Failed to generate recommendations for user {user_id}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "user_id": user_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
