"""Exception types raised by the tag index and recommender.

Build-time failures derive from BuildError so callers can catch the whole
family with one clause. Query-time lookups never raise for unknown items;
they return empty neighborhoods instead.
"""

from typing import Optional


class TagRecError(Exception):
    """Base exception for TagRec errors."""


class BuildError(TagRecError):
    """Base exception for failures while building the tag index."""


class ParseError(BuildError, ValueError):
    """Raised when a tag row does not decompose into (item_id, tag)."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable description of the problem.
            line_number: 1-based line number in the tag source, if known.
            line: The offending raw row, if known.
        """
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class IndexIOError(BuildError, OSError):
    """Raised when the tag source is unreadable or the index can't be written."""


class BuildAborted(BuildError):
    """Raised when a finished build could not be published.

    No artifact is left at the target location, so a retry starts clean.
    """


class IndexNotFoundError(TagRecError, FileNotFoundError):
    """Raised when opening a directory that does not hold a complete index."""

    def __init__(self, index_dir: str):
        super().__init__(
            f"No valid tag index at '{index_dir}'. Build the index first."
        )
        self.index_dir = index_dir
