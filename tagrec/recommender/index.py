"""Tag index building module.

This module turns raw ``item_id,tag`` rows into one text document per item
and persists the documents together with their term-frequency matrix. The
build is idempotent: when a complete index already exists at the target
directory it is reused as-is. Builds are written to a temporary sibling
directory and published with a single rename, so an interrupted build never
looks complete.
"""

import logging
import re
import shutil
import tempfile
from itertools import groupby
from operator import attrgetter
from pathlib import Path
from typing import Iterable, Iterator, List, NamedTuple, Tuple, Union

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix
from sklearn.feature_extraction.text import CountVectorizer

from tagrec.recommender.exceptions import BuildAborted, IndexIOError, ParseError
from tagrec.recommender.utils import check_index_exists, save_index_artifacts

# Configure module logger
logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_INTEGER = r"[+-]?\d+"
_ITEM_ID_MIN = int(np.iinfo(np.int64).min)
_ITEM_ID_MAX = int(np.iinfo(np.int64).max)

PathLike = Union[str, Path]


class TagRow(NamedTuple):
    """A single raw ``item_id,tag`` input row."""

    item_id: int
    tag: str


class ItemDocument(NamedTuple):
    """The normalized tag tokens of one item, in input order."""

    item_id: int
    tokens: Tuple[str, ...]

    @property
    def text(self) -> str:
        return " ".join(self.tokens)


def normalize_tag(tag: str) -> str:
    """Lower-case a tag and join multi-word tags into a single term.

    Example:
        >>> normalize_tag("  Dark  Comedy ")
        'dark_comedy'
    """
    return _WHITESPACE.sub("_", tag.strip().lower())


def load_tag_rows(tag_path: PathLike) -> List[TagRow]:
    """Read and validate a tag file.

    Each non-blank line must split on commas into exactly two fields: an
    integer item ID and a non-blank tag. Rows are returned in file order;
    grouping relies on rows of one item being contiguous.

    Args:
        tag_path: Path to the tag file.

    Returns:
        List of TagRow in file order.

    Raises:
        IndexIOError: If the file is missing or unreadable.
        ParseError: If a line is malformed. The error carries the 1-based
            line number and the raw line.
    """
    path = Path(tag_path)
    if not path.is_file():
        raise IndexIOError(f"Tag file not found: {tag_path}")

    logger.info(f"Loading tags from {tag_path}")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise IndexIOError(f"Cannot read tag file {tag_path}: {e}") from e

    lines = pd.Series(text.splitlines(), dtype=object)
    lines = lines[lines.str.strip() != ""]
    if lines.empty:
        logger.warning(f"Tag file {tag_path} contains no rows")
        return []

    fields = lines.str.split(",")

    field_counts = fields.str.len()
    if field_counts.ne(2).any():
        position = field_counts.ne(2).idxmax()
        raise ParseError(
            f"expected 2 fields (item_id,tag), found {field_counts[position]}",
            line_number=position + 1,
            line=lines[position],
        )

    item_ids = fields.str[0].str.strip()
    valid_ids = item_ids.str.fullmatch(_INTEGER)
    if not valid_ids.all():
        position = valid_ids.eq(False).idxmax()
        raise ParseError(
            f"item_id {item_ids[position]!r} is not an integer",
            line_number=position + 1,
            line=lines[position],
        )

    out_of_range = ~item_ids.map(lambda value: _is_int64(int(value))).astype(bool)
    if out_of_range.any():
        position = out_of_range.idxmax()
        raise ParseError(
            f"item_id {item_ids[position]!r} is outside the 64-bit integer range",
            line_number=position + 1,
            line=lines[position],
        )

    tags = fields.str[1]
    blank_tags = tags.str.strip() == ""
    if blank_tags.any():
        position = blank_tags.idxmax()
        raise ParseError("tag is blank", line_number=position + 1, line=lines[position])

    rows = [TagRow(int(item_id), tag) for item_id, tag in zip(item_ids, tags)]
    logger.info(f"Loaded {len(rows)} tag rows")
    return rows


def _is_int64(value: int) -> bool:
    return _ITEM_ID_MIN <= value <= _ITEM_ID_MAX


def _validated_rows(tag_rows: Iterable) -> Iterator[TagRow]:
    for position, row in enumerate(tag_rows, start=1):
        try:
            item_id, tag = row
        except (TypeError, ValueError) as e:
            raise ParseError(
                f"row {row!r} does not decompose into (item_id, tag)",
                line_number=position,
            ) from e

        if isinstance(item_id, (bool, np.bool_)) or not isinstance(
            item_id, (int, np.integer, str)
        ):
            raise ParseError(f"item_id {item_id!r} is not an integer", line_number=position)
        if isinstance(item_id, str):
            if re.fullmatch(_INTEGER, item_id.strip()) is None:
                raise ParseError(
                    f"item_id {item_id!r} is not an integer", line_number=position
                )
        if not isinstance(tag, str) or not tag.strip():
            raise ParseError(f"tag {tag!r} is blank or not text", line_number=position)
        if not _is_int64(int(item_id)):
            raise ParseError(
                f"item_id {item_id!r} is outside the 64-bit integer range",
                line_number=position,
            )

        yield TagRow(int(item_id), tag)


def group_documents(tag_rows: Iterable) -> List[ItemDocument]:
    """Group contiguous rows by item ID into one document per run.

    Rows of one item that are not contiguous produce separate documents.
    That is a known limitation of the input format and is only logged.

    Args:
        tag_rows: Iterable of (item_id, tag) pairs, grouped by item_id.

    Returns:
        List of ItemDocument in input order.

    Raises:
        ParseError: If a row is not an (item_id, tag) pair.
    """
    documents = []
    seen = set()
    for item_id, group in groupby(_validated_rows(tag_rows), key=attrgetter("item_id")):
        if item_id in seen:
            logger.warning(
                f"Item {item_id} appears in non-contiguous runs; "
                "indexing the later run as a separate document"
            )
        seen.add(item_id)
        documents.append(
            ItemDocument(item_id, tuple(normalize_tag(row.tag) for row in group))
        )
    return documents


def compute_term_frequencies(
    documents: List[ItemDocument],
) -> Tuple[csr_matrix, List[str]]:
    """Count term occurrences for each document.

    Args:
        documents: Documents to count, one matrix row each.

    Returns:
        A tuple containing:
            - CSR matrix of shape (n_documents, n_terms) of term counts
            - List of terms, sorted, one per matrix column
    """
    if not documents:
        return csr_matrix((0, 0), dtype=np.int64), []

    # Tokens are already normalized and never contain whitespace
    vectorizer = CountVectorizer(
        tokenizer=str.split,
        token_pattern=None,
        lowercase=False,
    )
    term_frequencies = vectorizer.fit_transform([doc.text for doc in documents])
    vocabulary = vectorizer.get_feature_names_out().tolist()
    return term_frequencies.tocsr(), vocabulary


def build_index(tag_rows: Iterable, index_dir: PathLike) -> bool:
    """Build the tag index unless a complete one already exists.

    Args:
        tag_rows: Iterable of (item_id, tag) pairs grouped by item_id.
        index_dir: Directory the index is published to.

    Returns:
        True if an index was built, False if an existing one was reused.

    Raises:
        ParseError: If a row is malformed. Nothing is written.
        IndexIOError: If the target exists but is not a complete index, or
            if the index files cannot be written.
        BuildAborted: If the finished build could not be published.
    """
    target = Path(index_dir)

    if check_index_exists(target):
        logger.info(f"Reusing existing index at {target}")
        return False
    if target.exists():
        raise IndexIOError(
            f"{target} exists but is not a complete index; remove it to rebuild"
        )

    logger.info("=" * 60)
    logger.info(f"Building tag index at {target}")
    logger.info("=" * 60)

    documents = group_documents(tag_rows)
    term_frequencies, vocabulary = compute_term_frequencies(documents)
    logger.info(f"Grouped {len(documents)} documents with {len(vocabulary)} terms")

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(
            tempfile.mkdtemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        )
    except OSError as e:
        raise IndexIOError(f"Cannot create index location {target}: {e}") from e

    try:
        save_index_artifacts(
            item_ids=[doc.item_id for doc in documents],
            texts=[doc.text for doc in documents],
            term_frequencies=term_frequencies,
            vocabulary=vocabulary,
            output_dir=staging,
        )
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise IndexIOError(f"Cannot write index files to {staging}: {e}") from e
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    try:
        staging.rename(target)
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise BuildAborted(f"Could not publish index to {target}: {e}") from e

    logger.info(f"Tag index published to {target}")
    return True


def build_or_reuse_index(tag_source: PathLike, index_dir: PathLike) -> bool:
    """Build the index from a tag file, or reuse the one already at index_dir.

    The tag file is not read when a complete index already exists, so an
    index built from an older tag file is reused without notice.

    Args:
        tag_source: Path to the ``item_id,tag`` file.
        index_dir: Directory the index lives in.

    Returns:
        True if an index was built, False if an existing one was reused.

    Raises:
        ParseError: If the tag file contains a malformed row.
        IndexIOError: If the tag file is unreadable or the index can't be written.
        BuildAborted: If the finished build could not be published.
    """
    if check_index_exists(index_dir):
        logger.info(f"Index already built at {index_dir}, skipping build")
        return False

    try:
        return build_index(load_tag_rows(tag_source), index_dir)
    except Exception as e:
        logger.error(f"Index build failed: {e}", exc_info=True)
        raise
