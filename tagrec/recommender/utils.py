"""Utility functions for tag index persistence.

This module provides helpers to save, locate and load the on-disk artifacts
that make up a tag index: the per-item documents, the term-frequency matrix
and its vocabulary, and a manifest written last to mark the index complete.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import joblib
import numpy as np
from scipy import sparse
from scipy.sparse import csr_matrix

from tagrec.recommender.exceptions import IndexNotFoundError

# Configure module logger
logger = logging.getLogger(__name__)

# Index artifact filenames
DOCUMENTS_FILENAME = "documents.joblib"
TERM_FREQUENCIES_FILENAME = "term_frequencies.npz"
VOCABULARY_FILENAME = "vocabulary.joblib"
MANIFEST_FILENAME = "manifest.joblib"

INDEX_FORMAT_VERSION = 1

PathLike = Union[str, Path]


def save_index_artifacts(
    item_ids: Sequence[int],
    texts: Sequence[str],
    term_frequencies: csr_matrix,
    vocabulary: Sequence[str],
    output_dir: PathLike,
) -> None:
    """Save index artifacts to a directory.

    The manifest is written after every other artifact, so a directory
    holding a manifest always holds a complete index.

    Args:
        item_ids: Item ID of each document, in row order.
        texts: Space-joined normalized tokens of each document, in row order.
        term_frequencies: Sparse matrix of shape (n_documents, n_terms) with
            the frequency of each term in each document.
        vocabulary: Term for each matrix column.
        output_dir: Directory where artifacts will be saved. Must exist.

    Raises:
        ValueError: If the inputs disagree on the number of documents or terms.
        OSError: If unable to write the files.
    """
    n_documents, n_terms = term_frequencies.shape
    if len(item_ids) != n_documents or len(texts) != n_documents:
        raise ValueError(
            f"Document count mismatch: {len(item_ids)} item ids, "
            f"{len(texts)} texts, {n_documents} matrix rows"
        )
    if len(vocabulary) != n_terms:
        raise ValueError(
            f"Vocabulary size {len(vocabulary)} does not match {n_terms} matrix columns"
        )

    documents_path, tf_path, vocabulary_path, manifest_path = get_index_paths(output_dir)

    joblib.dump(
        {
            "item_ids": np.asarray(item_ids, dtype=np.int64),
            "texts": list(texts),
        },
        documents_path,
    )
    sparse.save_npz(tf_path, term_frequencies.tocsr(), compressed=True)
    joblib.dump(list(vocabulary), vocabulary_path)

    manifest = {
        "format_version": INDEX_FORMAT_VERSION,
        "num_documents": n_documents,
        "num_terms": n_terms,
        "built_at": datetime.now(timezone.utc).isoformat(),
    }
    joblib.dump(manifest, manifest_path)

    logger.info(
        f"Saved index artifacts to {output_dir} "
        f"({n_documents} documents, {n_terms} terms)"
    )


def load_index_artifacts(
    index_dir: PathLike,
) -> Tuple[np.ndarray, List[str], csr_matrix, List[str], Dict[str, Any]]:
    """Load index artifacts from disk.

    Args:
        index_dir: Directory where the index is stored.

    Returns:
        A tuple containing:
            - Array of item IDs, one per document row
            - List of space-joined document texts
            - CSR term-frequency matrix of shape (n_documents, n_terms)
            - List of terms, one per matrix column
            - Manifest dictionary

    Raises:
        IndexNotFoundError: If the directory does not hold a complete index.
        ValueError: If the index was written in an unsupported format.
    """
    if not check_index_exists(index_dir):
        raise IndexNotFoundError(str(index_dir))

    logger.info(f"Loading index artifacts from {index_dir}")

    documents_path, tf_path, vocabulary_path, manifest_path = get_index_paths(index_dir)

    manifest = joblib.load(manifest_path)
    version = manifest.get("format_version")
    if version != INDEX_FORMAT_VERSION:
        raise ValueError(
            f"Unsupported index format version {version} in {index_dir}"
        )

    documents = joblib.load(documents_path)
    term_frequencies = sparse.load_npz(tf_path).tocsr()
    vocabulary = joblib.load(vocabulary_path)

    logger.info(f"Number of documents: {term_frequencies.shape[0]}")
    logger.info(f"Number of terms: {len(vocabulary)}")

    return (
        documents["item_ids"],
        documents["texts"],
        term_frequencies,
        vocabulary,
        manifest,
    )


def get_index_paths(index_dir: PathLike) -> Tuple[Path, Path, Path, Path]:
    """Get file paths for index artifacts without loading them.

    Args:
        index_dir: Directory where the index is stored.

    Returns:
        Paths of the documents, term-frequency, vocabulary and manifest files.
    """
    index_path = Path(index_dir)
    return (
        index_path / DOCUMENTS_FILENAME,
        index_path / TERM_FREQUENCIES_FILENAME,
        index_path / VOCABULARY_FILENAME,
        index_path / MANIFEST_FILENAME,
    )


def check_index_exists(index_dir: PathLike) -> bool:
    """Check if all index artifacts exist.

    Staleness against a changed tag source is not detected.

    Args:
        index_dir: Directory where the index should be stored.

    Returns:
        True if every artifact file exists, False otherwise.
    """
    return all(path.is_file() for path in get_index_paths(index_dir))
