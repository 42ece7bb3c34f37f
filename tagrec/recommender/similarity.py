"""More-like-this similarity queries over a loaded tag index.

Documents are weighted per term as ``tf(t, d) * idf(t)`` with
``idf(t) = ln(1 + N / df(t))``. A query is a mapping of terms to weights and
a candidate document scores the sum, over shared terms, of the query weight
times the document weight. Every term participates; there is no minimum term
or document frequency cut-off.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix

from tagrec.recommender.utils import load_index_artifacts

# Configure module logger
logger = logging.getLogger(__name__)


class SimilarityIndex:
    """Read-only query engine over a tag index.

    All state is computed in the constructor and never mutated afterwards,
    so one instance can serve concurrent queries without locking.
    """

    def __init__(
        self,
        item_ids: Sequence[int],
        texts: Sequence[str],
        term_frequencies: csr_matrix,
        vocabulary: Sequence[str],
    ):
        """Initialize the index.

        Args:
            item_ids: Item ID of each document row.
            texts: Space-joined normalized tokens of each document row.
            term_frequencies: Matrix of shape (n_documents, n_terms).
            vocabulary: Term of each matrix column.
        """
        tf = csr_matrix(term_frequencies).astype(np.float64)
        tf.sum_duplicates()
        tf.eliminate_zeros()
        tf.sort_indices()
        n_documents, n_terms = tf.shape

        if len(item_ids) != n_documents or len(texts) != n_documents:
            raise ValueError(
                f"Expected {n_documents} item ids and texts, "
                f"got {len(item_ids)} and {len(texts)}"
            )
        if len(vocabulary) != n_terms:
            raise ValueError(f"Expected {n_terms} vocabulary terms, got {len(vocabulary)}")

        self._item_ids = np.asarray(item_ids, dtype=np.int64)
        self._tokens = [tuple(text.split()) for text in texts]
        self._vocabulary = list(vocabulary)
        self._term_to_col = {term: col for col, term in enumerate(self._vocabulary)}
        self._tf = tf

        self._document_frequency = np.bincount(tf.indices, minlength=n_terms)
        self._idf = np.zeros(n_terms, dtype=np.float64)
        present = self._document_frequency > 0
        self._idf[present] = np.log1p(n_documents / self._document_frequency[present])

        if n_terms:
            self._weights = csr_matrix(tf.multiply(self._idf[np.newaxis, :]))
            self._weights.sort_indices()
        else:
            self._weights = csr_matrix((n_documents, 0), dtype=np.float64)

        # Later rows win when an item was indexed more than once
        self._row_by_item = {int(item_id): row for row, item_id in enumerate(self._item_ids)}
        self._current_rows = np.zeros(n_documents, dtype=bool)
        self._current_rows[np.fromiter(self._row_by_item.values(), dtype=np.intp)] = True

        read_only = (self._item_ids, self._document_frequency, self._idf, self._current_rows)
        for array in read_only:
            array.setflags(write=False)

        logger.info(
            f"Initialized SimilarityIndex: {n_documents} documents, {n_terms} terms"
        )

    @classmethod
    def load(cls, index_dir: Union[str, Path]) -> "SimilarityIndex":
        """Open a persisted index.

        Raises:
            IndexNotFoundError: If index_dir does not hold a complete index.
        """
        item_ids, texts, term_frequencies, vocabulary, _ = load_index_artifacts(index_dir)
        return cls(item_ids, texts, term_frequencies, vocabulary)

    @property
    def num_documents(self) -> int:
        return self._tf.shape[0]

    @property
    def num_terms(self) -> int:
        return len(self._vocabulary)

    @property
    def item_ids(self) -> List[int]:
        """Item IDs in document order."""
        return self._item_ids.tolist()

    def __len__(self) -> int:
        return self.num_documents

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._row_by_item

    def document(self, item_id: int) -> Optional[Tuple[str, ...]]:
        """Return the normalized tokens of an item, or None if it has no document."""
        row = self._row_by_item.get(item_id)
        if row is None:
            return None
        return self._tokens[row]

    def document_frequency(self, term: str) -> int:
        col = self._term_to_col.get(term)
        return 0 if col is None else int(self._document_frequency[col])

    def idf(self, term: str) -> float:
        col = self._term_to_col.get(term)
        return 0.0 if col is None else float(self._idf[col])

    def postings(self, term: str) -> List[Tuple[int, int]]:
        """Return (item_id, term_frequency) for every item whose document contains term."""
        col = self._term_to_col.get(term)
        if col is None:
            return []
        column = self._tf[:, col].tocoo()
        order = np.argsort(column.row, kind="stable")
        return [
            (int(self._item_ids[row]), int(freq))
            for row, freq in zip(column.row[order], column.data[order])
            if self._current_rows[row]
        ]

    def term_weights(self, item_id: int) -> Dict[str, float]:
        """Return the tf-idf weight of every term in an item's document.

        Returns an empty dict for items without a document.
        """
        row = self._row_by_item.get(item_id)
        if row is None:
            return {}
        start, end = self._weights.indptr[row], self._weights.indptr[row + 1]
        return {
            self._vocabulary[col]: float(weight)
            for col, weight in zip(
                self._weights.indices[start:end], self._weights.data[start:end]
            )
        }

    def query(
        self,
        weighted_terms: Mapping[str, float],
        limit: int,
    ) -> List[Tuple[int, float]]:
        """Find the documents that best match a weighted set of terms.

        Only documents sharing at least one query term are candidates, and
        each item ID is scored once, on the document its lookups resolve to.
        Terms missing from the vocabulary are ignored.

        Args:
            weighted_terms: Mapping of term to query weight.
            limit: Maximum number of results.

        Returns:
            List of (item_id, score), by descending score with ties broken by
            ascending item_id. Empty when there are no terms or limit <= 0.
        """
        if limit <= 0 or not weighted_terms:
            return []

        query_vector = np.zeros(self.num_terms, dtype=np.float64)
        query_cols = []
        for term, weight in weighted_terms.items():
            col = self._term_to_col.get(term)
            if col is None:
                continue
            query_vector[col] = float(weight)
            query_cols.append(col)

        if not query_cols:
            return []

        matched = np.asarray(self._tf[:, sorted(query_cols)].getnnz(axis=1)) > 0
        candidates = np.flatnonzero(matched & self._current_rows)
        if candidates.size == 0:
            return []

        scores = self._weights[candidates] @ query_vector
        order = np.lexsort((self._item_ids[candidates], -scores))[:limit]

        return [
            (int(self._item_ids[candidates[i]]), float(scores[i]))
            for i in order
        ]
