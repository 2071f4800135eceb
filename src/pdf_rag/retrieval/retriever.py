"""Semantic retriever — embed the question, search the index, keep the top-k.

Usage::

    from pdf_rag.retrieval.retriever import Retriever

    retriever = Retriever(embedder, index, collection_name="ai_pdf_vectors")
    results   = retriever.retrieve("What is the capital of France?", k=5)
    for r in results:
        print(r.short_ref(), r.score, r.content[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_rag.errors import InvalidInputError

if TYPE_CHECKING:
    from pdf_rag.ingestion.embedder import Embedder
    from pdf_rag.retrieval.base import VectorIndexBase
    from pdf_rag.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


class Retriever:
    """High-level retriever over any :class:`VectorIndexBase`.

    Parameters
    ----------
    embedder:
        Embedder shared with the ingestion pipeline.
    index:
        A concrete vector-index backend.
    collection_name:
        Collection searched by :meth:`retrieve`.
    default_k:
        Default number of results returned by :meth:`retrieve`.
    score_threshold:
        Minimum similarity score; results below this are discarded.  ``None``
        (the default) keeps every hit, since cosine similarity can be negative.
    """

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndexBase,
        *,
        collection_name: str,
        default_k: int = 5,
        score_threshold: float | None = None,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self.collection_name = collection_name
        self.default_k = default_k
        self.score_threshold = score_threshold

    def retrieve(self, question: str, *, k: int | None = None) -> list[RetrievalResult]:
        """Return at most *k* chunks ranked by descending similarity.

        An empty list means nothing relevant is stored (including the case
        where no document was ever ingested); callers branch on it instead
        of generating without context.
        """
        if not question or not question.strip():
            raise InvalidInputError("Question is required")

        if k is None:
            k = self.default_k
        if k < 1:
            raise InvalidInputError("k must be at least 1")
        query_vector = self._embedder.embed(question)
        hits = self._index.search(self.collection_name, query_vector, k)

        results = hits
        if self.score_threshold is not None:
            results = [h for h in hits if h.score >= self.score_threshold]
        results = results[:k]
        logger.debug(
            "Retrieved %d/%d chunks from %r (k=%d)", len(results), len(hits), self.collection_name, k
        )
        return results
