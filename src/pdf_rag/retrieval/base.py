"""Abstract base class for vector-index backends.

Adding a new backend (Qdrant, Pinecone, Weaviate …) only requires
subclassing :class:`VectorIndexBase` and implementing the abstract
methods.  The rest of the stack is backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pdf_rag.errors import DimensionMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pdf_rag.ingestion.models import VectorRecord
    from pdf_rag.retrieval.models import RetrievalResult


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    A single instance serves every collection; the collection (namespace)
    is passed to each call.  Collections are created lazily by the first
    :meth:`upsert`, which also fixes their dimensionality.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, collection_name: str, records: Sequence[VectorRecord]) -> None:
        """Write every record in *records* to *collection_name*.

        Records are appended; writing the same chunk twice stores two
        entries.  Raises :class:`~pdf_rag.errors.DimensionMismatchError`
        when the vectors do not match the collection's dimensionality.
        """
        ...

    @abstractmethod
    def search(
        self,
        collection_name: str,
        query_vector: list[float],
        k: int = 5,
    ) -> list[RetrievalResult]:
        """Return up to *k* records nearest to *query_vector*, best first.

        A collection that was never created yields ``[]``.
        """
        ...

    @abstractmethod
    def delete_namespace(self, collection_name: str) -> None:
        """Remove every record of *collection_name*; no-op when absent."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete_document(self, collection_name: str, document_id: str) -> None:
        """Delete one document's records.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete_document")

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def batch_dimension(collection_name: str, records: Sequence[VectorRecord]) -> int:
        """Return the shared dimensionality of *records*.

        Raises :class:`~pdf_rag.errors.DimensionMismatchError` for a batch
        mixing vector sizes, before anything is written.
        """
        expected = records[0].dimension
        for record in records[1:]:
            if record.dimension != expected:
                raise DimensionMismatchError(collection_name, expected, record.dimension)
        return expected
