"""
Retrieval — vector index, similarity search, and result models.

This module wraps the vector database behind a clean interface so that
the generation layer never needs to know which DB is backing retrieval.

Public surface
--------------
- :class:`Retriever` — embed a question and return ranked chunks.
- :class:`VectorIndexBase` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorIndex` — default Chroma backend.
- :class:`RetrievalResult` — data model.
"""

from pdf_rag.retrieval.base import VectorIndexBase
from pdf_rag.retrieval.models import RetrievalResult
from pdf_rag.retrieval.retriever import Retriever

__all__ = [
    "ChromaVectorIndex",
    "RetrievalResult",
    "Retriever",
    "VectorIndexBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from pdf_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
