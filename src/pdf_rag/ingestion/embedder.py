"""Embedding of chunk and query text through a LangChain ``Embeddings`` backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_huggingface import HuggingFaceEmbeddings

from pdf_rag.config import settings
from pdf_rag.errors import EmbeddingError, InvalidInputError, classify_service_error

if TYPE_CHECKING:
    from collections.abc import Sequence

    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(model_name: str | None = None) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    return HuggingFaceEmbeddings(
        model_name=model_name or settings.embedding_model,
        encode_kwargs={"normalize_embeddings": True},
    )


class Embedder:
    """Turn text into fixed-dimension vectors.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.  When *None*, the
        HuggingFace model from the global settings is loaded.
    batch_size:
        Number of texts sent per ``embed_documents`` call.

    Backend failures are translated with
    :func:`~pdf_rag.errors.classify_service_error` and never retried here.
    """

    def __init__(self, embeddings: Embeddings | None = None, *, batch_size: int | None = None) -> None:
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.batch_size = batch_size or settings.embedding_batch_size

    def embed(self, text: str) -> list[float]:
        """Embed a single query string."""
        _require_text(text)
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            error = classify_service_error(exc, service="embedding")
            if error is None:
                raise
            raise error from exc
        return list(vector)

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts* in order; the result has one vector per input."""
        for text in texts:
            _require_text(text)

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            try:
                result = self._embeddings.embed_documents(batch)
            except Exception as exc:
                error = classify_service_error(exc, service="embedding")
                if error is None:
                    raise
                raise error from exc
            if len(result) != len(batch):
                raise EmbeddingError(
                    f"Embedding backend returned {len(result)} vectors for {len(batch)} texts"
                )
            vectors.extend(list(v) for v in result)
            logger.debug("  embedded %d / %d", len(vectors), len(texts))
        return vectors


def _require_text(text: str) -> None:
    if not text or not text.strip():
        raise InvalidInputError("Cannot embed empty text")
