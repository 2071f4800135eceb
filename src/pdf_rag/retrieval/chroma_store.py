"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NoReturn

import chromadb

from pdf_rag.config import settings
from pdf_rag.errors import DimensionMismatchError, classify_service_error
from pdf_rag.retrieval.base import VectorIndexBase
from pdf_rag.retrieval.models import RetrievalResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pdf_rag.ingestion.models import VectorRecord

logger = logging.getLogger(__name__)

_DIMENSION_KEY = "dimension"


def _is_missing_collection(exc: Exception) -> bool:
    """Chroma signals an unknown collection differently across releases."""
    if type(exc).__name__ in {"NotFoundError", "InvalidCollectionException"}:
        return True
    return "does not exist" in str(exc)


def _flatten_metadata(meta: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {k: v for k, v in meta.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Parameters
    ----------
    client:
        A ready chroma client.  When *None*, a ``chromadb.HttpClient`` is
        opened against *host* / *port*.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    upsert_batch_size:
        Max records per ``add`` call.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        upsert_batch_size: int = settings.upsert_batch_size,
    ) -> None:
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self.upsert_batch_size = upsert_batch_size

    # -- VectorIndexBase overrides --------------------------------------------

    def upsert(self, collection_name: str, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        dim = self.batch_dimension(collection_name, records)

        collection = self._get_collection(collection_name)
        if collection is None:
            collection = self._create_collection(collection_name, dim)
        expected = (collection.metadata or {}).get(_DIMENSION_KEY)
        if expected is not None and int(expected) != dim:
            raise DimensionMismatchError(collection_name, int(expected), dim)

        batches = 0
        for start in range(0, len(records), self.upsert_batch_size):
            batch = records[start : start + self.upsert_batch_size]
            try:
                collection.add(
                    ids=[r.record_id for r in batch],
                    embeddings=[r.embedding for r in batch],
                    documents=[r.text for r in batch],
                    metadatas=[_flatten_metadata(r.metadata) for r in batch],
                )
            except Exception as exc:
                self._reraise(exc)
            batches += 1
        logger.info(
            "Indexed %d vectors → collection %r (%d batches)", len(records), collection_name, batches
        )

    def search(
        self,
        collection_name: str,
        query_vector: list[float],
        k: int = 5,
    ) -> list[RetrievalResult]:
        collection = self._get_collection(collection_name)
        if collection is None:
            logger.info("Collection %r does not exist yet; returning no results", collection_name)
            return []

        try:
            if collection.count() == 0:
                return []
            results = collection.query(
                query_embeddings=[query_vector],
                n_results=k,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            self._reraise(exc)

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[RetrievalResult] = []
        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            # cosine space: distance = 1 - cosine similarity
            hits.append(
                RetrievalResult(
                    id=doc_id,
                    content=content or "",
                    score=1.0 - float(dist),
                    metadata=dict(meta or {}),
                )
            )
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    def delete_namespace(self, collection_name: str) -> None:
        try:
            self._client.delete_collection(name=collection_name)
        except Exception as exc:
            if _is_missing_collection(exc):
                logger.info("Collection %r already absent", collection_name)
                return
            self._reraise(exc)
        logger.info("Deleted collection %r", collection_name)

    def delete_document(self, collection_name: str, document_id: str) -> None:
        collection = self._get_collection(collection_name)
        if collection is None:
            return
        try:
            collection.delete(where={"document_id": document_id})
        except Exception as exc:
            self._reraise(exc)
        logger.info("Deleted records of document %s from %r", document_id, collection_name)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _get_collection(self, collection_name: str) -> Any:
        try:
            return self._client.get_collection(name=collection_name)
        except Exception as exc:
            if _is_missing_collection(exc):
                return None
            self._reraise(exc)

    def _create_collection(self, collection_name: str, dim: int) -> Any:
        try:
            collection = self._client.create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine", _DIMENSION_KEY: dim},
            )
        except Exception as exc:
            # lost a creation race with a concurrent ingestion
            if "already exists" in str(exc):
                return self._client.get_collection(name=collection_name)
            self._reraise(exc)
        logger.info("Created collection %r (dim=%d)", collection_name, dim)
        return collection

    @staticmethod
    def _reraise(exc: Exception) -> NoReturn:
        error = classify_service_error(exc, service="vector-index")
        if error is None:
            raise exc
        raise error from exc
