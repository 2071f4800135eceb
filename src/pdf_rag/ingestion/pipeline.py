"""Ingestion pipeline — load, chunk, embed and index one document."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from pdf_rag.errors import InvalidInputError
from pdf_rag.ingestion.chunker import split_pages
from pdf_rag.ingestion.loader import document_fingerprint, load_pdf
from pdf_rag.ingestion.models import IngestionReport, Page, VectorRecord

if TYPE_CHECKING:
    from pdf_rag.ingestion.embedder import Embedder
    from pdf_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)

Loader = Callable[[Path], list[Page]]


class IngestionPipeline:
    """Turn a PDF on disk into searchable vector records.

    Parameters
    ----------
    embedder:
        Embedder shared with the retriever.
    index:
        Vector-index backend receiving the records.
    collection_name:
        Target collection.
    chunk_size / chunk_overlap:
        Chunker window and overlap, in characters.
    loader:
        Callable returning the pages of a document; defaults to
        :func:`~pdf_rag.ingestion.loader.load_pdf`.
    replace_existing:
        Default re-ingestion policy.  When true, records previously stored
        for the same document are deleted before the new ones are written;
        otherwise re-ingesting appends duplicates.
    """

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndexBase,
        *,
        collection_name: str,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        loader: Loader = load_pdf,
        replace_existing: bool = False,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._loader = loader
        self.collection_name = collection_name
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.replace_existing = replace_existing

    def ingest(
        self,
        path: str | Path | None,
        *,
        source: str | None = None,
        replace: bool | None = None,
    ) -> IngestionReport:
        """Ingest the document at *path*.

        Every chunk is embedded before anything is written, and any
        failure propagates, so a returned report means the whole document
        is queryable.  A document without extractable text stores nothing
        and still succeeds.
        """
        if not path:
            raise InvalidInputError("No PDF path provided for ingestion")

        path = Path(path)
        source = source or path.name
        replace = self.replace_existing if replace is None else replace
        t0 = time.monotonic()

        document_id = document_fingerprint(path)
        pages = self._loader(path)
        chunks = split_pages(
            pages,
            self.chunk_size,
            self.chunk_overlap,
            document_id=document_id,
            source=source,
        )
        # whitespace-only windows carry nothing to embed
        chunks = [c for c in chunks if c.text.strip()]

        report = IngestionReport(
            document_id=document_id,
            source=source,
            collection=self.collection_name,
            pages=len(pages),
            chunks=len(chunks),
        )
        if not chunks:
            logger.warning("No extractable text in %s (%d pages); nothing indexed", source, len(pages))
            return report

        logger.info("Embedding %d chunks from %s (%d pages)", len(chunks), source, len(pages))
        vectors = self._embedder.embed_batch([c.text for c in chunks])
        records = [VectorRecord(chunk=c, embedding=v) for c, v in zip(chunks, vectors)]

        if replace:
            self._index.delete_document(self.collection_name, document_id)
        self._index.upsert(self.collection_name, records)

        logger.info(
            "Ingested %s → %d vectors in collection %r (%.1fs)",
            source,
            len(records),
            self.collection_name,
            time.monotonic() - t0,
        )
        return report
