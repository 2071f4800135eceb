"""Unit tests for the ingestion pipeline and the PDF loader wrapper."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.documents import Document

from conftest import COLLECTION, FakeStatusError, HashingEmbeddings, InMemoryVectorIndex, make_loader
from pdf_rag.errors import DocumentLoadError, InvalidInputError, RateLimitedError, TransientServiceError
from pdf_rag.ingestion.embedder import Embedder
from pdf_rag.ingestion.loader import document_fingerprint, load_pdf
from pdf_rag.ingestion.pipeline import IngestionPipeline

PAGES = (
    "Chapter one introduces the topic. " * 10,
    "The capital of France is Paris. " * 3,
    "Appendix with references and acknowledgements.",
)


def _pipeline(embedder: Embedder, index, loader=None, **kwargs) -> IngestionPipeline:
    return IngestionPipeline(
        embedder,
        index,
        collection_name=COLLECTION,
        chunk_size=kwargs.pop("chunk_size", 120),
        chunk_overlap=kwargs.pop("chunk_overlap", 20),
        loader=loader or make_loader(*PAGES),
        **kwargs,
    )


class TestIngestionPipeline:
    def test_ingest_stores_every_chunk_in_order(
        self, embedder: Embedder, index: InMemoryVectorIndex, pdf_path: Path
    ) -> None:
        report = _pipeline(embedder, index).ingest(pdf_path)

        stored = index.collections[COLLECTION]
        assert report.chunks == len(stored) > 3
        assert report.pages == 3
        assert report.source == "upload.pdf"
        assert report.collection == COLLECTION
        assert [r.chunk.chunk_index for r in stored] == list(range(len(stored)))
        assert [r.chunk.page for r in stored] == sorted(r.chunk.page for r in stored)
        assert index.upsert_calls == 1

    def test_embeddings_batched_before_single_write(
        self, embeddings: HashingEmbeddings, index: InMemoryVectorIndex, pdf_path: Path
    ) -> None:
        embedder = Embedder(embeddings, batch_size=2)
        report = _pipeline(embedder, index).ingest(pdf_path)
        assert sum(len(batch) for batch in embeddings.document_calls) == report.chunks
        assert index.upsert_calls == 1

    def test_document_id_is_content_hash(self, embedder: Embedder, index: InMemoryVectorIndex, pdf_path: Path) -> None:
        report = _pipeline(embedder, index).ingest(pdf_path, source="original-name.pdf")
        assert report.document_id == document_fingerprint(pdf_path)
        assert {r.chunk.source for r in index.collections[COLLECTION]} == {"original-name.pdf"}

    @pytest.mark.parametrize("path", [None, ""])
    def test_missing_path_rejected(self, embedder: Embedder, index: InMemoryVectorIndex, path) -> None:
        with pytest.raises(InvalidInputError):
            _pipeline(embedder, index).ingest(path)

    def test_unreadable_path(self, embedder: Embedder, index: InMemoryVectorIndex, tmp_path: Path) -> None:
        with pytest.raises(DocumentLoadError):
            _pipeline(embedder, index).ingest(tmp_path / "missing.pdf")

    def test_empty_document_stores_nothing(
        self, embedder: Embedder, index: InMemoryVectorIndex, pdf_path: Path
    ) -> None:
        report = _pipeline(embedder, index, loader=make_loader("", "   ")).ingest(pdf_path)
        assert report.chunks == 0
        assert report.pages == 2
        assert index.count() == 0
        assert index.upsert_calls == 0

    def test_whitespace_windows_are_not_embedded(
        self, embeddings: HashingEmbeddings, index: InMemoryVectorIndex, pdf_path: Path
    ) -> None:
        embedder = Embedder(embeddings, batch_size=4)
        loader = make_loader("Opening words." + " " * 400 + "Closing words.")
        report = _pipeline(embedder, index, loader=loader, chunk_size=100, chunk_overlap=10).ingest(pdf_path)

        stored = index.collections[COLLECTION]
        assert report.chunks == len(stored) == 2
        assert all(r.chunk.text.strip() for r in stored)
        assert all(text.strip() for batch in embeddings.document_calls for text in batch)

    def test_reingest_appends_duplicates_by_default(
        self, embedder: Embedder, index: InMemoryVectorIndex, pdf_path: Path
    ) -> None:
        pipeline = _pipeline(embedder, index)
        first = pipeline.ingest(pdf_path)
        pipeline.ingest(pdf_path)
        assert index.count() == 2 * first.chunks

    def test_reingest_with_replace(self, embedder: Embedder, index: InMemoryVectorIndex, pdf_path: Path) -> None:
        pipeline = _pipeline(embedder, index, replace_existing=True)
        first = pipeline.ingest(pdf_path)
        pipeline.ingest(pdf_path)
        assert index.count() == first.chunks
        # per-call override
        pipeline.ingest(pdf_path, replace=False)
        assert index.count() == 2 * first.chunks

    def test_embedding_failure_writes_nothing(self, index: InMemoryVectorIndex, pdf_path: Path) -> None:
        backend = MagicMock()
        backend.embed_documents.side_effect = [[[1.0, 0.0]] * 2, FakeStatusError("Too many requests", 429)]
        embedder = Embedder(backend, batch_size=2)

        with pytest.raises(RateLimitedError):
            _pipeline(embedder, index).ingest(pdf_path)
        assert index.count() == 0

    def test_index_failure_propagates(self, embedder: Embedder, pdf_path: Path) -> None:
        index = MagicMock()
        index.upsert.side_effect = TransientServiceError("chroma unavailable", service="vector-index")
        with pytest.raises(TransientServiceError):
            _pipeline(embedder, index).ingest(pdf_path)


class TestLoader:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentLoadError):
            load_pdf(tmp_path / "nope.pdf")

    def test_pages_numbered_from_one(self, pdf_path: Path) -> None:
        docs = [
            Document(page_content="first", metadata={"page": 0}),
            Document(page_content="second", metadata={"page": 1}),
        ]
        with patch("pdf_rag.ingestion.loader.PyPDFLoader") as loader_cls:
            loader_cls.return_value.load.return_value = docs
            pages = load_pdf(pdf_path)
        assert [(p.number, p.text) for p in pages] == [(1, "first"), (2, "second")]

    def test_parse_failure_is_load_error(self, pdf_path: Path) -> None:
        with patch("pdf_rag.ingestion.loader.PyPDFLoader") as loader_cls:
            loader_cls.return_value.load.side_effect = RuntimeError("EOF marker not found")
            with pytest.raises(DocumentLoadError):
                load_pdf(pdf_path)

    def test_fingerprint_stable(self, pdf_path: Path, tmp_path: Path) -> None:
        copy = tmp_path / "copy.pdf"
        copy.write_bytes(pdf_path.read_bytes())
        assert document_fingerprint(pdf_path) == document_fingerprint(copy)
        assert len(document_fingerprint(pdf_path)) == 16
