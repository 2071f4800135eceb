"""Shared pytest configuration and fixtures.

The fakes below let every flow run without Chroma, HuggingFace or OpenAI:

- :class:`HashingEmbeddings` — deterministic bag-of-words vectors.
- :class:`InMemoryVectorIndex` — cosine search over a dict of collections.
- :class:`ScriptedChatModel` — raises or returns canned replies in order.
"""

from __future__ import annotations

import math
import re
import zlib
from collections.abc import Sequence
from typing import Any

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from pdf_rag.errors import DimensionMismatchError
from pdf_rag.generation.generator import AnswerGenerator
from pdf_rag.generation.retry import RetryPolicy
from pdf_rag.ingestion.embedder import Embedder
from pdf_rag.ingestion.models import Page, VectorRecord
from pdf_rag.ingestion.pipeline import IngestionPipeline
from pdf_rag.retrieval.base import VectorIndexBase
from pdf_rag.retrieval.models import RetrievalResult
from pdf_rag.retrieval.retriever import Retriever
from pdf_rag.service import RagService

COLLECTION = "test-collection"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class HashingEmbeddings(Embeddings):
    """Bag-of-words embedding hashed into *dim* buckets, L2-normalised."""

    def __init__(self, dim: int = 256) -> None:
        self.dim = dim
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            vec[zlib.crc32(token.encode()) % self.dim] += 1.0
        norm = math.sqrt(sum(v * v for v in vec)) or 1.0
        return [v / norm for v in vec]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)


class InMemoryVectorIndex(VectorIndexBase):
    """Dict-backed index with cosine similarity and lazy collections."""

    def __init__(self) -> None:
        self.collections: dict[str, list[VectorRecord]] = {}
        self.dimensions: dict[str, int] = {}
        self.upsert_calls = 0

    def upsert(self, collection_name: str, records: Sequence[VectorRecord]) -> None:
        if not records:
            return
        dim = self.batch_dimension(collection_name, records)
        expected = self.dimensions.setdefault(collection_name, dim)
        if expected != dim:
            raise DimensionMismatchError(collection_name, expected, dim)
        self.upsert_calls += 1
        self.collections.setdefault(collection_name, []).extend(records)

    def search(self, collection_name: str, query_vector: list[float], k: int = 5) -> list[RetrievalResult]:
        records = self.collections.get(collection_name, [])
        scored = [
            RetrievalResult(
                id=r.record_id,
                content=r.text,
                score=_cosine(query_vector, r.embedding),
                metadata=r.metadata,
            )
            for r in records
        ]
        scored.sort(key=lambda h: h.score, reverse=True)
        return scored[:k]

    def delete_namespace(self, collection_name: str) -> None:
        self.collections.pop(collection_name, None)
        self.dimensions.pop(collection_name, None)

    def delete_document(self, collection_name: str, document_id: str) -> None:
        records = self.collections.get(collection_name)
        if records is not None:
            self.collections[collection_name] = [
                r for r in records if r.chunk.document_id != document_id
            ]

    def health_check(self) -> bool:
        return True

    def count(self, collection_name: str = COLLECTION) -> int:
        return len(self.collections.get(collection_name, []))


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    return dot / (na * nb) if na and nb else 0.0


class ScriptedChatModel:
    """Chat-model stand-in: each ``invoke`` pops the next scripted step.

    A step is either an exception (raised) or any other value (returned,
    strings wrapped in :class:`AIMessage`).  The last step repeats.
    """

    def __init__(self, *steps: Any) -> None:
        self.steps = list(steps)
        self.prompts: list[Any] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def invoke(self, prompt: Any) -> Any:
        self.prompts.append(prompt)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, str):
            return AIMessage(content=step)
        return step


class FakeStatusError(Exception):
    """Provider-agnostic HTTP error carrying a ``status_code``."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordingSleep:
    """Collects requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def embeddings() -> HashingEmbeddings:
    return HashingEmbeddings()


@pytest.fixture()
def embedder(embeddings: HashingEmbeddings) -> Embedder:
    return Embedder(embeddings, batch_size=4)


@pytest.fixture()
def index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def pdf_path(tmp_path):
    """A file on disk standing in for an uploaded PDF (pages come from a fake loader)."""
    path = tmp_path / "upload.pdf"
    path.write_bytes(b"%PDF-1.4 fake document body")
    return path


def make_loader(*texts: str):
    """Return a loader yielding one page per text, numbered from 1."""

    def _load(_path) -> list[Page]:
        return [Page(number=i, text=t) for i, t in enumerate(texts, 1)]

    return _load


def make_service(
    embedder: Embedder,
    index: InMemoryVectorIndex,
    llm: Any,
    *,
    loader=None,
    chunk_size: int = 200,
    chunk_overlap: int = 20,
    sleep: RecordingSleep | None = None,
) -> RagService:
    pipeline = IngestionPipeline(
        embedder,
        index,
        collection_name=COLLECTION,
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        loader=loader or make_loader(),
    )
    retriever = Retriever(embedder, index, collection_name=COLLECTION, default_k=5)
    generator = AnswerGenerator(
        llm,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=10.0, sleep=sleep or RecordingSleep()),
    )
    return RagService(pipeline, retriever, generator, index)
