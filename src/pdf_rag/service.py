"""Composition root — the two flows sharing one embedder and one index.

``build_service()`` creates every external client once; the resulting
:class:`RagService` is passed by reference to whoever needs it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_rag.errors import InvalidInputError
from pdf_rag.generation.generator import AnswerGenerator
from pdf_rag.generation.models import Answer
from pdf_rag.generation.prompts import FALLBACK_ANSWER
from pdf_rag.generation.retry import RetryPolicy
from pdf_rag.ingestion.embedder import Embedder
from pdf_rag.ingestion.pipeline import IngestionPipeline
from pdf_rag.retrieval.retriever import Retriever

if TYPE_CHECKING:
    from pathlib import Path

    from pdf_rag.config import Settings
    from pdf_rag.ingestion.models import IngestionReport
    from pdf_rag.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)


class RagService:
    """Ingestion and question answering over one vector collection."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        retriever: Retriever,
        generator: AnswerGenerator,
        index: VectorIndexBase,
    ) -> None:
        self.pipeline = pipeline
        self.retriever = retriever
        self.generator = generator
        self.index = index

    @property
    def collection_name(self) -> str:
        return self.pipeline.collection_name

    def ingest(self, path: str | Path | None, *, source: str | None = None) -> IngestionReport:
        return self.pipeline.ingest(path, source=source)

    def answer(self, question: str, *, k: int | None = None) -> Answer:
        """Retrieve context for *question* and generate a grounded answer.

        Nothing retrieved means the fixed fallback sentence, without a
        model call.
        """
        if not question or not question.strip():
            raise InvalidInputError("Question is required")

        results = self.retriever.retrieve(question, k=k)
        if not results:
            logger.info("No context found for question; returning fallback answer")
            return Answer(message=FALLBACK_ANSWER, sources=[])
        return self.generator.generate(question, results)

    def cleanup(self, namespace: str | None = None) -> str:
        """Delete every vector of *namespace* (default: the service's collection)."""
        namespace = namespace or self.collection_name
        self.index.delete_namespace(namespace)
        return namespace

    def health_check(self) -> bool:
        return self.index.health_check()


def build_service(config: Settings | None = None) -> RagService:
    """Create the shared clients from *config* and wire both flows."""
    if config is None:
        from pdf_rag.config import settings as config

    from pdf_rag.generation.llm import get_llm
    from pdf_rag.ingestion.embedder import get_embedding_function
    from pdf_rag.retrieval.chroma_store import ChromaVectorIndex

    embedder = Embedder(
        get_embedding_function(config.embedding_model),
        batch_size=config.embedding_batch_size,
    )
    index = ChromaVectorIndex(
        host=config.chroma_host,
        port=config.chroma_port,
        upsert_batch_size=config.upsert_batch_size,
    )
    pipeline = IngestionPipeline(
        embedder,
        index,
        collection_name=config.chroma_collection,
        chunk_size=config.chunk_size,
        chunk_overlap=config.chunk_overlap,
        replace_existing=config.replace_on_reingest,
    )
    retriever = Retriever(
        embedder,
        index,
        collection_name=config.chroma_collection,
        default_k=config.retrieval_k,
        score_threshold=config.score_threshold,
    )
    generator = AnswerGenerator(
        get_llm(config),
        retry_policy=RetryPolicy(
            max_attempts=config.generation_max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
        ),
    )
    logger.info(
        "RAG service ready (collection=%r, chroma=%s:%d, model=%s)",
        config.chroma_collection,
        config.chroma_host,
        config.chroma_port,
        config.llm_model_name,
    )
    return RagService(pipeline, retriever, generator, index)
