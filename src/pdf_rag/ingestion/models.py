"""Domain models for the ingestion side: pages, chunks and vector records."""

from __future__ import annotations

import hashlib
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Page(BaseModel):
    """Extracted text of one document page (1-based *number*)."""

    model_config = ConfigDict(frozen=True)

    number: int
    text: str


class Chunk(BaseModel):
    """A contiguous slice of a single page's text.

    Attributes
    ----------
    text:
        The chunk content.
    page:
        Page number the chunk was drawn from.
    start / end:
        Character offsets of the slice within the page text.
    chunk_index:
        Ordinal position of the chunk within the whole document.
    document_id:
        Content hash of the source document.
    source:
        Human-readable source locator (original file name).
    """

    model_config = ConfigDict(frozen=True)

    text: str
    page: int
    start: int
    end: int
    chunk_index: int
    document_id: str = ""
    source: str = "unknown"

    @property
    def chunk_id(self) -> str:
        """Identity derived from the chunk's document, position and content."""
        key = f"{self.document_id}:{self.page}:{self.start}:{self.text}"
        return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]

    def metadata(self) -> dict[str, Any]:
        """Flat payload stored next to the vector and returned on search."""
        return {
            "page": self.page,
            "source": self.source,
            "document_id": self.document_id,
            "chunk_id": self.chunk_id,
            "chunk_index": self.chunk_index,
            "start": self.start,
            "end": self.end,
        }


class VectorRecord(BaseModel):
    """A chunk paired with its embedding, ready for the vector index.

    ``record_id`` is unique per write, so ingesting the same document twice
    stores two copies of every chunk.
    """

    chunk: Chunk
    embedding: list[float]
    record_id: str = Field(default_factory=lambda: uuid4().hex)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    @property
    def text(self) -> str:
        return self.chunk.text

    @property
    def metadata(self) -> dict[str, Any]:
        return self.chunk.metadata()


class IngestionReport(BaseModel):
    """Summary of a fully successful ingestion."""

    document_id: str
    source: str
    collection: str
    pages: int
    chunks: int
