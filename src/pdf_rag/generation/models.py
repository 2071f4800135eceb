"""Answer model returned to callers of the query flow."""

from __future__ import annotations

from pydantic import BaseModel, Field

from pdf_rag.retrieval.models import RetrievalResult


class Answer(BaseModel):
    """Assistant text plus the retrieved chunks that grounded it."""

    message: str
    sources: list[RetrievalResult] = Field(default_factory=list)
