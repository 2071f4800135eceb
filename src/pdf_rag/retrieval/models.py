"""Domain models for retrieval results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RetrievalResult(BaseModel):
    """A single retrieved chunk with its similarity score.

    Attributes
    ----------
    id:
        Vector-store record identifier.
    content:
        The chunk text.
    score:
        Cosine similarity to the query (higher = more similar).
    metadata:
        Payload stored with the vector, returned unchanged.
    """

    id: str | None = None
    content: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def page(self) -> int | None:
        """Source page number, when the payload carries one."""
        return self.metadata.get("page")

    def short_ref(self) -> str:
        """Return a compact ``[source p.N]`` reference string."""
        source = self.metadata.get("source", "unknown")
        page = self.page if self.page is not None else "?"
        return f"[{source} p.{page}]"

    def __str__(self) -> str:  # noqa: D105
        return f"{self.short_ref()} {self.content[:120]}…"
