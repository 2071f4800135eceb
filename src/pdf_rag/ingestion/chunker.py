"""Fixed-window text chunking with overlap."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pdf_rag.errors import InvalidInputError
from pdf_rag.ingestion.models import Chunk

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pdf_rag.ingestion.models import Page


def split_text(text: str, max_chunk_chars: int, overlap_chars: int) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of the windows covering *text*.

    Every window is at most *max_chunk_chars* long and starts
    ``max_chunk_chars - overlap_chars`` characters after its predecessor,
    so consecutive windows share exactly *overlap_chars* characters.
    Whitespace-only text yields no windows.
    """
    if max_chunk_chars <= 0:
        raise InvalidInputError("max_chunk_chars must be positive")
    if not 0 <= overlap_chars < max_chunk_chars:
        raise InvalidInputError("overlap_chars must be in [0, max_chunk_chars)")

    if not text.strip():
        return []

    step = max_chunk_chars - overlap_chars
    spans: list[tuple[int, int]] = []
    start = 0
    while True:
        end = min(start + max_chunk_chars, len(text))
        spans.append((start, end))
        if end == len(text):
            break
        start += step
    return spans


def split_pages(
    pages: Iterable[Page],
    max_chunk_chars: int = 1000,
    overlap_chars: int = 200,
    *,
    document_id: str = "",
    source: str = "unknown",
) -> list[Chunk]:
    """Split *pages* into overlapping chunks, preserving page order.

    Parameters
    ----------
    pages:
        Pages produced by a loader, in document order.
    max_chunk_chars:
        Maximum number of characters per chunk.
    overlap_chars:
        Number of characters shared by consecutive chunks of a page.
    document_id / source:
        Provenance copied onto every chunk.

    Returns
    -------
    list[Chunk]
        Every window of every page, so consecutive chunks of a page share
        exactly *overlap_chars*; ``chunk_index`` runs across the document.
        Windows of a page may be whitespace-only; blank pages yield none.
    """
    chunks: list[Chunk] = []
    for page in pages:
        for start, end in split_text(page.text, max_chunk_chars, overlap_chars):
            chunks.append(
                Chunk(
                    text=page.text[start:end],
                    page=page.number,
                    start=start,
                    end=end,
                    chunk_index=len(chunks),
                    document_id=document_id,
                    source=source,
                )
            )
    return chunks
