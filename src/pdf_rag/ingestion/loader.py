"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader

from pdf_rag.errors import DocumentLoadError
from pdf_rag.ingestion.models import Page

logger = logging.getLogger(__name__)


def load_pdf(path: str | Path) -> list[Page]:
    """Load a single PDF file as one :class:`Page` per PDF page.

    ``PyPDFLoader`` numbers pages from zero; the returned pages are
    numbered from one.
    """
    path = Path(path)
    if not path.is_file():
        raise DocumentLoadError(f"No such document: {path}")

    try:
        documents = PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise DocumentLoadError(f"Could not read {path.name} as a PDF: {exc}") from exc

    pages = [
        Page(number=int(doc.metadata.get("page", i)) + 1, text=doc.page_content or "")
        for i, doc in enumerate(documents)
    ]
    logger.debug("Loaded %d pages from %s", len(pages), path)
    return pages


def document_fingerprint(path: str | Path) -> str:
    """Return a short content hash identifying the document at *path*."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as fh:
            for block in iter(lambda: fh.read(1 << 16), b""):
                digest.update(block)
    except OSError as exc:
        raise DocumentLoadError(f"Cannot read {path}: {exc}") from exc
    return digest.hexdigest()[:16]
