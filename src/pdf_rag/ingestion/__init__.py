"""
Ingestion — document loading, chunking, and embedding into the vector index.

This module is responsible for the ETL-like pipeline that converts an
uploaded PDF into embedded chunks stored in a vector database.
"""

from pdf_rag.ingestion.chunker import split_pages, split_text
from pdf_rag.ingestion.models import Chunk, IngestionReport, Page, VectorRecord

__all__ = [
    "Chunk",
    "IngestionReport",
    "Page",
    "VectorRecord",
    "split_pages",
    "split_text",
]
