"""
Serving — FastAPI application exposing PDF upload and grounded chat.

Run locally with ``python -m pdf_rag.serving``.
"""
