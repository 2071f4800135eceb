"""FastAPI application exposing PDF ingestion and grounded chat."""

from __future__ import annotations

import logging
import shutil
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pdf_rag.config import settings
from pdf_rag.errors import InvalidInputError, QuotaExhaustedError, RagError, RateLimitedError
from pdf_rag.generation.models import Answer
from pdf_rag.service import RagService, build_service

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
RETRY_AFTER_SECONDS = 20
# 400 message for a malformed body, by route
VALIDATION_MESSAGES = {"/chat": "Message is required"}

app = FastAPI(
    title="PDF RAG API",
    version="0.1.0",
    description="Upload PDFs and ask questions answered strictly from their content.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_service() -> RagService:
    """One service (and one set of client connections) per process."""
    return build_service(settings)


# ── Request / Response schemas ────────────────────────────────────────
class ChatRequest(BaseModel):
    """Incoming question from the user."""

    message: str | None = None


class CleanupRequest(BaseModel):
    """Namespace to wipe; the configured collection when omitted."""

    namespace: str | None = None


class UploadResponse(BaseModel):
    message: str
    document_id: str
    chunks: int


class UploadTooLarge(InvalidInputError):
    """The uploaded file exceeds ``settings.max_upload_bytes``."""


# ── Error mapping ─────────────────────────────────────────────────────
def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@app.exception_handler(RateLimitedError)
async def _rate_limited(_request: Request, exc: RateLimitedError) -> JSONResponse:
    logger.warning("Rate limited by %s service: %s", exc.service, exc)
    return _error(
        429,
        "Rate limit exceeded. Please try again in a few seconds.",
        retryAfter=RETRY_AFTER_SECONDS,
    )


@app.exception_handler(QuotaExhaustedError)
async def _quota_exhausted(_request: Request, exc: QuotaExhaustedError) -> JSONResponse:
    logger.error("Quota exhausted on %s service: %s", exc.service, exc)
    return _error(503, "Service temporarily unavailable due to quota limits. Please try again later.")


@app.exception_handler(UploadTooLarge)
async def _too_large(_request: Request, exc: UploadTooLarge) -> JSONResponse:
    return _error(413, str(exc))


@app.exception_handler(InvalidInputError)
async def _invalid_input(_request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected body on %s: %s", request.url.path, exc.errors())
    return _error(400, VALIDATION_MESSAGES.get(request.url.path, "Invalid request body"))


@app.exception_handler(RagError)
async def _rag_error(request: Request, exc: RagError) -> JSONResponse:
    logger.error("Request %s failed: %s", request.url.path, exc, exc_info=exc)
    return _error(500, "Internal server error")


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
def ready(service: RagService = Depends(get_service)) -> JSONResponse:
    """Readiness check: 503 until the vector index answers."""
    if not service.health_check():
        return _error(503, "Vector index unavailable")
    return JSONResponse(content={"status": "ready"})


@app.post("/upload/pdf", response_model=UploadResponse)
def upload_pdf(
    pdf: UploadFile | None = File(default=None),
    service: RagService = Depends(get_service),
) -> UploadResponse:
    """Store the uploaded PDF, ingest it, then delete the stored copy."""
    if pdf is None or not pdf.filename:
        raise InvalidInputError("PDF file is required")
    if pdf.content_type != PDF_CONTENT_TYPE:
        raise InvalidInputError("Only PDF files are allowed")

    path = _save_upload(pdf)
    try:
        report = service.ingest(path, source=pdf.filename)
    finally:
        _safe_remove_file(path)

    return UploadResponse(
        message="PDF ingested successfully",
        document_id=report.document_id,
        chunks=report.chunks,
    )


@app.post("/chat", response_model=Answer)
def chat(request: ChatRequest | None = None, service: RagService = Depends(get_service)) -> Answer:
    """Answer a question from the ingested documents."""
    if request is None or not request.message or not request.message.strip():
        raise InvalidInputError("Message is required")
    return service.answer(request.message)


@app.post("/cleanup")
def cleanup(
    request: CleanupRequest | None = None, service: RagService = Depends(get_service)
) -> dict[str, str]:
    """Delete every vector stored under a namespace."""
    namespace = service.cleanup(request.namespace if request else None)
    return {"message": "Vectors deleted", "namespace": namespace}


# ── Helpers ───────────────────────────────────────────────────────────
def _save_upload(pdf: UploadFile) -> Path:
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(dir=upload_dir, suffix=".pdf", delete=False) as out:
        path = Path(out.name)
        try:
            shutil.copyfileobj(pdf.file, out)
        except Exception:
            out.close()
            _safe_remove_file(path)
            raise
        size = out.tell()

    if size == 0:
        _safe_remove_file(path)
        raise InvalidInputError("Uploaded PDF is empty")
    if size > settings.max_upload_bytes:
        _safe_remove_file(path)
        raise UploadTooLarge(f"PDF exceeds the {settings.max_upload_bytes} byte upload limit")
    return path


def _safe_remove_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Unable to delete file %s", path, exc_info=True)
