"""Error taxonomy shared by ingestion, retrieval, generation and serving.

The serving layer maps each class to a response the end user can act on:

* :class:`InvalidInputError` — fix the input (HTTP 400).
* :class:`RateLimitedError` — retry in a few seconds (HTTP 429).
* :class:`QuotaExhaustedError` — retry much later (HTTP 503).
* anything else — generic failure (HTTP 500).

A search against a collection that was never created is *not* an error
(it yields an empty result), and a generation response without text is
degraded to a placeholder answer.
"""

from __future__ import annotations

import httpx
import openai


class RagError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(RagError):
    """Missing question, missing document path, empty upload, bad parameters."""


class DocumentLoadError(InvalidInputError):
    """The document path is unreadable or does not hold a valid PDF."""


class DimensionMismatchError(InvalidInputError):
    """A vector's dimensionality differs from its collection's."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Collection {collection!r} stores {expected}-dimensional vectors, got {actual}"
        )
        self.collection = collection
        self.expected = expected
        self.actual = actual


class EmbeddingError(RagError):
    """The embedding backend returned a malformed response."""


class TransientServiceError(RagError):
    """An external service is temporarily unavailable."""

    def __init__(self, message: str, *, service: str = "unknown") -> None:
        super().__init__(message)
        self.service = service


class RateLimitedError(TransientServiceError):
    """Short-lived rate limiting; worth retrying after a backoff."""


class ServiceTimeoutError(TransientServiceError):
    """An external call exceeded its timeout."""


class QuotaExhaustedError(TransientServiceError):
    """Sustained unavailability (billing / quota); not worth retrying now."""


def _status_code(exc: BaseException) -> int | None:
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def _mentions_quota(exc: BaseException) -> bool:
    if isinstance(exc, openai.APIStatusError) and exc.code == "insufficient_quota":
        return True
    return "quota" in str(exc).lower()


def classify_service_error(exc: BaseException, *, service: str = "unknown") -> RagError | None:
    """Translate a backend exception into the package taxonomy.

    Returns ``None`` when *exc* carries no recognisable signal (or is
    already a :class:`RagError`); the caller should then re-raise the
    original exception unchanged.
    """
    if isinstance(exc, RagError):
        return None

    message = str(exc) or type(exc).__name__

    if isinstance(exc, (openai.APITimeoutError, httpx.TimeoutException, TimeoutError)):
        return ServiceTimeoutError(message, service=service)

    if isinstance(exc, openai.RateLimitError) or _status_code(exc) == 429:
        if _mentions_quota(exc):
            return QuotaExhaustedError(message, service=service)
        return RateLimitedError(message, service=service)

    if _mentions_quota(exc):
        return QuotaExhaustedError(message, service=service)

    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError, ConnectionError)):
        return TransientServiceError(message, service=service)

    if _status_code(exc) in (502, 503, 504):
        return TransientServiceError(message, service=service)

    return None
