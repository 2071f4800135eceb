"""Exponential-backoff retry around model calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pdf_rag.errors import RateLimitedError, ServiceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Error classes worth another attempt.  Quota exhaustion is not among them.
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (RateLimitedError, ServiceTimeoutError)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attributes
    ----------
    max_attempts:
        Total number of calls, the first one included.
    base_delay:
        Seconds slept after the first failure; doubled after each further one.
    max_delay:
        Upper bound for a single sleep.
    sleep:
        Sleep function, injectable for tests.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    sleep: Callable[[float], Any] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be non-negative")

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run *fn*, retrying on :data:`RETRYABLE_ERRORS`.

        Any other exception propagates at once; when the attempts run out
        the last retryable error is re-raised unchanged.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)
