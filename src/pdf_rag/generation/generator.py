"""Grounded answer generation with retry and response normalisation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pdf_rag.errors import InvalidInputError, classify_service_error
from pdf_rag.generation.models import Answer
from pdf_rag.generation.prompts import FALLBACK_ANSWER, build_grounded_prompt
from pdf_rag.generation.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from pdf_rag.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)

NO_RESPONSE_PLACEHOLDER = "No response generated."


def extract_text(response: Any) -> str:
    """Pull plain text out of a chat-model response.

    Handles plain string content as well as lists of content blocks
    (``{"type": "text", "text": ...}`` dicts or bare strings).  Returns
    ``""`` when nothing readable is present.
    """
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts).strip()
    return ""


class AnswerGenerator:
    """Answer a question strictly from retrieved context.

    Parameters
    ----------
    llm:
        Chat model; when *None*, :func:`~pdf_rag.generation.llm.get_llm`
        builds the configured one.
    retry_policy:
        Backoff applied to rate-limited or timed-out model calls.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if llm is None:
            from pdf_rag.generation.llm import get_llm

            llm = get_llm()
        self._llm = llm
        self.retry_policy = retry_policy or RetryPolicy()

    def generate(self, question: str, context: Sequence[RetrievalResult]) -> Answer:
        """Generate an :class:`Answer` for *question* grounded on *context*.

        With no context the fallback sentence is returned without calling
        the model.  Rate-limit and timeout errors are retried per
        :attr:`retry_policy`; everything else propagates immediately.
        """
        if not question or not question.strip():
            raise InvalidInputError("Question is required")

        if not context:
            return Answer(message=FALLBACK_ANSWER, sources=[])

        prompt = build_grounded_prompt(question, context)
        response = self.retry_policy.call(self._invoke, prompt)

        try:
            text = extract_text(response)
        except (AttributeError, TypeError, ValueError):
            logger.exception("Error extracting response text")
            text = ""
        if not text:
            logger.warning("Model returned no text for question %r", question[:80])
            text = NO_RESPONSE_PLACEHOLDER

        return Answer(message=text, sources=list(context))

    def _invoke(self, prompt: list[BaseMessage]) -> Any:
        try:
            return self._llm.invoke(prompt)
        except Exception as exc:
            error = classify_service_error(exc, service="generation")
            if error is None:
                raise
            raise error from exc
