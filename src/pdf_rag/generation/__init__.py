"""
Generation — grounded prompting, model calls with retry, answer normalisation.

Public API
----------
- :class:`AnswerGenerator` — build the prompt, call the model, return an :class:`Answer`.
- :class:`RetryPolicy` — bounded exponential backoff for rate-limited calls.
- :data:`FALLBACK_ANSWER` — sentence used when the document has no answer.
"""

from pdf_rag.generation.generator import NO_RESPONSE_PLACEHOLDER, AnswerGenerator, extract_text
from pdf_rag.generation.models import Answer
from pdf_rag.generation.prompts import FALLBACK_ANSWER, build_grounded_prompt
from pdf_rag.generation.retry import RetryPolicy

__all__ = [
    "FALLBACK_ANSWER",
    "NO_RESPONSE_PLACEHOLDER",
    "Answer",
    "AnswerGenerator",
    "RetryPolicy",
    "build_grounded_prompt",
    "extract_text",
]
