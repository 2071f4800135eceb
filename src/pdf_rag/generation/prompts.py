"""Prompt template for grounded answering.

The model sees one human message holding the rules, the question and
the retrieved context.  Keeping the wording here makes it easy to audit
and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from langchain_core.messages import BaseMessage

    from pdf_rag.retrieval.models import RetrievalResult

FALLBACK_ANSWER = "I could not find the answer in the provided document."

CONTEXT_SEPARATOR = "\n\n---\n\n"

GROUNDED_ANSWER_TEMPLATE = """\
You are a document-based assistant.
You will answer ONLY using the document context.

If the user asks something too broad (like "sorting", "unit 2", "syllabus"),
you MUST summarize the most relevant content from the document context.

If the answer is not directly mentioned, reply exactly:
"{fallback}"

Question: {question}

Context:
{context}
"""


def format_context(results: Sequence[RetrievalResult]) -> str:
    """Join chunk texts in ranked order, separated so sources stay distinct."""
    return CONTEXT_SEPARATOR.join(r.content for r in results if r.content)


def build_grounded_prompt(question: str, results: Sequence[RetrievalResult]) -> list[BaseMessage]:
    """Assemble the prompt messages for a grounded generation call.

    Parameters
    ----------
    question:
        The user question, inserted verbatim.
    results:
        Retrieved chunks, best first.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    content = GROUNDED_ANSWER_TEMPLATE.format(
        fallback=FALLBACK_ANSWER,
        question=question,
        context=format_context(results),
    )
    return [HumanMessage(content=content)]
