"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible server** — set ``LLM_BASE_URL`` to e.g. a local
   vLLM endpoint (``http://localhost:8001/v1``).  ``ChatOpenAI`` works
   unchanged against its ``/v1/chat/completions`` route.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from pdf_rag.config import Settings, settings

logger = logging.getLogger(__name__)


def get_llm(config: Settings | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    Temperature, output length and request timeout come from *config*
    (the global settings by default).  The client's built-in retries are
    disabled; retrying is owned by
    :class:`~pdf_rag.generation.retry.RetryPolicy`.
    """
    config = config or settings
    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
        "max_tokens": config.llm_max_output_tokens,
        "timeout": config.request_timeout,
        "max_retries": 0,
    }

    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # Local servers don't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key

    return ChatOpenAI(**kwargs)
