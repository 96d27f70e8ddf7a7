"""Content summarizer — one LiteLLM completion per request."""

from __future__ import annotations

from speakit.gateway import llm_client
from speakit.gateway.base import GatewayError

_SUMMARY_PROMPT = """\
You are a reading assistant. Write a concise, plain-language summary \
(max {max_tokens} tokens) of the following article so that a listener can \
decide whether to hear it in full. Focus on the main points.

Article (first {limit} characters):
{content}

Summary:"""

DEFAULT_MODEL = "openai/gpt-4o-mini"
DEFAULT_MAX_TOKENS = 500
_CONTENT_LIMIT = 8000


class SummarizationError(GatewayError):
    """The summarization service failed or returned nothing."""


def summarize(
    content: str,
    *,
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> str:
    """Return a summary of *content*.

    Raises:
        ValueError: If *content* is blank.
        SummarizationError: On any provider failure or an empty answer.
    """
    if not content.strip():
        raise ValueError("Nothing to summarize: content is empty.")
    prompt = _SUMMARY_PROMPT.format(
        max_tokens=max_tokens,
        limit=_CONTENT_LIMIT,
        content=content[:_CONTENT_LIMIT],
    )
    try:
        summary = llm_client.complete(
            model,
            [{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
        )
    except Exception as exc:  # provider errors vary by backend
        raise SummarizationError(f"Failed to generate summary: {exc}") from exc
    summary = summary.strip()
    if not summary:
        raise SummarizationError("Failed to generate summary: the model returned no text.")
    return summary
