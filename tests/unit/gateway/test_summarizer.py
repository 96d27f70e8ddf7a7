"""Tests for the content summarizer."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from speakit.gateway.summarizer import SummarizationError, summarize


def _patch_complete(**kwargs):
    return patch("speakit.gateway.summarizer.llm_client.complete", **kwargs)


def test_summarize_returns_text():
    with _patch_complete(return_value="  A short summary.  "):
        assert summarize("Long article text.") == "A short summary."


def test_summarize_passes_model_and_tokens():
    with _patch_complete(return_value="Summary.") as mock_call:
        summarize("Text.", model="anthropic/claude-3-5-haiku", max_tokens=200)
    args, kwargs = mock_call.call_args
    assert args[0] == "anthropic/claude-3-5-haiku"
    assert kwargs["max_tokens"] == 200


def test_summarize_truncates_long_content():
    with _patch_complete(return_value="Summary.") as mock_call:
        summarize("a" * 20000 + "TAIL")
    prompt = mock_call.call_args.args[1][0]["content"]
    assert "TAIL" not in prompt
    assert "a" * 8000 in prompt


def test_blank_content_rejected():
    with _patch_complete(return_value="x") as mock_call:
        with pytest.raises(ValueError, match="empty"):
            summarize("   ")
    mock_call.assert_not_called()


def test_provider_failure_wrapped():
    with _patch_complete(side_effect=RuntimeError("rate limited")):
        with pytest.raises(SummarizationError, match="rate limited"):
            summarize("Text.")


def test_empty_answer_is_error():
    with _patch_complete(return_value="   "):
        with pytest.raises(SummarizationError, match="no text"):
            summarize("Text.")
