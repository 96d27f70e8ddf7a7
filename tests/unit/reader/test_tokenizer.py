"""Tests for the whitespace tokenizer."""

from __future__ import annotations

import pytest

from speakit.reader.tokenizer import tokenize


def test_splits_on_single_spaces():
    assert tokenize("The quick brown fox") == ["The", "quick", "brown", "fox"]


def test_collapses_whitespace_runs():
    assert tokenize("  one \n\n two\tthree   ") == ["one", "two", "three"]


def test_punctuation_stays_attached():
    assert tokenize("Hello, world! (really)") == ["Hello,", "world!", "(really)"]


def test_empty_and_blank_give_no_units():
    assert tokenize("") == []
    assert tokenize(" \n\t ") == []


def test_non_breaking_and_unicode_whitespace():
    assert tokenize("a\u00a0b\u2003c") == ["a", "b", "c"]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "  leading and trailing  ",
        "tabs\tand\nnewlines\r\nmixed",
        "non\u00a0breaking\u2003spaces",
        "single",
    ],
)
def test_rejoined_units_tokenize_the_same(text):
    units = tokenize(text)
    assert tokenize(" ".join(units)) == units
    assert all(units)
