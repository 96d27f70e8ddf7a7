"""Split text into speakable units."""

from __future__ import annotations


def tokenize(full_text: str) -> list[str]:
    """Return the whitespace-delimited words of *full_text*, in order.

    Runs of any whitespace separate units; empty results are dropped, so
    blank input yields an empty list.
    """
    return full_text.split()
