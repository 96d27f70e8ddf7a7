"""Shared types for the extraction and summarization gateway."""

from __future__ import annotations

from dataclasses import dataclass


class GatewayError(RuntimeError):
    """An extraction or summarization call failed. Never retried here."""


class UploadValidationError(GatewayError, ValueError):
    """A file was rejected before any extraction was attempted."""


@dataclass(frozen=True)
class ExtractedContent:
    content: str
    title: str = ""
