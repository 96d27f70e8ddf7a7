"""Extraction and summarization gateway — URL text, PDF text, summaries."""

from speakit.gateway.base import ExtractedContent, GatewayError, UploadValidationError
from speakit.gateway.pdf import extract_from_file, extract_from_path, validate_upload
from speakit.gateway.summarizer import SummarizationError, summarize
from speakit.gateway.web import SsrfError, extract_from_url

__all__ = [
    "ExtractedContent",
    "GatewayError",
    "SsrfError",
    "SummarizationError",
    "UploadValidationError",
    "extract_from_file",
    "extract_from_path",
    "extract_from_url",
    "summarize",
    "validate_upload",
]
