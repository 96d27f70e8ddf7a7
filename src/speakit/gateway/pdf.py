"""PDF extraction — page text via pypdf.

Uploads are validated before anything is read or parsed: the file must look
like ``application/pdf`` and be at most 10 MB.
"""

from __future__ import annotations

import base64
import binascii
import io
import mimetypes
from pathlib import Path

import pypdf
from pypdf.errors import PdfReadError

from speakit.gateway.base import ExtractedContent, GatewayError, UploadValidationError

PDF_MIME = "application/pdf"
MAX_PDF_BYTES = 10 * 1024 * 1024  # 10 MB


def validate_upload(
    file_name: str,
    size: int,
    mime_type: str | None = None,
    *,
    max_bytes: int = MAX_PDF_BYTES,
) -> None:
    """Reject a file that is too large or not a PDF.

    Args:
        file_name: Original file name (used to guess the MIME type).
        size: File size in bytes.
        mime_type: Declared MIME type; guessed from *file_name* when None.
        max_bytes: Size limit.

    Raises:
        UploadValidationError: If the file is over the limit or not a PDF.
    """
    if size > max_bytes:
        raise UploadValidationError(
            f"File size must be less than {max_bytes // (1024 * 1024)}MB "
            f"('{file_name}' is {size / (1024 * 1024):.1f} MB)."
        )
    kind = mime_type or mimetypes.guess_type(file_name)[0]
    if kind != PDF_MIME:
        raise UploadValidationError(f"Only PDF files are supported ('{file_name}' is {kind or 'unknown'}).")


def encode_file(data: bytes) -> str:
    """Encode raw file bytes for the ``fileData`` request field."""
    return base64.b64encode(data).decode("ascii")


def extract_from_file(file_data: str | bytes, file_name: str) -> ExtractedContent:
    """Request ``{fileData, fileName}`` → response ``{content}``.

    *file_data* is base64 text (as sent over the wire) or raw bytes. The
    title of the result is *file_name*.

    Raises:
        GatewayError: If the data is not a readable PDF or holds no text.
    """
    if isinstance(file_data, str):
        try:
            raw = base64.b64decode(file_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise GatewayError(f"fileData for '{file_name}' is not valid base64.") from exc
    else:
        raw = file_data

    try:
        reader = pypdf.PdfReader(io.BytesIO(raw))
        parts: list[str] = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            stripped = page_text.strip()
            if stripped:
                parts.append(stripped)
    except PdfReadError as exc:
        raise GatewayError(f"Failed to extract PDF content from '{file_name}': {exc}") from exc

    content = "\n\n".join(parts)
    if not content:
        raise GatewayError(
            f"No extractable text in '{file_name}' (scanned PDFs are not supported)."
        )
    return ExtractedContent(content=content, title=file_name)


def extract_from_path(path: Path | str, *, max_bytes: int = MAX_PDF_BYTES) -> ExtractedContent:
    """Validate a local PDF by size and type, then extract it.

    The file is only read once validation has passed.
    """
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise GatewayError(f"Cannot read '{path}': {exc}") from exc
    validate_upload(path.name, size, max_bytes=max_bytes)
    return extract_from_file(encode_file(path.read_bytes()), path.name)
