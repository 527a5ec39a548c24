"""
Text extraction for uploaded knowledge files (PDF, DOCX, TXT, Markdown).
"""
import io
import os
from typing import Dict

from docx import Document as DocxDocument
from loguru import logger
from pypdf import PdfReader

from copymode.core.exceptions import BadRequestError


SUPPORTED_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "md": "text/markdown",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

TEXT_ENCODINGS = ["utf-8", "latin-1"]


def get_file_type(filename: str) -> str:
    """Lowercase extension without the dot ("" when there is none)."""
    return os.path.splitext(filename or "")[1].lower().lstrip(".")


def is_supported(filename: str) -> bool:
    return get_file_type(filename) in SUPPORTED_TYPES


def _extract_plain(content: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise BadRequestError("Could not decode text file")


def _extract_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    pages = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            pages.append(page_text)
    return "\n\n".join(pages)


def _extract_docx(content: bytes) -> str:
    document = DocxDocument(io.BytesIO(content))
    return "\n\n".join(p.text for p in document.paragraphs if p.text.strip())


def extract_text(filename: str, content: bytes) -> str:
    """
    Extract plain text from an uploaded file.

    Args:
        filename: Original file name (extension selects the parser)
        content: Raw file bytes

    Returns:
        Extracted text, stripped

    Raises:
        BadRequestError: Unsupported type or unreadable content
    """
    file_type = get_file_type(filename)

    if file_type in ("txt", "md"):
        text = _extract_plain(content)
    elif file_type == "pdf":
        try:
            text = _extract_pdf(content)
        except Exception as e:
            logger.error(f"Error parsing PDF {filename}: {e}")
            raise BadRequestError(f"Failed to parse PDF: {e}")
    elif file_type == "docx":
        try:
            text = _extract_docx(content)
        except Exception as e:
            logger.error(f"Error parsing DOCX {filename}: {e}")
            raise BadRequestError(f"Failed to parse DOCX: {e}")
    else:
        raise BadRequestError(
            f"Unsupported file type: {file_type or 'unknown'}. "
            f"Supported: {', '.join(SUPPORTED_TYPES)}"
        )

    logger.debug(f"Extracted {len(text)} characters from {filename}")
    return text.strip()
