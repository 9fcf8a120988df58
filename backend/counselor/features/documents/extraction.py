"""
Documents feature: Text extraction from uploaded PDFs and images.

The extracted text is not stored; the client sends it back as `pdfContent`
on its next chat message.
"""

import io
import logging

import pytesseract
from PIL import Image
from pypdf import PdfReader

from counselor.core.exceptions import DocumentProcessingError, UnsupportedFileError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
NO_TEXT_MESSAGE = "No text content could be extracted from the PDF."
OCR_CONTENT_TYPES = {"image/jpeg", "image/png"}


def _read_pages(data: bytes) -> list[str]:
    try:
        reader = PdfReader(io.BytesIO(data))
        return [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as e:
        raise DocumentProcessingError("PDF extraction failed", str(e)) from e


def validate_pdf(data: bytes) -> None:
    """Reject empty files and files without the `%PDF-` header.

    Raises:
        UnsupportedFileError: If the bytes cannot be a PDF.
    """
    if not data:
        raise UnsupportedFileError("PDF file is empty")
    if not data.startswith(PDF_MAGIC):
        logger.error(f"File doesn't appear to be a valid PDF - header: {data[:5]!r}")
        raise UnsupportedFileError(
            "Invalid PDF file format. The file doesn't appear to be a valid PDF."
        )


def extract_pdf_text(data: bytes) -> str:
    """Plain text of every page, pages separated by a blank line."""
    validate_pdf(data)
    pages = [text for text in _read_pages(data) if text]
    text = "\n\n".join(pages).strip()
    return text or NO_TEXT_MESSAGE


def extract_pdf_pages(data: bytes) -> str:
    """Page-labelled text (`[Page N]` headers) for multi-file uploads."""
    validate_pdf(data)
    sections = [
        f"[Page {number}]\n{text}"
        for number, text in enumerate(_read_pages(data), start=1)
        if text
    ]
    return "\n\n".join(sections)


def extract_image_text(data: bytes) -> str:
    """OCR an image (English)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return pytesseract.image_to_string(img, lang="eng") or ""
    except Exception as e:
        raise DocumentProcessingError("Image OCR failed", str(e)) from e


def extract_file_text(data: bytes, content_type: str | None) -> str:
    """Dispatch by MIME type; unsupported types contribute no text."""
    if content_type == "application/pdf":
        return extract_pdf_pages(data)
    if content_type in OCR_CONTENT_TYPES:
        return extract_image_text(data)
    logger.info(f"Skipping unsupported upload type: {content_type}")
    return ""
