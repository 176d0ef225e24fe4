"""
PDF text extraction (text-based PDFs only).
Works on the uploaded bytes; nothing is written to disk.
"""
import io
import logging

from PyPDF2 import PdfReader

from pdf_mcq.errors import ExtractionFailure

logger = logging.getLogger(__name__)


def extract_text_from_pdf(contents: bytes) -> str:
    """
    Extract text from a text-based PDF. Raises ExtractionFailure on empty input or read errors.
    Image-only PDFs return an empty string; the caller decides what that means.
    """
    if not contents:
        raise ExtractionFailure("Failed to extract text from PDF", details="Uploaded file is empty")
    try:
        reader = PdfReader(io.BytesIO(contents))
        page_count = len(reader.pages)
        parts = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                parts.append(text)
    except Exception as e:
        # Broken PDFs surface as TypeError/AttributeError from PyPDF2 internals, not only PdfReadError.
        logger.error("Error extracting text from PDF: %s: %s", type(e).__name__, e)
        raise ExtractionFailure("Failed to extract text from PDF", details=str(e)) from e
    logger.info("Extracted %s chars from %s page(s)", sum(len(p) for p in parts), page_count)
    return "\n\n".join(parts) if parts else ""
