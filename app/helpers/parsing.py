import io
import re
import logging
from pathlib import Path

from pdfminer.high_level import extract_text as pdf_extract
from docx import Document

from app.helpers.rules import normalize_text
from app.utils.exceptions import ExtractionError, UnsupportedFormatError
from app.utils.logging_config import get_logger, log_function_call

logging.getLogger("pdfminer").setLevel(logging.ERROR)
logger = get_logger(__name__)

SUPPORTED_TYPES = ("pdf", "docx", "txt")
ACCEPTED_UPLOAD_TYPES = ("pdf", "docx", "doc", "txt")


def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])


def read_pdf(data: bytes) -> str:
    try:
        return pdf_extract(io.BytesIO(data))
    except Exception as e:
        logger.warning(f"pdfminer failed ({e}); falling back to unstructured")
        # fallback to unstructured, installed with the "pdf-fallback" extra
        from unstructured.partition.auto import partition
        elems = partition(file=io.BytesIO(data), content_type="application/pdf")
        return "\n".join([e.text for e in elems if hasattr(e, "text") and e.text])


READERS = {
    "pdf": read_pdf,
    "docx": read_docx,
    "txt": read_txt,
}


def file_type_from_name(filename: str) -> str:
    return Path(filename or "").suffix.lower().lstrip(".")


def clean_text(x: str) -> str:
    x = re.sub(r'\s+', ' ', x).strip()
    return x


@log_function_call
def extract_text(data: bytes, file_type: str) -> str:
    """Convert an uploaded document into plain text.

    Raises UnsupportedFormatError for types without a reader (including legacy
    .doc) and ExtractionError when a supported document cannot be read.
    """
    file_type = (file_type or "").lower().lstrip(".")
    reader = READERS.get(file_type)
    if reader is None:
        raise UnsupportedFormatError(
            f"Unsupported document type '{file_type or 'unknown'}'. Please upload PDF, DOCX or TXT files.",
            file_type=file_type,
        )
    try:
        text = reader(data)
    except Exception as e:
        raise ExtractionError(f"Could not extract text from {file_type} document: {e}", file_type=file_type, cause=e) from e

    text = normalize_text(text or "")
    if not text:
        raise ExtractionError(f"No readable text found in {file_type} document", file_type=file_type)
    logger.debug(f"Extracted {len(text)} characters from {file_type} document")
    return text
