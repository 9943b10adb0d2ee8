"""
Binary document to text conversion.

PDF goes through pdfplumber word-level extraction (words grouped into lines by
vertical position), DOCX through python-docx paragraphs, anything else is
decoded as UTF-8. bytes_to_text() never raises: a failed conversion falls
back to UTF-8 decoding of the payload.
"""

import logging
import re
from io import BytesIO
from typing import Any, List, Optional, Tuple

import pdfplumber
from docx import Document

from app.core.errors import DocumentConversionError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"

PDF_CONTENT_TYPES = {"application/pdf"}
DOCX_CONTENT_TYPES = {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
TEXT_CONTENT_TYPES = {"text/plain", "text/markdown", "application/octet-stream"}
SUPPORTED_CONTENT_TYPES = PDF_CONTENT_TYPES | DOCX_CONTENT_TYPES | TEXT_CONTENT_TYPES


def _words_to_text(page: Any, *, x_tolerance: float = 3, line_y_tolerance: float = 3) -> str:
    """
    Extract text from a PDF page using word objects.

    Groups words by vertical position (y-coordinate), then joins them with
    single spaces, which avoids the glued-word problems of layout extraction.
    """
    words = page.extract_words(
        x_tolerance=x_tolerance,
        y_tolerance=2,
        keep_blank_chars=False,
        use_text_flow=True,
    )
    if not words:
        return ""

    words.sort(key=lambda w: (round(w["top"] / line_y_tolerance), w["x0"]))
    lines: List[str] = []
    current_key = None
    current_words: List[str] = []

    for w in words:
        key = round(w["top"] / line_y_tolerance)
        if current_key is None or key == current_key:
            current_words.append(w["text"])
            current_key = key
        else:
            lines.append(" ".join(current_words))
            current_words = [w["text"]]
            current_key = key

    if current_words:
        lines.append(" ".join(current_words))
    return "\n".join(lines)


def _score_text(s: str) -> float:
    """
    Quality score of extracted text (lower is better).

    Penalizes very long alphabetic tokens (glued words) and runs of
    single-letter tokens (character fragmentation).
    """
    tokens = re.findall(r"[A-Za-z]+", s)
    if not tokens:
        return 1e9
    long_glued = sum(1 for t in tokens if len(t) >= 18)
    one_letter = sum(1 for t in tokens if len(t) == 1)
    return long_glued * 10 + max(0, one_letter - 10) * 3


def _extract_best(page: Any, x_tolerance_range: Tuple[float, ...] = (1.5, 2, 2.5, 3)) -> str:
    """Try several x_tolerance values and keep the best-scoring text."""
    candidates = [(_score_text(txt), txt) for txt in (_words_to_text(page, x_tolerance=xt) for xt in x_tolerance_range)]
    candidates.sort(key=lambda c: c[0])
    return candidates[0][1]


def pdf_to_text(pdf_bytes: bytes) -> str:
    try:
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            pages = [_extract_best(page) for page in pdf.pages]
    except Exception as exc:
        raise DocumentConversionError(f"PDF conversion failed: {exc}") from exc
    return "\n".join(p for p in pages if p)


def docx_to_text(docx_bytes: bytes) -> str:
    """Non-empty paragraph text of a DOCX, one paragraph per line."""
    try:
        doc = Document(BytesIO(docx_bytes))
    except Exception as exc:
        raise DocumentConversionError(f"DOCX conversion failed: {exc}") from exc
    return "\n".join(p.text.strip() for p in doc.paragraphs if p.text and p.text.strip())


def detect_kind(data: bytes, content_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    """Returns "pdf", "docx" or "text"."""
    name = (filename or "").lower()
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype in PDF_CONTENT_TYPES or name.endswith(".pdf") or data.startswith(PDF_MAGIC):
        return "pdf"
    if ctype in DOCX_CONTENT_TYPES or name.endswith(".docx") or data.startswith(ZIP_MAGIC):
        return "docx"
    return "text"


def convert_document(data: bytes, content_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    """
    Convert a document payload to text.

    Raises:
        DocumentConversionError: the PDF/DOCX could not be read
    """
    kind = detect_kind(data, content_type, filename)
    if kind == "pdf":
        return pdf_to_text(data)
    if kind == "docx":
        return docx_to_text(data)
    return data.decode("utf-8", errors="replace")


def bytes_to_text(data: bytes, content_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    """Best-effort text for a payload; a failed conversion falls back to UTF-8 decoding."""
    if not data:
        return ""
    try:
        return convert_document(data, content_type, filename)
    except DocumentConversionError as exc:
        logger.warning("%s; decoding payload as UTF-8", exc)
        return data.decode("utf-8", errors="replace")
