"""
Resume Raw Text Extractor

Converts raw document bytes into normalized plain text.
Supported formats: PDF (PyMuPDF, falling back to pypdf) and Word (python-docx).
"""
import io
import re
import logging
from enum import Enum
from typing import Optional

import docx
import fitz  # PyMuPDF
from pypdf import PdfReader

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MSWORD_MIME = "application/msword"

PDF_SIGNATURE = b"%PDF-"
PDF_SIGNATURE_WINDOW = 1024  # some PDFs have junk preambles before the header

MIN_TEXT_LENGTH = 50


class DocumentKind(str, Enum):
    PDF = "pdf"
    WORD = "word"
    UNSUPPORTED = "unsupported"


class ExtractionErrorCode(str, Enum):
    PDF_PARSE_FAILED = "PDF_PARSE_FAILED"
    WORD_PARSE_FAILED = "WORD_PARSE_FAILED"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    PDF_SCANNED_NO_TEXT = "PDF_SCANNED_NO_TEXT"
    TEXT_TOO_SHORT = "TEXT_TOO_SHORT"


SUGGESTIONS = {
    ExtractionErrorCode.PDF_PARSE_FAILED: "Ensure the file is a valid, non-corrupted PDF.",
    ExtractionErrorCode.WORD_PARSE_FAILED: "Try saving the document as a standard .docx or .pdf file.",
    ExtractionErrorCode.UNSUPPORTED_FORMAT: "Please upload a PDF (.pdf) or Word document (.docx, .doc).",
    ExtractionErrorCode.PDF_SCANNED_NO_TEXT: (
        "Please upload a text-based PDF or use an OCR tool to convert your resume to text."
    ),
    ExtractionErrorCode.TEXT_TOO_SHORT: "Please provide a resume with more substantial text content.",
}


class ExtractionError(Exception):
    """Structured extraction failure with a user-facing suggestion."""

    def __init__(self, code: ExtractionErrorCode, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion or SUGGESTIONS.get(code, "")

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


# ============================================================================
# Normalization
# ============================================================================

_LINE_BREAKS = re.compile(r"\r\n|\r|\f|\v")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B-\x1F\x7F-\x9F]")
_HORIZONTAL_WS = re.compile(r"[ \t\u00a0]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize extracted text.

    - Unifies line endings (page breaks become newlines)
    - Removes control characters except newline and tab
    - Collapses horizontal whitespace
    - Keeps at most one blank line between paragraphs
    - Trims leading/trailing whitespace

    normalize_text(normalize_text(x)) == normalize_text(x)
    """
    if not text:
        return ""
    text = _LINE_BREAKS.sub("\n", text)
    text = _CONTROL_CHARS.sub("", text)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


# ============================================================================
# Format Detection
# ============================================================================

def has_pdf_signature(data: bytes) -> bool:
    if not data or len(data) < len(PDF_SIGNATURE):
        return False
    return PDF_SIGNATURE in data[:PDF_SIGNATURE_WINDOW]


def detect_document_kind(data: bytes, declared_mime_type: Optional[str]) -> DocumentKind:
    """Declared types are not trusted: a PDF signature wins over the declared type."""
    mime = (declared_mime_type or "").split(";")[0].strip().lower()
    if mime == PDF_MIME or has_pdf_signature(data):
        return DocumentKind.PDF
    if mime in (DOCX_MIME, MSWORD_MIME):
        return DocumentKind.WORD
    return DocumentKind.UNSUPPORTED


# ============================================================================
# Extractor
# ============================================================================

class TextExtractor:
    """Per-format extraction with a primary -> fallback chain for PDFs."""

    def __init__(self, min_text_length: int = MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length

    def extract_pdf_primary(self, data: bytes) -> str:
        """PyMuPDF text layer extraction."""
        with fitz.open(stream=data, filetype="pdf") as pdf_document:
            if pdf_document.page_count == 0:
                raise ValueError("PDF has no pages")
            return "\n".join(page.get_text("text") for page in pdf_document)

    def extract_pdf_fallback(self, data: bytes) -> str:
        """pypdf content-stream decoding."""
        reader = PdfReader(io.BytesIO(data))
        if len(reader.pages) == 0:
            raise ValueError("PDF has no pages")
        return "\n".join(page.extract_text() or "" for page in reader.pages)

    def extract_word(self, data: bytes) -> str:
        """Paragraphs followed by table cells (skills grids are often tables)."""
        document = docx.Document(io.BytesIO(data))
        parts = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                parts.append("\t".join(cell.text for cell in row.cells))
        return "\n".join(parts)

    def _extract_pdf(self, data: bytes, tag: str) -> str:
        try:
            return self.extract_pdf_primary(data)
        except Exception as primary_err:
            logger.warning(f"[PARSER]{tag} Primary (PyMuPDF) failed: {primary_err}. Switching to fallback.")
            try:
                return self.extract_pdf_fallback(data)
            except Exception as fallback_err:
                raise ExtractionError(
                    ExtractionErrorCode.PDF_PARSE_FAILED,
                    "All PDF parsing strategies failed. "
                    f"Primary: {primary_err}. Fallback: {fallback_err}",
                )

    def extract(self, data: bytes, declared_mime_type: Optional[str], resume_id=None) -> str:
        """
        Extract and normalize text from a document.

        Args:
            data: Raw file bytes
            declared_mime_type: MIME type recorded at upload (not trusted)
            resume_id: Optional id used to tag log lines

        Returns:
            Normalized text, at least min_text_length characters

        Raises:
            ExtractionError
        """
        tag = f"[{resume_id}]" if resume_id is not None else ""
        logger.info(f"[PARSER]{tag} Extraction start. Buffer size: {len(data or b'')}")

        kind = detect_document_kind(data, declared_mime_type)

        if kind == DocumentKind.PDF:
            raw_text = self._extract_pdf(data, tag)
        elif kind == DocumentKind.WORD:
            try:
                raw_text = self.extract_word(data)
            except Exception as word_err:
                raise ExtractionError(
                    ExtractionErrorCode.WORD_PARSE_FAILED,
                    f"Word Parsing Error: {word_err}",
                )
        else:
            raise ExtractionError(
                ExtractionErrorCode.UNSUPPORTED_FORMAT,
                f"Unsupported file type: {declared_mime_type}",
            )

        normalized = normalize_text(raw_text)
        logger.info(f"[PARSER]{tag} Extraction complete. Kind: {kind.value}. Normalized length: {len(normalized)}")

        if len(normalized) < self.min_text_length:
            if kind == DocumentKind.PDF:
                raise ExtractionError(
                    ExtractionErrorCode.PDF_SCANNED_NO_TEXT,
                    "Extracted text is too short or empty. The PDF might be scanned or image-based.",
                )
            raise ExtractionError(
                ExtractionErrorCode.TEXT_TOO_SHORT,
                f"Extracted text is too short (Length: {len(normalized)}).",
            )

        return normalized
