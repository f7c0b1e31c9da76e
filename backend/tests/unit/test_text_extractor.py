"""
Text extractor tests: format detection, PDF/Word extraction, normalization and error codes
"""
import pytest

from resume_engine.services.text_extractor import (
    DOCX_MIME,
    MSWORD_MIME,
    PDF_MIME,
    DocumentKind,
    ExtractionError,
    ExtractionErrorCode,
    TextExtractor,
    detect_document_kind,
    has_pdf_signature,
    normalize_text,
)

from conftest import RESUME_TEXT, make_docx, make_pdf


class TestNormalizeText:

    def test_unifies_line_endings_and_page_breaks(self):
        assert normalize_text("a\r\nb\rc\fd") == "a\nb\nc\nd"

    def test_removes_control_characters(self):
        assert normalize_text("Jane\x00 Doe\x07\x1b") == "Jane Doe"

    def test_collapses_horizontal_whitespace(self):
        assert normalize_text("Jane \t   Doe") == "Jane Doe"

    def test_trims_spaces_around_newlines(self):
        assert normalize_text("Skills   \n   Python") == "Skills\nPython"

    def test_keeps_at_most_one_blank_line(self):
        assert normalize_text("Experience\n\n\n\n\nEducation") == "Experience\n\nEducation"

    def test_strips_outer_whitespace(self):
        assert normalize_text("\n\n  Jane Doe  \n\n") == "Jane Doe"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert normalize_text(value) == ""

    @pytest.mark.parametrize("raw", [
        "  Jane\r\n\r\n\r\n\tDoe \x0c Summary\x00 \n \n \n end ",
        "a  \n\x0b\n\n\n b\r\r\r\rc",
        "\x85 odd \x9f control \n\t\n\t\n\t tail",
    ])
    def test_is_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once


class TestFormatDetection:

    def test_pdf_signature_at_start(self):
        assert has_pdf_signature(b"%PDF-1.7\n...")

    def test_pdf_signature_after_preamble(self):
        assert has_pdf_signature(b"\x00" * 100 + b"%PDF-1.4")

    def test_no_signature(self):
        assert not has_pdf_signature(b"PK\x03\x04 zip data")
        assert not has_pdf_signature(b"")

    def test_signature_beats_declared_type(self):
        assert detect_document_kind(b"%PDF-1.4 ...", DOCX_MIME) == DocumentKind.PDF

    def test_declared_word_types(self):
        assert detect_document_kind(b"PK\x03\x04", DOCX_MIME) == DocumentKind.WORD
        assert detect_document_kind(b"\xd0\xcf\x11\xe0", MSWORD_MIME) == DocumentKind.WORD

    def test_mime_parameters_are_ignored(self):
        assert detect_document_kind(b"", "application/pdf; charset=binary") == DocumentKind.PDF

    def test_unsupported(self):
        assert detect_document_kind(b"hello", "text/plain") == DocumentKind.UNSUPPORTED


class TestTextExtractor:

    def test_extracts_text_based_pdf(self):
        text = TextExtractor().extract(make_pdf(RESUME_TEXT), PDF_MIME)

        assert "Jane Doe" in text
        assert "jane.doe@example.com" in text
        assert len(text) >= 50
        assert normalize_text(text) == text

    def test_pdf_falls_back_when_primary_fails(self, monkeypatch):
        extractor = TextExtractor()

        def broken_primary(data):
            raise RuntimeError("primary broke")

        monkeypatch.setattr(extractor, "extract_pdf_primary", broken_primary)
        text = extractor.extract(make_pdf(RESUME_TEXT), PDF_MIME)

        assert "Jane Doe" in text

    def test_pdf_parse_failed_when_both_strategies_fail(self):
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(b"%PDF-1.4 this is not really a pdf", PDF_MIME)

        assert exc_info.value.code == ExtractionErrorCode.PDF_PARSE_FAILED
        assert "Primary" in exc_info.value.message
        assert "Fallback" in exc_info.value.message

    def test_short_pdf_text_is_reported_as_scanned(self):
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(make_pdf("Jane Doe"), PDF_MIME)

        assert exc_info.value.code == ExtractionErrorCode.PDF_SCANNED_NO_TEXT
        assert exc_info.value.suggestion

    def test_extracts_docx_paragraphs_and_tables(self):
        data = make_docx(
            ["Jane Doe", "Senior Software Engineer with eight years of experience."],
            table_rows=[["Python", "Kubernetes"], ["PostgreSQL", "Kafka"]],
        )
        text = TextExtractor().extract(data, DOCX_MIME)

        assert text.startswith("Jane Doe")
        assert "Python Kubernetes" in text
        assert "PostgreSQL Kafka" in text

    def test_short_docx_is_text_too_short(self):
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(make_docx(["Jane"]), DOCX_MIME)

        assert exc_info.value.code == ExtractionErrorCode.TEXT_TOO_SHORT

    def test_corrupt_word_document(self):
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(b"\xd0\xcf\x11\xe0 legacy binary doc", MSWORD_MIME)

        assert exc_info.value.code == ExtractionErrorCode.WORD_PARSE_FAILED

    def test_unsupported_format(self):
        with pytest.raises(ExtractionError) as exc_info:
            TextExtractor().extract(b"plain text resume", "text/plain")

        assert exc_info.value.code == ExtractionErrorCode.UNSUPPORTED_FORMAT
        assert str(exc_info.value).startswith("[UNSUPPORTED_FORMAT]")

    def test_min_length_is_configurable(self):
        text = TextExtractor(min_text_length=5).extract(make_docx(["Jane Doe"]), DOCX_MIME)
        assert text == "Jane Doe"
