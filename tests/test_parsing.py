import io
import pytest
from unittest.mock import patch

from app.helpers.parsing import clean_text, extract_text, file_type_from_name
from app.utils.exceptions import ExtractionError, UnsupportedFormatError


class TestTextExtraction:
    """Test cases for document text extraction"""

    def test_extract_txt(self):
        """Test plain text decoding and line normalization"""
        data = "John Doe\r\n\r\n\r\n\r\nSkills:\t Python   SQL\r\n".encode("utf-8")
        assert extract_text(data, "txt") == "John Doe\n\nSkills: Python SQL"

    def test_extract_docx(self):
        """Test paragraph extraction from a generated DOCX"""
        from docx import Document

        doc = Document()
        doc.add_paragraph("Jane Smith")
        doc.add_paragraph("Experience")
        buf = io.BytesIO()
        doc.save(buf)

        assert extract_text(buf.getvalue(), "docx") == "Jane Smith\nExperience"

    def test_extract_pdf_uses_pdfminer(self):
        """Test that PDFs go through pdfminer"""
        with patch("app.helpers.parsing.pdf_extract", return_value="Resume text\n") as mock_pdf:
            assert extract_text(b"%PDF-1.4", "pdf") == "Resume text"
            mock_pdf.assert_called_once()

    def test_legacy_doc_is_unsupported(self):
        """Test that legacy .doc uploads are rejected with a clear error"""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            extract_text(b"\xd0\xcf\x11\xe0", "doc")
        assert exc_info.value.error_code == "UNSUPPORTED_FORMAT"
        assert exc_info.value.details["document_type"] == "doc"

    def test_unknown_type_is_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            extract_text(b"data", "rtf")

    def test_empty_document_raises_extraction_error(self):
        """Test that a document without readable text is an extraction failure"""
        with pytest.raises(ExtractionError):
            extract_text(b"   \n  ", "txt")

    def test_corrupt_docx_raises_extraction_error(self):
        with pytest.raises(ExtractionError) as exc_info:
            extract_text(b"not a zip file", "docx")
        assert exc_info.value.cause is not None


class TestHelpers:
    """Test cases for parsing helpers"""

    def test_file_type_from_name(self):
        assert file_type_from_name("CV.PDF") == "pdf"
        assert file_type_from_name("resume.final.docx") == "docx"
        assert file_type_from_name("noext") == ""
        assert file_type_from_name(None) == ""

    def test_clean_text(self):
        assert clean_text("  a \n\n b\tc  ") == "a b c"
