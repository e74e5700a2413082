from unittest.mock import MagicMock

import pytest

from finworker.config.settings import Settings
from finworker.pdf.base import ExtractedText
from finworker.pdf.exceptions import PdfExtractionError
from finworker.pdf.factory import PdfExtractorFactory
from finworker.pdf.pdfplumber_adapter import PdfPlumberAdapter
from finworker.pdf.pymupdf_adapter import PyMuPdfAdapter
from finworker.pdf.text_extractor import TextExtractor

PDF = b"%PDF-1.4 body"


class TestTextExtractor:
    def test_rejects_non_pdf(self) -> None:
        extractor = TextExtractor(primary=MagicMock())
        with pytest.raises(PdfExtractionError, match="not a PDF"):
            extractor.extract_text(b"PK\x03\x04 zip")

    def test_uses_primary(self) -> None:
        primary = MagicMock()
        primary.extract.return_value = ExtractedText.from_pages(["text"])
        fallback = MagicMock()

        result = TextExtractor(primary, fallback).extract_text(PDF)

        assert result.full_text == "text"
        fallback.extract.assert_not_called()

    def test_falls_back_when_primary_fails(self) -> None:
        primary = MagicMock()
        primary.extract.side_effect = PdfExtractionError("broken")
        fallback = MagicMock()
        fallback.extract.return_value = ExtractedText.from_pages(["ocr text"])

        result = TextExtractor(primary, fallback).extract_text(PDF)

        assert result.full_text == "ocr text"

    def test_primary_failure_without_fallback_raises(self) -> None:
        primary = MagicMock()
        primary.extract.side_effect = PdfExtractionError("broken")

        with pytest.raises(PdfExtractionError):
            TextExtractor(primary).extract_text(PDF)

    def test_falls_back_when_no_text_layer(self) -> None:
        primary = MagicMock()
        primary.extract.return_value = ExtractedText.from_pages([""])
        fallback = MagicMock()
        fallback.extract.return_value = ExtractedText.from_pages(["scanned"])

        assert TextExtractor(primary, fallback).extract_text(PDF).full_text == "scanned"

    def test_keeps_empty_result_when_ocr_fails(self) -> None:
        primary = MagicMock()
        primary.extract.return_value = ExtractedText.from_pages([""])
        fallback = MagicMock()
        fallback.extract.side_effect = PdfExtractionError("tesseract missing")

        result = TextExtractor(primary, fallback).extract_text(PDF)

        assert result.full_text == ""
        assert result.pages == [""]


class TestPdfExtractorFactory:
    def test_default_engine_with_ocr_fallback(self) -> None:
        extractor = PdfExtractorFactory.create(Settings())
        assert isinstance(extractor._primary, PdfPlumberAdapter)
        assert isinstance(extractor._fallback, PyMuPdfAdapter)

    def test_pymupdf_without_fallback(self) -> None:
        extractor = PdfExtractorFactory.create(
            Settings(pdf_engine="PyMuPDF", pdf_ocr_fallback=False)
        )
        assert isinstance(extractor._primary, PyMuPdfAdapter)
        assert extractor._fallback is None

    def test_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfExtractorFactory.create(Settings(pdf_engine="tika"))
