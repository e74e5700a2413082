from finworker.logging.logger import Log
from finworker.pdf.base import BasePdfExtractor, ExtractedText
from finworker.pdf.exceptions import PdfExtractionError

_PDF_MAGIC = b"%PDF"


class TextExtractor:
    """Primary text extraction with an optional OCR fallback of the same shape.

    The fallback runs when the primary extractor fails, and also when it
    finds no text layer at all (scanned documents).
    """

    def __init__(self, primary: BasePdfExtractor, fallback: BasePdfExtractor | None = None) -> None:
        self._primary = primary
        self._fallback = fallback

    def extract_text(self, buffer: bytes) -> ExtractedText:
        """Extract text from a PDF buffer.

        Raises:
            PdfExtractionError: the buffer is not a PDF, or every extractor failed.
        """
        if not buffer.lstrip()[:4].startswith(_PDF_MAGIC):
            raise PdfExtractionError("File is not a PDF document")
        try:
            result = self._primary.extract(buffer)
        except PdfExtractionError as exc:
            if self._fallback is None:
                raise
            Log.warning(f"Primary text extraction failed, trying OCR fallback: {exc}")
            return self._fallback.extract(buffer)

        if result.full_text or self._fallback is None:
            return result
        try:
            return self._fallback.extract(buffer)
        except PdfExtractionError as exc:
            Log.warning(f"OCR fallback failed on a document without a text layer: {exc}")
            return result
