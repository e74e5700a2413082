import pymupdf

from finworker.pdf.base import BasePdfExtractor, ExtractedText
from finworker.pdf.exceptions import PdfExtractionError


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF.

    With ``ocr=True`` each page is rendered through Tesseract instead of
    reading the embedded text layer, for scanned documents.
    """

    def __init__(self, ocr: bool = False) -> None:
        self._ocr = ocr

    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [self._page_text(page).strip() for page in doc]
            return ExtractedText.from_pages(pages)
        except PdfExtractionError:
            raise
        except Exception as exc:
            mode = "ocr" if self._ocr else "text"
            raise PdfExtractionError(f"pymupdf {mode} extraction failed: {exc}") from exc

    def _page_text(self, page: pymupdf.Page) -> str:
        if self._ocr:
            return page.get_text(textpage=page.get_textpage_ocr(full=True))
        return page.get_text()
