from finworker.config.settings import Settings
from finworker.pdf.base import BasePdfExtractor
from finworker.pdf.pdfplumber_adapter import PdfPlumberAdapter
from finworker.pdf.pymupdf_adapter import PyMuPdfAdapter
from finworker.pdf.text_extractor import TextExtractor


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> TextExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        fallback = PyMuPdfAdapter(ocr=True) if settings.pdf_ocr_fallback else None
        return TextExtractor(primary=adapter_cls(), fallback=fallback)
