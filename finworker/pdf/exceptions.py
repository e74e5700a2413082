class PdfExtractionError(Exception):
    """Raised when text cannot be extracted from a document."""

    code = "PDF_EXTRACTION_FAILED"
