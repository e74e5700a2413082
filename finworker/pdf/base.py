from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtractedText:
    """Per-page text plus the joined full text."""

    pages: list[str] = field(default_factory=list)
    full_text: str = ""

    @classmethod
    def from_pages(cls, pages: list[str]) -> "ExtractedText":
        return cls(pages=pages, full_text="\n".join(pages).strip())


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        """Extract text from PDF bytes.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """
