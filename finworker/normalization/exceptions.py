class NormalizationError(Exception):
    """Raised when normalization fails."""

    code = "NORMALIZATION_FAILED"


class ExtractionIncompleteError(NormalizationError):
    """Raised by the pipeline when the provider result lacks mandatory fields."""

    code = "EXTRACTION_INCOMPLETE"


class NormalizationValidationError(NormalizationError):
    """Raised when normalized metrics fail schema validation."""

    code = "VALIDATION_FAILED"


class IntegrityCheckError(NormalizationError):
    """Raised when normalized totals do not reconcile."""

    code = "INTEGRITY_FAILED"

    def __init__(self, message: str, reason: str, delta: int | None = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.delta = delta
