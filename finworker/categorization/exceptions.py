class CategorizationError(Exception):
    """Raised when AI categorization fails."""

    code = "CATEGORIZATION_FAILED"


class CategorizationNetworkError(CategorizationError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
