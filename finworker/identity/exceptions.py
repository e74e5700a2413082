from finworker.config.exceptions import ConfigurationError


class IdentityConflictError(ConfigurationError):
    """Raised when an update document touches raw_institution_names through more than one operator."""

    code = "IDENTITY_CONFLICT"


class ElementNotFoundError(ValueError):
    """Raised when an element update targets a value absent from the current array."""

    code = "IDENTITY_ELEMENT_NOT_FOUND"
