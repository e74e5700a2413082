class ConfigurationError(Exception):
    """Raised for fatal misconfiguration (missing pepper, missing credentials)."""

    code = "CONFIGURATION_ERROR"
