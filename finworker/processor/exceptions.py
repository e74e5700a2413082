class ProcessorError(Exception):
    """Base exception for all processor-related errors."""

    code = "PROCESSOR_ERROR"


class DocumentRejectedError(ProcessorError):
    """Permanent input error. The job is rejected without consuming retries."""

    code = "REJECTED"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class DocumentNotFoundError(DocumentRejectedError):
    """Raised when the uploaded file is missing from storage."""

    code = "FILE_NOT_FOUND"


class UnsupportedStorageDiskError(DocumentRejectedError):
    """Raised when a job points at an unsupported storage disk type."""

    code = "UNSUPPORTED_STORAGE"
