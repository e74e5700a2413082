from pathlib import Path

from finworker.database.models import DocumentJobRecord
from finworker.processor.exceptions import DocumentNotFoundError, UnsupportedStorageDiskError


def document_file_path(files_root: Path, user_id: str, file_id: str) -> Path:
    """Build path to an uploaded file: {files_root}/{user_id}/{file_id}"""
    return files_root / str(user_id) / file_id


class FileLoader:
    """Resolves the storage key for a job's upload and reads its bytes."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, job: DocumentJobRecord) -> bytes:
        """Read the uploaded bytes from disk.

        Raises:
            DocumentNotFoundError: if the file does not exist at resolved path.
            UnsupportedStorageDiskError: if storage_disk is not 'local'.
        """
        if job.storage_disk != "local":
            raise UnsupportedStorageDiskError(
                f"storage_disk '{job.storage_disk}' is not supported"
            )
        path = document_file_path(self._files_root, job.user_id, job.file_id)
        if not path.exists():
            raise DocumentNotFoundError(f"File not found: {path}")
        return path.read_bytes()
