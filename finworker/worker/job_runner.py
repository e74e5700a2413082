from finworker.config.settings import Settings
from finworker.database.models import DeadLetterRecord, DocumentJobRecord
from finworker.database.repositories.dead_letter_repository import DeadLetterRepository
from finworker.database.repositories.job_repository import JobRepository
from finworker.identity.exceptions import ElementNotFoundError, IdentityConflictError
from finworker.logging.logger import Log
from finworker.normalization.exceptions import IntegrityCheckError
from finworker.processor.exceptions import DocumentRejectedError
from finworker.processor.processor import Processor
from finworker.provider.exceptions import ProviderError, ProviderTimeoutError
from finworker.worker.retry_policy import determine_retry_outcome

_MAX_MESSAGE_CHARS = 1000
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


def dead_letter_reason(exc: Exception) -> str:
    """Map the final failure of a job to its dead-letter reason."""
    if isinstance(exc, ProviderTimeoutError):
        return "provider-timeout"
    if isinstance(exc, IntegrityCheckError):
        if exc.reason == "balance_mismatch":
            return "balance-mismatch"
        return "identity-resolution-failed"
    if isinstance(exc, (IdentityConflictError, ElementNotFoundError)):
        return "identity-resolution-failed"
    return "provider-error"


def error_code(exc: Exception) -> str:
    return getattr(exc, "code", None) or UNEXPECTED_ERROR


class JobRunner:
    """Run one job, catch exceptions, and apply the retry policy."""

    def __init__(
        self,
        processor: Processor,
        job_repo: JobRepository,
        dead_letter_repo: DeadLetterRepository,
        settings: Settings,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._dead_letter_repo = dead_letter_repo
        self._settings = settings

    def run(self, job: DocumentJobRecord) -> None:
        """Execute a single job with error handling."""
        attempt = job.attempts + 1
        Log.info(
            f"Running job {job.id} for file {job.file_id} (attempt {attempt})",
            job_id=job.id,
            file_id=job.file_id,
            attempt=attempt,
        )
        try:
            outcome = self._processor.process(job)
            self._job_repo.mark_succeeded(job.id, self._settings.version_pin)
            Log.info(f"Job {job.id} succeeded ({outcome.status})")
        except DocumentRejectedError as exc:
            self._job_repo.mark_rejected(job.id, exc.code, str(exc)[:_MAX_MESSAGE_CHARS])
            Log.warning(f"Job {job.id} rejected [{exc.code}]: {exc}")
        except Exception as exc:
            self._handle_failure(job, attempt, exc)

    def _handle_failure(self, job: DocumentJobRecord, attempt: int, exc: Exception) -> None:
        """Schedule a retry below the attempt ceiling, dead-letter at it."""
        code = error_code(exc)
        message = str(exc)[:_MAX_MESSAGE_CHARS]
        log = Log.exception if code == UNEXPECTED_ERROR else Log.error
        log(
            f"Job {job.id} failed on attempt {attempt} [{code}]: {message}",
            job_id=job.id,
            file_id=job.file_id,
            attempt=attempt,
        )
        outcome = determine_retry_outcome(
            attempt,
            self._settings.job_max_attempts,
            self._settings.job_base_backoff_ms,
            self._settings.job_max_backoff_ms,
        )
        if outcome.status == "failed":
            self._job_repo.schedule_retry(job.id, attempt, outcome.delay_ms, code, message)
            Log.warning(f"Job {job.id} will be retried in {outcome.delay_ms} ms")
            return

        self._job_repo.mark_dead_letter(job.id, attempt, code, message)
        reason = dead_letter_reason(exc)
        details: dict[str, object] = {
            "code": code,
            "message": message,
            "attempts": attempt,
            "job_id": job.id,
            "file_id": job.file_id,
        }
        if isinstance(exc, ProviderError):
            details.update(exc.details())
        self._dead_letter_repo.record(
            DeadLetterRecord(
                user_id=job.user_id,
                file_id=job.file_id,
                job_id=job.id,
                reason=reason,
                details=details,
            )
        )
        Log.error(f"Job {job.id} dead-lettered after {attempt} attempts ({reason})")
