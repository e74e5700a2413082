import threading

from finworker.config.settings import Settings
from finworker.database.connection import get_connection
from finworker.database.models import DocumentJobRecord
from finworker.database.repositories.job_repository import JobRepository
from finworker.logging.logger import Log
from finworker.worker.job_runner import JobRunner


class Worker:
    """Poll loop: claim -> dispatch -> wait.

    Several workers may share one stop event, each in its own thread; they
    coordinate only through the row-locking claim.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until stopped or interrupted.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info("Worker started, polling for jobs")
        jobs_done = 0
        try:
            while not self._stop_event.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                job = self._try_claim_job()
                if job:
                    try:
                        self._job_runner.run(job)
                    except Exception:
                        # job is left in_progress with its locked_at set
                        Log.exception(
                            f"Job {job.id} could not be settled", job_id=job.id, file_id=job.file_id
                        )
                    jobs_done += 1
                else:
                    Log.debug("No jobs available, sleeping")
                    self._stop_event.wait(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        Log.info(f"Worker stopped after {jobs_done} jobs")

    def _try_claim_job(self) -> DocumentJobRecord | None:
        """Attempt to claim the next due job. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._job_repo.claim_next_job(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
