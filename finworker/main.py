import signal
import threading
from types import FrameType

from finworker.config.settings import Settings
from finworker.database.connection import check_connection, close_pool, init_pool
from finworker.database.repositories.dead_letter_repository import DeadLetterRepository
from finworker.database.repositories.job_repository import JobRepository
from finworker.health.server import HealthServer
from finworker.logging.logger import Log
from finworker.processor.processor import build_processor
from finworker.provider.client import ExtractionProviderClient
from finworker.worker.job_runner import JobRunner
from finworker.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker threads."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    provider = ExtractionProviderClient(
        api_key=settings.provider_api_key,
        base_url=settings.provider_base_url,
        timeout_seconds=settings.provider_http_timeout_seconds,
    )
    stop_event = threading.Event()
    health: HealthServer | None = None

    def _request_stop(signum: int, _frame: FrameType | None) -> None:
        Log.info(f"Received signal {signum}, stopping workers")
        stop_event.set()

    signal.signal(signal.SIGTERM, _request_stop)

    try:
        processor = build_processor(settings, provider)
        job_repo = JobRepository()
        job_runner = JobRunner(processor, job_repo, DeadLetterRepository(), settings)

        if settings.health_enabled:
            health = HealthServer(settings.health_host, settings.health_port, check_connection)
            health.start()

        threads = [
            threading.Thread(
                target=Worker(job_repo, job_runner, settings, stop_event).run,
                name=f"worker-{index}",
            )
            for index in range(settings.worker_concurrency)
        ]
        for thread in threads:
            thread.start()
        Log.info(f"Started {len(threads)} worker threads")
        try:
            while any(thread.is_alive() for thread in threads):
                for thread in threads:
                    thread.join(timeout=1.0)
        except KeyboardInterrupt:
            Log.info("Interrupted, waiting for in-flight jobs to finish")
            stop_event.set()
            for thread in threads:
                thread.join()
    finally:
        if health is not None:
            health.stop()
        provider.close()
        close_pool()


if __name__ == "__main__":
    main()
