import threading
from collections.abc import Callable

import uvicorn

from finworker.health.app import create_app
from finworker.logging.logger import Log


class HealthServer:
    """Serves the health app from a daemon thread next to the worker threads."""

    def __init__(self, host: str, port: int, readiness_check: Callable[[], bool]) -> None:
        config = uvicorn.Config(
            create_app(readiness_check),
            host=host,
            port=port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        self._thread: threading.Thread | None = None
        self._host = host
        self._port = port

    def start(self) -> None:
        Log.info(f"Starting health server on {self._host}:{self._port}")
        self._thread = threading.Thread(target=self._server.run, name="health", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
