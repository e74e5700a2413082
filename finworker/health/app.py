from collections.abc import Callable

from fastapi import FastAPI
from fastapi.responses import JSONResponse


def create_app(readiness_check: Callable[[], bool]) -> FastAPI:
    """Minimal app exposing liveness and readiness probes."""
    app = FastAPI(title="finworker health")

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/readyz")
    def readyz() -> JSONResponse:
        if readiness_check():
            return JSONResponse({"status": "ready"})
        return JSONResponse({"status": "unavailable"}, status_code=503)

    return app
