from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from finworker.health.app import create_app
from finworker.health.server import HealthServer


class TestHealthApp:
    def test_healthz_always_ok(self) -> None:
        client = TestClient(create_app(lambda: False))
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_readyz_ok_when_database_reachable(self) -> None:
        client = TestClient(create_app(lambda: True))
        response = client.get("/readyz")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_readyz_unavailable_when_database_down(self) -> None:
        client = TestClient(create_app(lambda: False))
        response = client.get("/readyz")
        assert response.status_code == 503
        assert response.json() == {"status": "unavailable"}


class TestHealthServer:
    @patch("finworker.health.server.uvicorn.Server")
    def test_start_and_stop(self, mock_server_cls: MagicMock) -> None:
        server = HealthServer("127.0.0.1", 0, lambda: True)

        server.start()
        server.stop()

        mock_server_cls.return_value.run.assert_called_once()
        assert mock_server_cls.return_value.should_exit is True
