from fastapi.testclient import TestClient

from clawdbot.app import create_app


def test_health_and_rpc_through_app(make_settings) -> None:
    app = create_app(make_settings())

    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}

        response = client.post("/api/gateway/rpc", json={"method": "tts.status"})
        assert response.json()["ok"] is True
        assert response.json()["payload"]["enabled"] is False
