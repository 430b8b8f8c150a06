from fastapi import FastAPI
from fastapi.testclient import TestClient

from clawdbot.routers import commands as commands_router
from clawdbot.routers.gateway import get_gateway_context
from clawdbot.routers.tts import GatewayContext


def make_client(settings) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_gateway_context] = lambda: GatewayContext(settings=settings)
    app.include_router(commands_router.router)
    return TestClient(app)


def test_tts_command_is_handled(make_settings) -> None:
    client = make_client(make_settings())

    response = client.post("/api/commands", json={"text": "/tts limit 2000"})

    assert response.status_code == 200
    body = response.json()
    assert body["handled"] is True
    assert body["reply"]["text"] == "✅ TTS limit set to 2000 characters."


def test_other_text_is_not_handled(make_settings) -> None:
    client = make_client(make_settings())

    response = client.post("/api/commands", json={"text": "what's the weather?"})

    assert response.json() == {"handled": False, "reply": None}


def test_broken_config_is_503(make_settings, write_config) -> None:
    settings = make_settings()
    write_config(settings, {"messages": {"tts": {"mode": "sometimes"}}})
    client = make_client(settings)

    response = client.post("/api/commands", json={"text": "/tts status"})

    assert response.status_code == 503
