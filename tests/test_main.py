import pytest
import httpx
import respx
from httpx import Response
from fastapi.testclient import TestClient
from faceit_gateway.main import app as main_app, build_state
from faceit_gateway.config import load_config

BASE_URL = "https://open.faceit.com/data/v4"


@pytest.fixture(autouse=True)
def set_env(monkeypatch):
    monkeypatch.setenv("FACEIT_API_KEYS", "test_key_1,test_key_2")
    monkeypatch.delenv("FACEIT_API_URL", raising=False)


@pytest.fixture
def app():
    config = load_config(use_dotenv=False)
    http_client = httpx.AsyncClient(base_url=config.faceit_base_url)
    build_state(main_app, config, http_client)

    yield main_app

    for name in ("config", "http_client", "key_manager", "gateway"):
        if hasattr(main_app.state, name):
            delattr(main_app.state, name)


def test_health_check(app):
    client = TestClient(app)
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["keys_available"] == 2
    assert data["total_keys"] == 2


def test_admin_keys_status(app):
    client = TestClient(app)
    response = client.get("/admin/keys")
    assert response.status_code == 200
    data = response.json()
    assert data["total_keys"] == 2
    assert [key["key_prefix"] for key in data["keys"]] == ["test_key...", "test_key..."]
    assert "test_key_1" not in response.text


def test_search_requires_query(app):
    client = TestClient(app)
    response = client.get("/api/faceit/search")
    assert response.status_code == 400
    assert response.json() == {"error": "q required"}


@respx.mock
def test_player_route_injects_api_key(app):
    player_mock = respx.get(f"{BASE_URL}/players/p1").mock(
        return_value=Response(
            200,
            json={"player_id": "p1", "nickname": "nick", "games": {"cs2": {"faceit_elo": 1999}}},
        )
    )
    respx.get(f"{BASE_URL}/players/p1/stats/cs2").mock(
        return_value=Response(200, json={"lifetime": {"Average K/D Ratio": "1.05", "Win Rate %": "50"}})
    )

    client = TestClient(app)
    response = client.get("/api/faceit/players/p1")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "p1"
    assert data["elo"] == 1999
    assert data["kdRatio"] == 1.05
    assert data["hltv"] == 0
    assert player_mock.called
    assert player_mock.calls[0].request.headers["Authorization"] in [
        "Bearer test_key_1",
        "Bearer test_key_2",
    ]


@respx.mock
def test_unknown_match_returns_404(app):
    respx.get(f"{BASE_URL}/matches/nope").mock(return_value=Response(404, json={}))
    respx.get(f"{BASE_URL}/matches/nope/stats").mock(return_value=Response(404, json={}))

    client = TestClient(app)
    response = client.get("/api/faceit/matches/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "Not found"
