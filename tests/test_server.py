"""HTTP adapter tests with the agent dependency overridden."""

import pytest
from fastapi.testclient import TestClient

import server
from gift_finder import GiftFinderAgent
from gift_finder.errors import RecommendationTimeoutError

from .conftest import FakeCatalog, FakePlanner, make_plan


@pytest.fixture
def client_for():
    def build(catalog, planner=None):
        agent = GiftFinderAgent(catalog_client=catalog, planner=planner or FakePlanner(make_plan("x")))
        server.app.dependency_overrides[server.get_agent] = lambda: agent
        return TestClient(server.app)

    yield build
    server.app.dependency_overrides.clear()


def test_health():
    resp = TestClient(server.app).get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["timestamp"]


def test_chat_returns_camel_case_result(client_for, gardening_catalog):
    client = client_for(gardening_catalog, FakePlanner(make_plan("gardening gloves", "pruning shears")))

    resp = client.post(
        "/chat",
        json={
            "message": "gift for my mom who loves gardening, budget 200-500 SEK",
            "history": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "Hello!"}],
            "market": "SE",
            "minPrice": 200,
            "maxPrice": 500,
            "numSuggestions": 5,
        },
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["needsMoreInfo"] is False
    assert 1 <= len(body["products"]) <= 5
    first = body["products"][0]
    assert set(first) >= {"productId", "name", "externalUrl", "price", "reasoning"}
    assert 200 <= first["price"]["max"] and first["price"]["min"] <= 500


def test_chat_is_also_served_under_api_prefix(client_for, gardening_catalog):
    client = client_for(gardening_catalog, FakePlanner(make_plan("gardening gloves")))

    assert client.post("/api/chat", json={"message": "gardening mom"}).status_code == 200


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
def test_chat_requires_message(client_for, body):
    catalog = FakeCatalog()
    resp = client_for(catalog).post("/chat", json=body)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Message is required"
    assert catalog.search_calls == []


def test_chat_rejects_malformed_history(client_for):
    resp = client_for(FakeCatalog()).post(
        "/chat", json={"message": "hi", "history": [{"role": "robot", "text": "beep"}]}
    )

    assert resp.status_code == 400


def test_chat_provider_outage_is_not_an_empty_success(client_for):
    resp = client_for(FakeCatalog(fail_all_searches=True)).post("/chat", json={"message": "gift for dad"})

    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == "Failed to process chat"
    assert body["code"] == "provider_unavailable"
    assert body["details"]


def test_chat_timeout_maps_to_504(client_for, monkeypatch):
    client = client_for(FakeCatalog())
    agent = server.app.dependency_overrides[server.get_agent]()

    async def timed_out(*args, **kwargs):
        raise RecommendationTimeoutError("Gift search took too long")

    monkeypatch.setattr(agent, "chat", timed_out)

    resp = client.post("/chat", json={"message": "gift"})

    assert resp.status_code == 504
    assert resp.json()["code"] == "timeout"


def test_unexpected_error_returns_json_500(client_for):
    class BrokenPlanner(FakePlanner):
        async def plan(self, context):
            raise KeyError("queries")

    client_for(FakeCatalog(), BrokenPlanner(make_plan("x")))
    client = TestClient(server.app, raise_server_exceptions=False)

    resp = client.post("/chat", json={"message": "gift for dad"})

    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Failed to process chat",
        "code": "internal_error",
        "details": "'queries'",
    }


def test_search_endpoint(client_for, gardening_catalog):
    resp = client_for(gardening_catalog).get("/search", params={"q": "pruning shears", "market": "se"})

    assert resp.status_code == 200
    assert [c["productId"] for c in resp.json()] == ["S1", "S2"]
    assert gardening_catalog.search_calls == ["pruning shears"]


def test_search_requires_query(client_for):
    resp = client_for(FakeCatalog()).get("/search")

    assert resp.status_code == 400
    assert "q" in resp.json()["error"]


def test_offers_endpoint(client_for, gardening_catalog):
    client = client_for(gardening_catalog)

    resp = client.get("/offers", params={"productId": "G1", "market": "SE"})
    assert resp.status_code == 200
    assert resp.json() == {
        "productId": "G1",
        "market": "SE",
        "minPrice": 249.0,
        "maxPrice": 299.0,
        "currency": "SEK",
    }

    missing = client.get("/offers", params={"productId": "nope"})
    assert missing.status_code == 200
    assert missing.json() is None


def test_offers_requires_product_id(client_for):
    resp = client_for(FakeCatalog()).get("/offers")

    assert resp.status_code == 400
