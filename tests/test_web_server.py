import json

from conftest import MODELS_ERROR_TEXT, FakeOllamaClient
from ollama_client import ChatRequest


def open_panel(http):
    response = http.get("/")
    assert response.status_code == 200
    page = response.get_data(as_text=True)
    marker = 'data-panel-id="'
    start = page.index(marker) + len(marker)
    return page[start:page.index('"', start)]


def read_events(response):
    body = response.get_data(as_text=True)
    return [json.loads(frame[len("data: "):]) for frame in body.split("\n\n") if frame.startswith("data: ")]


def test_each_page_load_opens_a_panel(http, registry):
    first = open_panel(http)
    second = open_panel(http)

    assert first != second
    assert len(registry) == 2


def test_models_route(http):
    response = http.get("/api/models")

    assert response.status_code == 200
    assert response.get_json() == {
        "models": [{"id": "a:1", "name": "Alpha"}, {"id": "b:2", "name": "Beta"}],
        "selected": "a:1",
    }


def test_models_route_runtime_down(http, fake_client):
    fake_client.models_error = True

    response = http.get("/api/models")

    assert response.status_code == 502
    assert response.get_json() == {"error": MODELS_ERROR_TEXT}


def test_chat_streams_cumulative_responses(http, fake_client):
    panel_id = open_panel(http)

    response = http.post(f"/api/panels/{panel_id}/messages",
                         json={"command": "chat", "text": "Say hello", "model": "b:2"})

    assert response.status_code == 200
    assert response.mimetype == "text/event-stream"
    events = read_events(response)
    assert [e["text"] for e in events] == ["Hello", "Hello, ", "Hello, world"]
    assert all(e["command"] == "chatResponse" for e in events)
    assert fake_client.calls == [ChatRequest(prompt="Say hello", model_id="b:2")]


def test_chat_without_model_uses_default(http, fake_client):
    panel_id = open_panel(http)

    http.post(f"/api/panels/{panel_id}/messages", json={"command": "chat", "text": "hi"}).get_data()

    assert fake_client.calls[0].model_id == "deepseek-r1:7b"


def test_empty_submission_sends_nothing(http, fake_client):
    panel_id = open_panel(http)

    response = http.post(f"/api/panels/{panel_id}/messages", json={"command": "chat", "text": "   ", "model": "a:1"})

    assert response.status_code == 204
    assert response.get_data() == b""
    assert fake_client.calls == []


def test_unknown_panel(http, fake_client):
    response = http.post("/api/panels/nope/messages", json={"command": "chat", "text": "hi", "model": "a:1"})

    assert response.status_code == 404
    assert fake_client.calls == []


def test_runtime_failure_streams_error(http, fake_client):
    fake_client.fail_after = 1
    panel_id = open_panel(http)

    events = read_events(http.post(f"/api/panels/{panel_id}/messages",
                                   json={"command": "chat", "text": "hi", "model": "a:1"}))

    assert [e["text"] for e in events] == ["Hello", "Error communicating with Ollama."]


def test_static_assets_served(http):
    assert http.get("/static/panel.js").status_code == 200
    assert http.get("/static/panel.css").status_code == 200


def test_reloads_do_not_grow_registry(http, registry):
    panel_ids = [open_panel(http) for _ in range(50)]

    assert len(registry) == registry.max_panels
    assert registry.get(panel_ids[0]) is None
    assert registry.get(panel_ids[-1]) is not None


def test_closing_a_panel(http, registry, fake_client):
    panel_id = open_panel(http)

    assert http.delete(f"/api/panels/{panel_id}").status_code == 204
    assert len(registry) == 0
    assert http.delete(f"/api/panels/{panel_id}").status_code == 404

    response = http.post(f"/api/panels/{panel_id}/messages", json={"command": "chat", "text": "hi", "model": "a:1"})
    assert response.status_code == 404
    assert fake_client.calls == []
