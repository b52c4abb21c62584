import pytest

from ollama_client import ModelDescriptor, RuntimeCommunicationError
from panel import PanelRegistry, PanelRenderer, PanelServer


ERROR_TEXT = "Error communicating with Ollama."
BUSY_TEXT = "A response is still streaming."
MODELS_ERROR_TEXT = "Error fetching models from Ollama."


class FakeOllamaClient:
    """Stands in for OllamaClient; records every chat call."""

    server_url = "http://localhost:11434"

    def __init__(self, chunks=None, fail_after=None, models=None, models_error=False):
        self.chunks = chunks or []
        self.fail_after = fail_after
        self.models = models or []
        self.models_error = models_error
        self.calls = []

    def chat_stream(self, request):
        self.calls.append(request)
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise RuntimeCommunicationError("connection reset")
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self.chunks):
            raise RuntimeCommunicationError("connection reset")

    def list_models(self):
        if self.models_error:
            raise RuntimeCommunicationError("connection refused")
        return list(self.models)


@pytest.fixture
def renderer():
    return PanelRenderer(pygments_style="github-dark", guess_code_language=False, title="Ollama based AI")


@pytest.fixture
def fake_client():
    return FakeOllamaClient(
        chunks=["Hello", ", ", "world"],
        models=[ModelDescriptor("a:1", "Alpha"), ModelDescriptor("b:2", "Beta")],
    )


@pytest.fixture
def registry(fake_client, renderer):
    return PanelRegistry(fake_client, renderer, error_message=ERROR_TEXT, busy_message=BUSY_TEXT, max_panels=8)


@pytest.fixture
def server(fake_client, renderer, registry):
    return PanelServer(fake_client, renderer, registry, host="127.0.0.1", port=5050,
                       default_model="deepseek-r1:7b", models_error_message=MODELS_ERROR_TEXT)


@pytest.fixture
def http(server):
    server.app.config["TESTING"] = True
    return server.app.test_client()
