import httpx
import pytest
from fastapi.testclient import TestClient

from medsuite.config import Settings
from medsuite.main import create_app
from medsuite.registry import ToolRegistry

TOOL_ENTRIES = [
    {
        "id": "mental-health",
        "name": "Mental Health Care Plan Generator",
        "description": "GP Mental Health Treatment Plan",
        "prompt_template": "GP Mental Health Treatment Plan – {DATE}\n\nPatient Information: {INPUT_DATA}",
        "temperature": 0.3,
        "max_tokens": 4000,
    },
    {
        "id": "dexa-interpreter",
        "name": "DEXA Scan Interpreter",
        "prompt_template": "DEXA Scan Interpretation Report – {DATE}\n\nDEXA Scan Data to Interpret: {INPUT_DATA}",
        "model": "gpt-4o",
        "temperature": 0.2,
        "max_tokens": 3000,
    },
    {
        "id": "spirometry-interpreter",
        "name": "Spirometry Interpreter",
        "prompt_template": "Spirometry Data to Interpret: {INPUT_DATA}",
    },
]


class FakeCompletionAPI:
    """httpx MockTransport handler that records requests and returns a canned reply."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {
            "choices": [{"message": {"role": "assistant", "content": "Generated plan"}}],
            "usage": {"total_tokens": 42},
        }
        self.exc = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def registry():
    return ToolRegistry.from_entries(TOOL_ENTRIES)


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test", log_dir=None)


@pytest.fixture
def completion_api():
    return FakeCompletionAPI()


@pytest.fixture
def make_client(registry, completion_api):
    clients = []

    def _make(app_settings):
        app = create_app(
            settings=app_settings,
            registry=registry,
            transport=httpx.MockTransport(completion_api),
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)
