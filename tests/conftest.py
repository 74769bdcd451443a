import json
from pathlib import Path
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_relay.config import Settings
from chat_relay.main import create_app


def completion_body(content="Hello from the model", **extra) -> dict:
    body = {
        "id": "gen-123",
        "model": "openai/gpt-4o",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}}
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }
    body.update(extra)
    return body


class StubUpstream:
    """Records outbound requests and answers with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=completion_body())
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def prompt_file(tmp_path: Path) -> Path:
    path = tmp_path / "prompt.txt"
    path.write_text("You are Vinayak's portfolio assistant.", encoding="utf-8")
    return path


@pytest.fixture
def make_settings(tmp_path: Path, prompt_file: Path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "upstream_api_key": "test-key",
            "prompt_path": str(prompt_file),
            "rate_limit_max": 0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def upstream() -> StubUpstream:
    return StubUpstream()


@pytest.fixture
def make_client(make_settings, upstream):
    clients = []

    def _make(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides), transport=upstream.transport())
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
