"""
Shared fixtures: a gateway wired to in-process fake model backends.
"""
import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway import config
from gateway.app import create_app


def chat_body(content: str, role: str = "user") -> bytes:
    return json.dumps({"messages": [{"role": role, "content": content}]}).encode()


def streamed(response: httpx.Response) -> httpx.Response:
    """
    Give a canned response an unread body, like one coming off the network.

    httpx reads bytes content eagerly, which would leave nothing for
    aiter_raw() to relay. Responses that already stream pass through.
    """
    if not response.is_stream_consumed:
        return response
    body = response.content

    async def chunks():
        yield body

    return httpx.Response(response.status_code, headers=response.headers, content=chunks())


class FakeBackends:
    """Answers for both model URLs and remembers every request it saw."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handlers: Dict[str, Callable[[httpx.Request], httpx.Response]] = {
            config.CHEAP_MODEL_URL: lambda r: httpx.Response(
                200, json={"model": "SLM-7B-cheap"}, headers={"x-backend": "cheap"}
            ),
            config.EXPENSIVE_MODEL_URL: lambda r: httpx.Response(
                200, json={"model": "LLM-150B-expensive"}, headers={"x-backend": "expensive"}
            ),
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return streamed(self.handlers[str(request.url)](request))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def last(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None


@pytest.fixture
def backends():
    return FakeBackends()


@pytest.fixture
def gateway_app(backends):
    return create_app(transport=backends.transport)


@pytest.fixture
def client(gateway_app):
    with TestClient(gateway_app) as c:
        yield c


@pytest.fixture
def no_default_key(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_API_KEY", None)
