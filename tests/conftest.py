"""
Shared fixtures: a stubbed provider on an httpx MockTransport.
Every AsyncClient the dispatcher opens is routed to the stub, which records
the requests it sees and answers with whatever the test configured.
"""

import json

import httpx
import pytest


class ProviderStub:
    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._respond = lambda request: httpx.Response(200, json={})

    def reply(self, status: int = 200, json_body=None, text: str | None = None):
        if text is not None:
            self._respond = lambda request: httpx.Response(status, text=text)
        else:
            self._respond = lambda request: httpx.Response(status, json=json_body)

    def fail(self, exc_type=httpx.ConnectError, message: str = "connection refused"):
        def raiser(request):
            raise exc_type(message, request=request)
        self._respond = raiser

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def provider_stub(monkeypatch):
    stub = ProviderStub()
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(stub.handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr("chatrelay.dispatcher.httpx.AsyncClient", client_factory)
    return stub
