"""
Shared fixtures: an in-process fake of the NewWork backend
"""

import json

import httpx
import pytest

from infrastructure.external.api_client import ApiClient


BASE = "http://api.test"


class FakeBackend:
    """
    Routes (method, path) to canned responses and records every request.
    A route value may be a (status, body) tuple, an Exception to raise,
    or a callable taking the httpx.Request.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method: str, path: str, response):
        self.routes[(method, path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "Not found"})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        status, body = response
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def last_json(self):
        return json.loads(self.requests[-1].content)

    def calls(self, method: str, path: str):
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api_client(backend):
    client = ApiClient(base_url="", transport_origin=BASE, transport=httpx.MockTransport(backend.handler))
    yield client
    client.close()
