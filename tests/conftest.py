"""
Shared fixtures: a recording fake of the ``requests`` surface used by the clients.
"""
import json
import sys
from pathlib import Path

import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from lapin_ops.api.client import ApiClient
from lapin_ops.auth.session import SessionStore


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self.text = json.dumps(payload) if payload is not None else text

    def json(self):
        return json.loads(self.text)


class FakeHttp:
    """
    Stand-in for ``requests``/``requests.Session``.

    Responses are queued per method; an Exception instance in the queue is
    raised instead of returned. Every call is recorded.
    """

    def __init__(self):
        self.calls = []
        self.queued = {"GET": [], "POST": []}

    def queue(self, method, response):
        self.queued[method].append(response)
        return self

    def _next(self, method):
        if not self.queued[method]:
            return FakeResponse(200, payload={"success": True, "data": {}})
        item = self.queued[method].pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(("GET", url, params, headers))
        return self._next("GET")

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append(("POST", url, data, headers))
        return self._next("POST")


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def api(http):
    return ApiClient(base_url="https://example.test/exec", token_provider=lambda: "tok", http=http, timeout=5)


@pytest.fixture
def store():
    return SessionStore({})


@pytest.fixture
def network_error():
    return requests.ConnectionError("connection refused")
