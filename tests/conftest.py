"""Shared test fixtures: an in-process stand-in for the upstream API."""

from __future__ import annotations

import json

import httpx
import pytest

UPSTREAM_URL = "https://upstream.test/api"


class FakeUpstream:
    """Records requests and answers GETs with a canned body."""

    def __init__(self, body: str = "{}", status_code: int = 200, submit_status: int = 200):
        self.body = body
        self.status_code = status_code
        self.submit_status = submit_status
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(self.submit_status, text='{"result":"received"}')
        return httpx.Response(self.status_code, text=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream):
    """An httpx client whose transport is the fake upstream."""
    client = httpx.Client(transport=httpx.MockTransport(upstream.handler))
    yield client
    client.close()
