"""Tests for the upstream API client (fetch and submit)."""

import json
import logging

import httpx
import pytest

from src.tools.api_client import (
    DEFAULT_API_BASE,
    DEFAULT_TIMEOUT,
    UpstreamError,
    _api_timeout,
    build_submit_payload,
    fetch_raw,
    submit_text,
)
from src.utils.json_repair import InvalidJsonError

URL = "https://upstream.test/api"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("JSON_API_BASE", raising=False)
    monkeypatch.delenv("JSON_API_EMAIL", raising=False)
    monkeypatch.delenv("JSON_API_TIMEOUT", raising=False)


class TestFetchRaw:
    def test_returns_body_untouched(self, upstream, http_client):
        upstream.body = '{a:1,}'
        assert fetch_raw(URL, "me@example.com", client=http_client) == '{a:1,}'

    def test_sends_email_query(self, upstream, http_client):
        fetch_raw(URL, "me@example.com", client=http_client)
        request = upstream.requests[-1]
        assert request.method == "GET"
        assert request.url.params["email"] == "me@example.com"

    def test_empty_email_omits_query(self, upstream, http_client):
        fetch_raw(URL, "", client=http_client)
        assert "email" not in upstream.requests[-1].url.params

    def test_defaults_from_environment(self, upstream, http_client, monkeypatch):
        monkeypatch.setenv("JSON_API_BASE", "https://env.test/data")
        monkeypatch.setenv("JSON_API_EMAIL", "env@example.com")
        fetch_raw(client=http_client)
        request = upstream.requests[-1]
        assert request.url.host == "env.test"
        assert request.url.params["email"] == "env@example.com"

    def test_default_base_url(self, upstream, http_client):
        fetch_raw(client=http_client)
        assert str(upstream.requests[-1].url).startswith(DEFAULT_API_BASE)

    def test_http_error_status(self, upstream, http_client):
        upstream.status_code = 500
        with pytest.raises(UpstreamError) as exc_info:
            fetch_raw(URL, client=http_client)
        assert exc_info.value.status_code == 500

    def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        with pytest.raises(UpstreamError) as exc_info:
            fetch_raw(URL, client=client)
        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)


class TestBuildSubmitPayload:
    def test_data_is_compact_json_string(self):
        payload = build_submit_payload({"a": [1, 2], "b": {"c": None}}, "me@example.com")
        assert payload.email == "me@example.com"
        assert payload.data == '{"a":[1,2],"b":{"c":null}}'

    def test_keeps_non_ascii_and_order(self):
        payload = build_submit_payload({"z": "é", "a": 1})
        assert payload.data == '{"z":"é","a":1}'


class TestSubmitText:
    def test_posts_payload(self, upstream, http_client):
        resp = submit_text('{\n  "a": 1\n}', URL, "me@example.com", client=http_client)
        assert resp.status_code == 200
        assert resp.body == '{"result":"received"}'

        request = upstream.requests[-1]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        assert request.url.params["email"] == "me@example.com"
        body = upstream.last_json
        assert body == {"email": "me@example.com", "data": '{"a":1}'}
        assert json.loads(body["data"]) == {"a": 1}

    def test_invalid_text_is_not_sent(self, upstream, http_client):
        with pytest.raises(InvalidJsonError):
            submit_text("{a:1,}", URL, client=http_client)
        assert upstream.requests == []

    def test_rejected_submission(self, upstream, http_client):
        upstream.submit_status = 400
        with pytest.raises(UpstreamError) as exc_info:
            submit_text("[1]", URL, client=http_client)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("literal", ["1e400", "-1e400"])
    def test_overflowing_number_sent_as_null(self, upstream, http_client, literal):
        submit_text(f'{{"a": {literal}}}', URL, client=http_client)
        assert upstream.last_json["data"] == '{"a":null}'


class TestTimeoutSetting:
    def test_default(self):
        assert _api_timeout() == DEFAULT_TIMEOUT

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("JSON_API_TIMEOUT", "2.5")
        assert _api_timeout() == 2.5

    def test_malformed_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("JSON_API_TIMEOUT", "soon")
        with caplog.at_level(logging.WARNING, logger="src.tools.api_client"):
            assert _api_timeout() == DEFAULT_TIMEOUT
        assert "JSON_API_TIMEOUT" in caplog.text
