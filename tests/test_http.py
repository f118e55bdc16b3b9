"""Tests for http.py"""

import json

import pytest
import requests

from api_service.http import HttpClient, NetworkError, TransportError


class DummyResponse:
    def __init__(self, status_code=200, body=None, content_type="application/json", reason="OK", url=""):
        self.status_code = status_code
        self.reason = reason
        self.url = url
        self.headers = {"Content-Type": content_type} if content_type else {}
        self._body = body

    def json(self):
        if isinstance(self._body, (dict, list)):
            return self._body
        return json.loads(self._body)

    @property
    def text(self):
        return self._body if isinstance(self._body, str) else json.dumps(self._body)


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def _client(session, base_url="https://api.example.com/v1/", headers=None, **kw):
    return HttpClient(base_url, headers, session=session, **kw)


def test_build_url_joins_base_and_endpoint():
    client = _client(FakeSession())
    assert client.build_url("items") == "https://api.example.com/v1/items"


def test_build_url_keeps_absolute_url():
    client = _client(FakeSession())
    assert client.build_url("http://other.example/x") == "http://other.example/x"


def test_build_url_encodes_params():
    client = _client(FakeSession())
    url = client.build_url("items", {"q": "a b", "page": 2})
    assert url == "https://api.example.com/v1/items?q=a+b&page=2"


def test_build_url_appends_to_existing_query():
    client = _client(FakeSession())
    assert client.build_url("items?x=1", {"y": "2"}).endswith("items?x=1&y=2")


def test_build_url_empty_params_adds_nothing():
    client = _client(FakeSession())
    assert client.build_url("items", {}) == "https://api.example.com/v1/items"


def test_header_merge_order():
    session = FakeSession(DummyResponse(200, {"ok": True}))
    client = _client(session, headers={"Accept": "text/plain", "X-Key": "default", "X-Other": "1"})
    client.request("items", headers={"X-Key": "call"})
    headers = session.calls[0]["headers"]
    assert headers["Accept"] == "text/plain"
    assert headers["X-Key"] == "call"
    assert headers["X-Other"] == "1"


def test_default_accept_header():
    session = FakeSession(DummyResponse(200, {"ok": True}))
    _client(session).request("items")
    assert session.calls[0]["headers"]["Accept"] == "application/json"


def test_json_body_decoded():
    session = FakeSession(DummyResponse(200, {"a": 1}, content_type="application/json; charset=utf-8"))
    resp = _client(session).request("items")
    assert resp.ok is True
    assert resp.status_code == 200
    assert resp.body == {"a": 1}


def test_invalid_json_body_uses_sentinel():
    session = FakeSession(DummyResponse(200, "<html>oops</html>"))
    resp = _client(session).request("items")
    assert resp.body == {"message": "Invalid JSON response."}


def test_text_body_when_not_json():
    session = FakeSession(DummyResponse(200, "plain words", content_type="text/plain"))
    assert _client(session).get("items") == "plain words"


def test_non_2xx_raises_transport_error():
    session = FakeSession(DummyResponse(404, {"message": "nope"}, reason="Not Found", url="https://api.example.com/v1/x"))
    with pytest.raises(TransportError) as info:
        _client(session).get("x")
    err = info.value
    assert err.status == 404
    assert err.status_text == "Not Found"
    assert err.url == "https://api.example.com/v1/x"
    assert err.body == {"message": "nope"}


def test_request_exception_becomes_network_error():
    session = FakeSession(exc=requests.exceptions.ConnectionError("reset"))
    with pytest.raises(NetworkError) as info:
        _client(session).get("x")
    assert isinstance(info.value.__cause__, requests.exceptions.ConnectionError)


def test_post_serializes_json_body():
    session = FakeSession(DummyResponse(201, {"id": 7}))
    body = _client(session).post("items", {"name": "기상"})
    call = session.calls[0]
    assert body == {"id": 7}
    assert call["method"] == "POST"
    assert call["headers"]["Content-Type"] == "application/json"
    assert json.loads(call["data"]) == {"name": "기상"}


def test_put_and_delete_methods():
    session = FakeSession(DummyResponse(200, {}))
    client = _client(session)
    client.put("items/1", {"x": 1}, headers={"Content-Type": "application/merge-patch+json"})
    client.delete("items/1")
    assert session.calls[0]["method"] == "PUT"
    assert session.calls[0]["headers"]["Content-Type"] == "application/merge-patch+json"
    assert session.calls[1]["method"] == "DELETE"
    assert session.calls[1]["data"] is None


def test_timeout_default_and_override():
    session = FakeSession(DummyResponse(200, {}))
    client = _client(session, timeout=5)
    client.get("a")
    client.request("a", timeout=1)
    assert session.calls[0]["timeout"] == 5
    assert session.calls[1]["timeout"] == 1


def test_transport_error_message():
    err = TransportError(503, "Service Unavailable", "https://api.example.com/v1/x")
    assert str(err) == "HTTP 503 Service Unavailable: https://api.example.com/v1/x"
