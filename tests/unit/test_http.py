from __future__ import annotations

import pytest
import requests

from slotwatch.common.http import HttpClient, HttpRequestError, NetworkError, StatusError


class FakeResponse:
    def __init__(self, status_code: int, text: str = "", payload=None, raises_json: bool = False):
        self.status_code = status_code
        self.text = text
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_get_text_success(monkeypatch):
    client = HttpClient()
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, text="[]")

    monkeypatch.setattr(client.session, "request", fake_request)

    assert client.get_text("https://example.com/slots") == "[]"
    assert seen["method"] == "GET"
    assert seen["timeout"] == (20.0, 120.0)
    assert seen["headers"]["User-Agent"].startswith("slotwatch/")


def test_get_text_non_2xx_raises_status_error(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503))

    with pytest.raises(StatusError) as excinfo:
        client.get_text("https://example.com/slots")
    assert excinfo.value.status_code == 503


def test_get_text_network_failure_raises_network_error(monkeypatch):
    client = HttpClient()

    def boom(**_kwargs):
        raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(client.session, "request", boom)

    with pytest.raises(NetworkError):
        client.get_text("https://example.com/slots")


def test_post_json_invalid_json_raises(monkeypatch):
    client = HttpClient()
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.post_json("https://example.com/hook", payload={"a": 1})
