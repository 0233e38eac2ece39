import pytest
import requests

from nurdaily.core import http
from nurdaily.core.errors import MalformedResponse, NetworkFailure, QuotaExceeded


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


def test_get_json_passes_timeout_and_headers(monkeypatch):
    seen = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        seen.update(url=url, params=params, headers=headers, timeout=timeout)
        return FakeResponse({"ok": True})

    monkeypatch.setattr(http.requests, "get", fake_get)

    assert http.get_json("https://example.test/x", params={"a": 1}, timeout=4) == {"ok": True}
    assert seen["timeout"] == 4
    assert seen["headers"] == http.DEFAULT_HEADERS


@pytest.mark.parametrize("response, error", [
    (FakeResponse(status_code=429), QuotaExceeded),
    (FakeResponse(status_code=500), NetworkFailure),
    (FakeResponse(bad_json=True), MalformedResponse),
])
def test_get_json_maps_failures(monkeypatch, response, error):
    monkeypatch.setattr(http.requests, "get", lambda *a, **k: response)

    with pytest.raises(error):
        http.get_json("https://example.test/x")


def test_transport_errors_become_network_failures(monkeypatch):
    def refuse(*a, **k):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(http.requests, "get", refuse)

    with pytest.raises(NetworkFailure):
        http.get_json("https://example.test/x")

