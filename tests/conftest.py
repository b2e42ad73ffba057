"""Shared fixtures: deterministic clock, env-driven settings and a stub upstream."""

import httpx
import pytest

from config import Settings

PARIS_PAYLOAD = {
    "status": "ok",
    "data": {
        "aqi": 42,
        "dominentpol": "pm25",
        "city": {
            "name": "Paris, France",
            "url": "https://aqicn.org/city/paris",
            "geo": [48.8566, 2.3522],
        },
        "time": {"s": "2024-05-01 12:00:00", "iso": "2024-05-01T12:00:00+02:00"},
        "attributions": [
            {"name": "Airparif", "url": "https://www.airparif.asso.fr/"},
            {"name": "World Air Quality Index Project", "url": "https://waqi.info/"},
        ],
        "iaqi": {"o3": {"v": 10}, "pm25": {"v": 42}, "t": {"v": 18.5}},
        "forecast": {
            "daily": {
                "pm25": [
                    {"day": "2024-05-02", "avg": 40, "min": 30, "max": 55},
                    {"day": "2024-05-01", "avg": 38, "min": 25, "max": 50},
                ],
            }
        },
    },
}


class FakeClock:
    """Manually advanced stand-in for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubUpstream:
    """Records upstream requests and answers each with the configured response."""

    def __init__(self, payload=None, status_code: int = 200, exc: Exception | None = None):
        self.payload = PARIS_PAYLOAD if payload is None else payload
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("AQI_API_TOKEN", "test-token")
    monkeypatch.setenv("AQI_API_BASE", "https://upstream.test/feed")
    monkeypatch.setenv("CACHE_MAX_ENTRIES", "10")
    monkeypatch.setenv("CACHE_TTL_MINUTES", "10")
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    return Settings()


@pytest.fixture
def upstream():
    return StubUpstream()
