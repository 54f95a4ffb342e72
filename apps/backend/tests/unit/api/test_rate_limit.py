"""
Name: Rate Limiter Tests

Responsibilities:
  - Test fixed window counting and reset
  - Test retry-after calculation
  - Test 429 envelope + headers through the app

Notes:
  - Unit tests (no external dependencies)
  - Injected clock for the window
"""

import pytest
from fastapi.testclient import TestClient

from infinitynet.api.main import create_app
from infinitynet.container import build_container
from infinitynet.crosscutting.rate_limit import FixedWindowRateLimiter

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
class TestFixedWindow:
    def test_allows_up_to_max_then_denies(self):
        limiter = FixedWindowRateLimiter(3, 60, clock=FakeClock())

        decisions = [limiter.hit("ip:1") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions[:3]] == [2, 1, 0]

    def test_retry_after_is_time_left_in_window(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)

        limiter.hit("ip:1")
        clock.now = 20.5
        decision = limiter.hit("ip:1")

        assert decision.allowed is False
        assert decision.retry_after == 40

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, 60, clock=clock)

        limiter.hit("ip:1")
        assert limiter.hit("ip:1").allowed is False

        clock.now = 61
        assert limiter.hit("ip:1").allowed is True

    def test_keys_are_independent(self):
        limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())

        assert limiter.hit("ip:1").allowed is True
        assert limiter.hit("ip:2").allowed is True
        assert len(limiter) == 2

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(0, 60)
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(1, 0)


class TestRateLimitMiddleware:
    @pytest.fixture
    def limited_client(self, settings_factory, fast_hasher):
        settings = settings_factory(rate_limit_max_requests=3)
        app = create_app(settings, build_container(settings, hasher=fast_hasher))
        with TestClient(app) as client:
            yield client

    def test_429_after_limit(self, limited_client):
        responses = [limited_client.get("/api/roles") for _ in range(4)]

        assert [r.status_code for r in responses] == [200, 200, 200, 429]
        assert responses[0].headers["X-Rate-Limit-Remaining"] == "2"

        blocked = responses[-1]
        assert blocked.headers["Retry-After"].isdigit()
        assert blocked.headers["X-Rate-Limit-Remaining"] == "0"
        assert blocked.json()["status"] == "error"
        assert blocked.json()["message"] == "Muitas requisições, tente novamente mais tarde"

    def test_health_is_not_limited(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/api/health").status_code == 200

    def test_forwarded_for_identifies_client(self, limited_client):
        for _ in range(3):
            limited_client.get("/api/roles", headers={"X-Forwarded-For": "10.0.0.1"})

        other = limited_client.get("/api/roles", headers={"X-Forwarded-For": "10.0.0.2"})
        same = limited_client.get("/api/roles", headers={"X-Forwarded-For": "10.0.0.1"})

        assert other.status_code == 200
        assert same.status_code == 429
