"""In-memory sliding-window limiter for the contact endpoint."""
import ipaddress
import threading
from types import SimpleNamespace

import pytest

from app.core import rate_limiter
from app.core.rate_limiter import (
    SlidingWindowRateLimiter,
    get_client_ip,
    get_rate_limit_stats,
    reset_rate_limiter_state,
)


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return SlidingWindowRateLimiter(limit=5, window_seconds=900, clock=clock)


class TestSlidingWindow:
    def test_allows_up_to_limit_then_rejects(self, limiter):
        results = [limiter.hit("1.2.3.4")[0] for _ in range(6)]

        assert results == [True] * 5 + [False]

    def test_addresses_are_independent(self, limiter):
        for _ in range(5):
            limiter.hit("1.1.1.1")

        assert limiter.hit("1.1.1.1")[0] is False
        assert limiter.hit("2.2.2.2")[0] is True

    def test_retry_after_counts_down_to_oldest_entry_expiry(self, limiter, clock):
        limiter.hit("ip")
        clock.advance(100)
        for _ in range(4):
            limiter.hit("ip")

        allowed, retry_after = limiter.hit("ip")

        assert allowed is False
        assert retry_after == 800

    def test_oldest_entry_leaving_window_frees_one_slot(self, limiter, clock):
        limiter.hit("ip")
        clock.advance(10)
        for _ in range(4):
            limiter.hit("ip")

        clock.advance(890)
        assert limiter.hit("ip")[0] is True
        assert limiter.hit("ip")[0] is False

    def test_rejected_attempts_are_not_recorded(self, limiter, clock):
        for _ in range(5):
            limiter.hit("ip")
        for _ in range(10):
            limiter.hit("ip")

        clock.advance(900)
        assert limiter.remaining("ip") == 5

    def test_retry_after_is_at_least_one_second(self, clock):
        limiter = SlidingWindowRateLimiter(limit=1, window_seconds=1, clock=clock)
        limiter.hit("ip")
        clock.advance(0.9999)

        assert limiter.hit("ip") == (False, 1)

    def test_idle_addresses_are_swept(self, limiter, clock):
        for i in range(20):
            limiter.hit(f"10.0.0.{i}")
        assert limiter.stats()["tracked_addresses"] == 20

        clock.advance(901)
        limiter.hit("10.0.1.1")

        assert limiter.stats()["tracked_addresses"] == 1

    def test_non_positive_limit_disables_limiting(self, clock):
        limiter = SlidingWindowRateLimiter(limit=0, window_seconds=60, clock=clock)

        assert all(limiter.hit("ip")[0] for _ in range(50))

    def test_reset_clears_windows(self, limiter):
        for _ in range(5):
            limiter.hit("ip")
        limiter.reset()

        assert limiter.remaining("ip") == 5
        assert limiter.stats()["tracked_addresses"] == 0

    def test_concurrent_hits_never_exceed_limit(self):
        limiter = SlidingWindowRateLimiter(limit=5, window_seconds=900)
        barrier = threading.Barrier(32)
        admitted = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            allowed, _ = limiter.hit("same-address")
            if allowed:
                with lock:
                    admitted.append(1)

        threads = [threading.Thread(target=worker) for _ in range(32)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(admitted) == 5


class TestClientIp:
    @pytest.fixture(autouse=True)
    def _trusted(self, monkeypatch):
        monkeypatch.setattr(
            rate_limiter,
            "_trusted_networks",
            [ipaddress.ip_network("10.0.0.0/8")],
        )

    @staticmethod
    def _request(host, forwarded=None):
        headers = {"X-Forwarded-For": forwarded} if forwarded else {}
        return SimpleNamespace(client=SimpleNamespace(host=host), headers=headers)

    def test_direct_address_without_header(self):
        assert get_client_ip(self._request("203.0.113.7")) == "203.0.113.7"

    def test_forwarded_header_ignored_from_untrusted_peer(self):
        request = self._request("203.0.113.7", "198.51.100.1")

        assert get_client_ip(request) == "203.0.113.7"

    def test_rightmost_untrusted_hop_from_trusted_proxy(self):
        request = self._request("10.0.0.2", "198.51.100.1, 203.0.113.9, 10.0.0.5")

        assert get_client_ip(request) == "203.0.113.9"

    def test_all_hops_trusted_uses_first(self):
        request = self._request("10.0.0.2", "10.1.1.1, 10.0.0.5")

        assert get_client_ip(request) == "10.1.1.1"

    def test_missing_client(self):
        request = SimpleNamespace(client=None, headers={})

        assert get_client_ip(request) == "unknown"


def test_contact_limiter_stats(monkeypatch, clock):
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)
    monkeypatch.setattr(rate_limiter, "contact_limiter", limiter)

    limiter.hit("198.51.100.1")
    limiter.hit("198.51.100.1")
    limiter.hit("203.0.113.9")

    assert get_rate_limit_stats() == {
        "limit": 3,
        "window_seconds": 60,
        "tracked_addresses": 2,
        "windows": {"198.51.100.1": 2, "203.0.113.9": 1},
    }

    reset_rate_limiter_state()

    assert get_rate_limit_stats()["tracked_addresses"] == 0
