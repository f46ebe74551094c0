"""
=============================================================================
ERINNERUNGSLICHT - CONTACT RATE LIMITER
=============================================================================
Per-address admission control for the contact endpoint.

Features:
- Sliding window: at most CONTACT_RATE_LIMIT admitted requests per
  CONTACT_RATE_WINDOW_SECONDS for each originating address
- One lock guards all windows, so concurrent requests from the same
  address cannot undercount
- Stale timestamps are evicted on read; idle addresses are swept once per
  window so the mapping cannot grow without bound
- Trusted-proxy validation for X-Forwarded-For

Usage:
    from app.core.rate_limiter import check_contact_rate_limit

    @router.post("/contact")
    async def endpoint(client_ip: str = Depends(check_contact_rate_limit)):
        ...
=============================================================================
"""

import ipaddress
import logging
import math
import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, List, Tuple

from fastapi import Request

from app.core.config import settings
from app.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Parsed trusted proxy networks (built once at import)
_trusted_networks: List[ipaddress.IPv4Network | ipaddress.IPv6Network] = []


def _build_trusted_networks() -> None:
    """Parse TRUSTED_PROXIES setting into network objects."""
    global _trusted_networks
    nets = []
    for entry in settings.TRUSTED_PROXIES:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    _trusted_networks = nets


_build_trusted_networks()


# =============================================================================
# SLIDING WINDOW
# =============================================================================


class SlidingWindowRateLimiter:
    """Thread-safe in-memory sliding-window limiter keyed by address."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def _evict(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._windows):
            window = self._windows[key]
            self._evict(window, now)
            if not window:
                del self._windows[key]
        self._last_sweep = now

    def hit(self, key: str) -> Tuple[bool, int]:
        """Record an attempt for ``key``.

        Returns ``(allowed, retry_after_seconds)``; rejected attempts are not
        recorded.
        """
        if self.limit <= 0:
            return True, 0

        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = deque(maxlen=self.limit)
            self._evict(window, now)

            if len(window) >= self.limit:
                retry_after = math.ceil(window[0] + self.window_seconds - now)
                return False, max(1, retry_after)

            window.append(now)
            return True, 0

    def remaining(self, key: str) -> int:
        with self._lock:
            window = self._windows.get(key)
            if not window:
                return self.limit
            self._evict(window, self._clock())
            return max(0, self.limit - len(window))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_sweep = self._clock()

    def stats(self) -> dict:
        with self._lock:
            return {
                "limit": self.limit,
                "window_seconds": self.window_seconds,
                "tracked_addresses": len(self._windows),
                "windows": {key: len(w) for key, w in self._windows.items()},
            }


contact_limiter = SlidingWindowRateLimiter(
    settings.CONTACT_RATE_LIMIT, settings.CONTACT_RATE_WINDOW_SECONDS
)


# =============================================================================
# IP EXTRACTION
# =============================================================================


def _is_trusted_proxy(ip_str: str) -> bool:
    """Check if an IP belongs to the configured trusted proxy ranges."""
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in net for net in _trusted_networks)


def get_client_ip(request: Request) -> str:
    """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
    direct_ip = request.client.host if request.client else "unknown"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and _is_trusted_proxy(direct_ip):
        parts = [p.strip() for p in forwarded.split(",") if p.strip()]
        # Rightmost untrusted hop is the real client
        for ip in reversed(parts):
            if not _is_trusted_proxy(ip):
                return ip
        if parts:
            return parts[0]

    return direct_ip


# =============================================================================
# DEPENDENCY
# =============================================================================


async def check_contact_rate_limit(request: Request) -> str:
    """
    Admission control for the contact form.

    Runs before the body is evaluated; returns the resolved client address.
    """
    client_ip = get_client_ip(request)
    allowed, retry_after = contact_limiter.hit(client_ip)
    if not allowed:
        logger.warning(
            "Contact rate limit exceeded ip=%s retry_after=%ss",
            client_ip,
            retry_after,
            extra={"outcome": "rate_limited", "client_ip": client_ip},
        )
        raise RateLimitExceeded(retry_after)
    return client_ip


# =============================================================================
# TEST / DEBUG HELPERS
# =============================================================================


def reset_rate_limiter_state() -> None:
    """Clear rate limiter state. Intended for tests."""
    contact_limiter.reset()


def get_rate_limit_stats() -> dict:
    """Get current rate limiting statistics (for debugging)."""
    return contact_limiter.stats()
