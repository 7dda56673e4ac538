"""
=============================================================================
RATE LIMITER - questionnaire submissions
=============================================================================
Sliding-window limiter keyed by client IP, kept in process memory.

Features:
- 60 submissions per 15 minutes per IP by default (configurable)
- Trusted-proxy validation for X-Forwarded-For
- RateLimit-* headers on rejection, Retry-After in seconds

Usage:
    from patent_intake.core.rate_limiter import check_submit_rate_limit

    @router.post("/submit", dependencies=[Depends(check_submit_rate_limit)])
    async def submit():
        ...
=============================================================================
"""

import ipaddress
import logging
import math
import time
from collections import deque
from threading import Lock
from typing import Deque, Dict, Iterable, List

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Troppe richieste, riprova più tardi."


def parse_trusted_networks(
    entries: Iterable[str],
) -> List[ipaddress.IPv4Network | ipaddress.IPv6Network]:
    """Parse TRUSTED_PROXIES setting into network objects."""
    nets = []
    for entry in entries:
        try:
            nets.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("Invalid TRUSTED_PROXIES entry ignored: %s", entry)
    return nets


class SlidingWindowRateLimiter:
    """Thread-safe in-memory sliding window (single-instance only)."""

    def __init__(self, limit: int, window_seconds: int, trusted_proxies: Iterable[str] = ()):
        self.limit = limit
        self.window_seconds = window_seconds
        self._trusted_networks = parse_trusted_networks(trusted_proxies)
        self._lock = Lock()
        self._windows: Dict[str, Deque[float]] = {}
        self._last_sweep = 0.0

    def _is_trusted_proxy(self, ip_str: str) -> bool:
        try:
            addr = ipaddress.ip_address(ip_str)
        except ValueError:
            return False
        return any(addr in net for net in self._trusted_networks)

    def client_ip(self, request: Request) -> str:
        """Extract client IP, trusting X-Forwarded-For only from trusted proxies."""
        direct_ip = request.client.host if request.client else "unknown"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded and self._is_trusted_proxy(direct_ip):
            parts = [p.strip() for p in forwarded.split(",")]
            # Rightmost untrusted hop is the real client
            for ip in reversed(parts):
                if not self._is_trusted_proxy(ip):
                    return ip
            return parts[0]

        return direct_ip

    def hit(self, key: str, now: float | None = None) -> None:
        """Record one request for ``key`` or raise 429 when the window is full."""
        now = time.time() if now is None else now
        window_start = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._evict_idle(window_start)
                self._last_sweep = now

            window = self._windows.setdefault(key, deque())

            while window and window[0] <= window_start:
                window.popleft()

            if len(window) >= self.limit:
                retry_after = max(1, math.ceil(window[0] + self.window_seconds - now))
                logger.warning(
                    "Rate limit exceeded for %s (%d in %ss)",
                    key,
                    len(window),
                    self.window_seconds,
                )
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=RATE_LIMIT_MESSAGE,
                    headers={
                        "Retry-After": str(retry_after),
                        "RateLimit-Limit": str(self.limit),
                        "RateLimit-Remaining": "0",
                    },
                )

            window.append(now)

    def _evict_idle(self, window_start: float) -> None:
        """Drop clients whose newest request has left the window. Caller holds the lock."""
        idle = [key for key, window in self._windows.items() if not window or window[-1] <= window_start]
        for key in idle:
            del self._windows[key]

    def reset(self) -> None:
        """Clear all state (for tests)."""
        with self._lock:
            self._windows.clear()

    def stats(self) -> dict:
        with self._lock:
            return {ip: len(window) for ip, window in self._windows.items()}


async def check_submit_rate_limit(request: Request) -> None:
    """Endpoint limiter for questionnaire submissions."""
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    limiter.hit(limiter.client_ip(request))
