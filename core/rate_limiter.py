# core/rate_limiter.py

import time
from threading import Lock
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, Request

from core.config import settings


class SlidingWindowLimiter:
    """
    In-memory sliding-window limiter keyed by an identifier
    (email, IP, ...). One process only; not shared between workers.
    """

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, List[float]] = {}
        self._last_sweep = time.time()
        self._lock = Lock()

    def check(self, identifier: str) -> Tuple[bool, int]:
        """Record one attempt. Returns (allowed, remaining)."""
        now = time.time()
        window_start = now - self.window_seconds

        with self._lock:
            self._sweep(now, window_start)

            hits = [ts for ts in self._hits.get(identifier, []) if ts > window_start]
            if len(hits) >= self.max_requests:
                self._hits[identifier] = hits
                return False, 0

            hits.append(now)
            self._hits[identifier] = hits
            return True, self.max_requests - len(hits)

    def _sweep(self, now: float, window_start: float) -> None:
        # Forget identifiers with no attempt left in the window, once per window
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for identifier in [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]:
            del self._hits[identifier]

    def tracked(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self):
        with self._lock:
            self._hits.clear()
            self._last_sweep = time.time()


def get_rate_limit_identifier(request: Request, key: Optional[str] = None) -> str:
    """Prefer an explicit key (e.g. the email), otherwise the client IP."""
    if key:
        return f"key:{key}"

    client_ip = request.client.host if request.client else "unknown"

    # X-Forwarded-For is only honest when set by our own reverse proxy
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and client_ip in settings.TRUSTED_PROXIES:
        client_ip = forwarded_for.split(",")[-1].strip()

    return f"ip:{client_ip}"


def require_rate_limit(limiter: SlidingWindowLimiter, request: Request, key: Optional[str] = None) -> int:
    """Raise 429 when the identifier is over its budget."""
    allowed, remaining = limiter.check(get_rate_limit_identifier(request, key))

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=(
                f"Rate limit exceeded. Maximum {limiter.max_requests} "
                f"requests per {limiter.window_seconds} seconds."
            ),
            headers={"Retry-After": str(limiter.window_seconds)},
        )

    return remaining


# Credential endpoints: 10 attempts per 15 minutes per email
login_limiter = SlidingWindowLimiter(max_requests=10, window_seconds=900)
