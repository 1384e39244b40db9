"""
Per-address request throttling for the leaderboard endpoints.

Simple in-memory rate limiting using deques and time-based windows. State is
per process; the persistence-backed duplicate window in the submission guard
still applies when several workers run behind a load balancer.
"""

import math
import time
import threading
from functools import wraps
from collections import defaultdict, deque

from flask import current_app, make_response

from bounce.errors import RateLimitedError
from bounce.services.leaderboard.identity import client_address


class SlidingWindowLimiter:
    """In-memory rate limiter keyed by ``scope:address``.

    Keys whose newest request is older than the longest window seen are
    swept every ``sweep_interval`` seconds so idle addresses do not
    accumulate.
    """

    def __init__(self, clock=time.monotonic, sweep_interval: int = 60):
        self._requests = defaultdict(deque)
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._longest_window = 0
        self._last_sweep = clock()

    def __len__(self):
        return len(self._requests)

    def is_allowed(self, key: str, limit: int, window: int, record: bool = True) -> bool:
        """Check ``key`` against ``limit`` per ``window`` seconds.

        With ``record`` the request is counted when allowed; otherwise the
        caller counts it later through :meth:`record`.
        """
        if limit <= 0 or window <= 0:
            return False

        now = self._clock()
        with self._lock:
            self._longest_window = max(self._longest_window, window)
            self._maybe_sweep(now)
            history = self._requests.get(key)
            if history:
                while history and history[0] <= now - window:
                    history.popleft()
                if not history:
                    del self._requests[key]
                    history = None

            if history is not None and len(history) >= limit:
                return False
            if record:
                self._requests[key].append(now)
            return True

    def record(self, key: str) -> None:
        with self._lock:
            self._requests[key].append(self._clock())

    def retry_after(self, key: str, window: int) -> int:
        with self._lock:
            history = self._requests.get(key)
            if not history:
                return 0
            remaining = history[0] + window - self._clock()
        return max(1, math.ceil(remaining))

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()

    def _maybe_sweep(self, now) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        cutoff = now - self._longest_window
        stale = [key for key, history in self._requests.items() if not history or history[-1] <= cutoff]
        for key in stale:
            del self._requests[key]


def rate_limit(scope: str, limit_key: str, window_key: str, message: str = None,
               count_successful: bool = True):
    """Decorator for throttling a view by client address.

    ``limit_key`` and ``window_key`` name config entries so deployments and
    tests can tune the limits without touching code. With
    ``count_successful=False`` only failed responses use up the allowance.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            cfg = current_app.config
            if not cfg.get('RATE_LIMIT_ENABLED', True):
                return view(*args, **kwargs)

            limiter = current_app.extensions['rate_limiter']
            limit = int(cfg.get(limit_key))
            window = int(cfg.get(window_key))
            key = f"{scope}:{client_address()}"
            if not limiter.is_allowed(key, limit, window, record=count_successful):
                retry_after = limiter.retry_after(key, window)
                current_app.logger.info(f"[throttled] scope={scope} retry_after={retry_after}s")
                raise RateLimitedError(retry_after, message)
            if count_successful:
                return view(*args, **kwargs)

            try:
                response = make_response(view(*args, **kwargs))
            except Exception:
                limiter.record(key)
                raise
            if response.status_code >= 400:
                limiter.record(key)
            return response
        return wrapper
    return decorator
