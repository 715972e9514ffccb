"""Fixed-window rate limiting for sensitive auth endpoints, keyed by client fingerprint."""

import hashlib
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import redis

from app.core.exceptions import RateLimitedError, TransientError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """At most max_attempts hits per window_sec for one fingerprint."""

    name: str
    window_sec: int
    max_attempts: int
    message: str


class CounterStore(Protocol):
    def hit(self, key: str, window_sec: int) -> tuple[int, float]:
        """Atomically increment key's counter in its current window.

        Returns (count after increment, seconds until the window resets).
        """
        ...

    def reset(self, key: str) -> None: ...


class InMemoryCounterStore:
    """Process-local counters; fine for a single instance, lost on restart.

    Each key expires at its own window end. Expired keys are swept only once
    max_keys is reached, and at most once per sweep_interval_sec.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 10_000,
        sweep_interval_sec: float = 60.0,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}
        self._max_keys = max_keys
        self._sweep_interval_sec = sweep_interval_sec
        self._last_sweep: float | None = None

    def hit(self, key: str, window_sec: int) -> tuple[int, float]:
        with self._lock:
            now = self._clock()
            expires_at, count = self._windows.get(key, (now + window_sec, 0))
            if now >= expires_at:
                expires_at, count = now + window_sec, 0
            count += 1
            self._windows[key] = (expires_at, count)
            self._evict_expired(now)
            return count, expires_at - now

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)

    def _evict_expired(self, now: float) -> None:
        if len(self._windows) < self._max_keys:
            return
        if self._last_sweep is not None and now - self._last_sweep < self._sweep_interval_sec:
            return
        self._last_sweep = now
        stale = [k for k, (expires_at, _) in self._windows.items() if now >= expires_at]
        for k in stale:
            del self._windows[k]
        if stale:
            logger.debug("Evicted expired rate limit windows", extra={"evicted": len(stale)})


class RedisCounterStore:
    """Counters shared by every instance behind the same Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        return cls(
            redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        )

    def hit(self, key: str, window_sec: int) -> tuple[int, float]:
        pipe = self._client.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, window_sec, nx=True)
        pipe.pttl(key)
        try:
            count, _, ttl_ms = pipe.execute()
        except redis.RedisError as e:
            logger.error("Rate limit store unavailable", extra={"error": str(e)})
            raise TransientError("Rate limiter unavailable, please retry.") from e
        remaining = ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else float(window_sec)
        return int(count), remaining

    def reset(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as e:
            logger.error("Rate limit store unavailable", extra={"error": str(e)})
            raise TransientError("Rate limiter unavailable, please retry.") from e


def fingerprint(client_address: str | None, user_agent: str | None) -> str:
    """Stable key for (client address, declared client string)."""
    raw = f"{client_address or 'unknown'}|{user_agent or ''}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class RateLimiter:
    """Applies named rules against an injected CounterStore."""

    def __init__(self, store: CounterStore, rules: dict[str, RateLimitRule], enabled: bool = True) -> None:
        self.store = store
        self.rules = rules
        self.enabled = enabled

    def check(self, rule_name: str, client_key: str) -> int:
        """
        Count one request for client_key under rule_name.
        Returns the remaining allowance; raises RateLimitedError once exceeded.
        """
        rule = self.rules[rule_name]
        if not self.enabled:
            return rule.max_attempts
        count, resets_in = self.store.hit(f"ratelimit:{rule.name}:{client_key}", rule.window_sec)
        if count > rule.max_attempts:
            retry_after = max(1, math.ceil(resets_in))
            logger.warning(
                "Rate limit exceeded",
                extra={"rule": rule.name, "count": count, "retry_after": retry_after},
            )
            raise RateLimitedError(rule.message, retry_after=retry_after)
        return rule.max_attempts - count


def default_rules(settings: "Settings") -> dict[str, RateLimitRule]:
    rules = (
        RateLimitRule(
            name="login",
            window_sec=settings.RATE_LIMIT_LOGIN_WINDOW_SEC,
            max_attempts=settings.RATE_LIMIT_LOGIN_MAX_ATTEMPTS,
            message="Too many login attempts, please try again later.",
        ),
        RateLimitRule(
            name="signup",
            window_sec=settings.RATE_LIMIT_SIGNUP_WINDOW_SEC,
            max_attempts=settings.RATE_LIMIT_SIGNUP_MAX_ATTEMPTS,
            message="Too many registration attempts, please try again later.",
        ),
        RateLimitRule(
            name="forgot_password",
            window_sec=settings.RATE_LIMIT_FORGOT_PASSWORD_WINDOW_SEC,
            max_attempts=settings.RATE_LIMIT_FORGOT_PASSWORD_MAX_ATTEMPTS,
            message="Too many password reset requests, please try again later.",
        ),
        RateLimitRule(
            name="resend_verification",
            window_sec=settings.RATE_LIMIT_RESEND_VERIFICATION_WINDOW_SEC,
            max_attempts=settings.RATE_LIMIT_RESEND_VERIFICATION_MAX_ATTEMPTS,
            message="Too many verification email requests, please try again later.",
        ),
    )
    return {rule.name: rule for rule in rules}


def build_rate_limiter(settings: "Settings") -> RateLimiter:
    if settings.RATE_LIMIT_REDIS_URL:
        store: CounterStore = RedisCounterStore.from_url(settings.RATE_LIMIT_REDIS_URL)
        logger.info("Rate limit counters stored in Redis")
    else:
        store = InMemoryCounterStore()
    return RateLimiter(store, default_rules(settings), enabled=settings.RATE_LIMIT_ENABLED)
