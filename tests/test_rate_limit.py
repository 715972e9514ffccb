"""Unit tests for app.services.rate_limit: fixed windows, Retry-After and Redis counters."""

import unittest
from unittest.mock import MagicMock

import redis

from app.core.exceptions import RateLimitedError, TransientError
from app.services.rate_limit import (
    InMemoryCounterStore,
    RateLimiter,
    RateLimitRule,
    RedisCounterStore,
    build_rate_limiter,
    default_rules,
    fingerprint,
)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


LOGIN_RULE = RateLimitRule(
    name="login",
    window_sec=900,
    max_attempts=5,
    message="Too many login attempts, please try again later.",
)


class TestInMemoryRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(InMemoryCounterStore(clock=self.clock), {"login": LOGIN_RULE})

    def test_allows_up_to_max_attempts(self) -> None:
        remaining = [self.limiter.check("login", "client-a") for _ in range(5)]
        self.assertEqual(remaining, [4, 3, 2, 1, 0])

    def test_sixth_request_is_rejected_with_retry_after(self) -> None:
        for _ in range(5):
            self.limiter.check("login", "client-a")
        self.clock.now += 100
        with self.assertRaises(RateLimitedError) as ctx:
            self.limiter.check("login", "client-a")
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.retry_after, 800)
        self.assertEqual(ctx.exception.headers["Retry-After"], "800")
        self.assertEqual(ctx.exception.message, LOGIN_RULE.message)

    def test_clients_are_counted_separately(self) -> None:
        for _ in range(5):
            self.limiter.check("login", "client-a")
        self.assertEqual(self.limiter.check("login", "client-b"), 4)

    def test_window_resets(self) -> None:
        for _ in range(5):
            self.limiter.check("login", "client-a")
        self.clock.now += 900
        self.assertEqual(self.limiter.check("login", "client-a"), 4)

    def test_disabled_limiter_never_rejects(self) -> None:
        limiter = RateLimiter(InMemoryCounterStore(clock=self.clock), {"login": LOGIN_RULE}, enabled=False)
        for _ in range(20):
            self.assertEqual(limiter.check("login", "client-a"), 5)

    def test_unknown_rule_is_a_programming_error(self) -> None:
        with self.assertRaises(KeyError):
            self.limiter.check("nope", "client-a")

    def test_reset_clears_counter(self) -> None:
        store = InMemoryCounterStore(clock=self.clock)
        store.hit("k", 60)
        store.hit("k", 60)
        store.reset("k")
        self.assertEqual(store.hit("k", 60)[0], 1)

    def test_each_key_keeps_its_own_window_when_others_are_swept(self) -> None:
        store = InMemoryCounterStore(clock=self.clock)
        signup = RateLimitRule(
            name="signup",
            window_sec=3600,
            max_attempts=3,
            message="Too many registration attempts, please try again later.",
        )
        limiter = RateLimiter(store, {"login": LOGIN_RULE, "signup": signup})
        for _ in range(3):
            limiter.check("signup", "client-a")
        for i in range(10_000):
            store.hit(f"filler:{i}", 60)

        self.clock.now += 1000
        limiter.check("login", "client-b")

        self.assertLess(len(store), 100)
        with self.assertRaises(RateLimitedError) as ctx:
            limiter.check("signup", "client-a")
        self.assertEqual(ctx.exception.retry_after, 2600)

    def test_sweep_is_throttled(self) -> None:
        store = InMemoryCounterStore(clock=self.clock, max_keys=10, sweep_interval_sec=60)
        for i in range(10):
            store.hit(f"k{i}", 1)
        self.clock.now += 30
        store.hit("late", 1)
        self.assertEqual(len(store), 11)
        self.clock.now += 30
        store.hit("later", 1)
        self.assertEqual(len(store), 1)


class TestRedisCounterStore(unittest.TestCase):
    def test_hit_uses_pipeline_and_reports_ttl(self) -> None:
        client = MagicMock()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [3, True, 42_500]
        store = RedisCounterStore(client)

        count, resets_in = store.hit("ratelimit:login:abc", 900)

        self.assertEqual(count, 3)
        self.assertEqual(resets_in, 42.5)
        pipe.incr.assert_called_once_with("ratelimit:login:abc")
        pipe.expire.assert_called_once_with("ratelimit:login:abc", 900, nx=True)

    def test_missing_ttl_falls_back_to_window(self) -> None:
        client = MagicMock()
        client.pipeline.return_value.execute.return_value = [1, True, -1]
        count, resets_in = RedisCounterStore(client).hit("k", 60)
        self.assertEqual((count, resets_in), (1, 60.0))

    def test_limiter_over_redis_raises_with_ceil_retry_after(self) -> None:
        client = MagicMock()
        client.pipeline.return_value.execute.return_value = [6, False, 1_200]
        limiter = RateLimiter(RedisCounterStore(client), {"login": LOGIN_RULE})
        with self.assertRaises(RateLimitedError) as ctx:
            limiter.check("login", "abc")
        self.assertEqual(ctx.exception.retry_after, 2)

    def test_redis_failure_is_transient(self) -> None:
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.exceptions.ConnectionError("down")
        limiter = RateLimiter(RedisCounterStore(client), {"login": LOGIN_RULE})
        with self.assertRaises(TransientError) as ctx:
            limiter.check("login", "abc")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertTrue(ctx.exception.retryable)

    def test_reset_failure_is_transient(self) -> None:
        client = MagicMock()
        client.delete.side_effect = redis.exceptions.TimeoutError("slow")
        with self.assertRaises(TransientError):
            RedisCounterStore(client).reset("k")


class TestRulesAndFingerprint(unittest.TestCase):
    def _settings(self) -> MagicMock:
        settings = MagicMock()
        settings.RATE_LIMIT_ENABLED = True
        settings.RATE_LIMIT_REDIS_URL = None
        settings.RATE_LIMIT_LOGIN_WINDOW_SEC = 900
        settings.RATE_LIMIT_LOGIN_MAX_ATTEMPTS = 5
        settings.RATE_LIMIT_SIGNUP_WINDOW_SEC = 3600
        settings.RATE_LIMIT_SIGNUP_MAX_ATTEMPTS = 3
        settings.RATE_LIMIT_FORGOT_PASSWORD_WINDOW_SEC = 3600
        settings.RATE_LIMIT_FORGOT_PASSWORD_MAX_ATTEMPTS = 3
        settings.RATE_LIMIT_RESEND_VERIFICATION_WINDOW_SEC = 3600
        settings.RATE_LIMIT_RESEND_VERIFICATION_MAX_ATTEMPTS = 3
        return settings

    def test_default_rules(self) -> None:
        rules = default_rules(self._settings())
        self.assertEqual(set(rules), {"login", "signup", "forgot_password", "resend_verification"})
        self.assertEqual((rules["login"].window_sec, rules["login"].max_attempts), (900, 5))
        self.assertEqual((rules["signup"].window_sec, rules["signup"].max_attempts), (3600, 3))

    def test_build_without_redis_uses_memory(self) -> None:
        limiter = build_rate_limiter(self._settings())
        self.assertIsInstance(limiter.store, InMemoryCounterStore)
        self.assertTrue(limiter.enabled)

    def test_fingerprint_is_stable_and_distinguishes_clients(self) -> None:
        a = fingerprint("10.0.0.1", "curl/8")
        self.assertEqual(a, fingerprint("10.0.0.1", "curl/8"))
        self.assertNotEqual(a, fingerprint("10.0.0.1", "firefox"))
        self.assertNotEqual(a, fingerprint("10.0.0.2", "curl/8"))
        self.assertEqual(len(fingerprint(None, None)), 64)


if __name__ == "__main__":
    unittest.main()
