# petsynth/core/test_rate_limit.py
import pytest

from petsynth.core.rate_limit import BucketCache, RateLimiter, TokenBucket, client_identifier
from petsynth.core.security import issue_token


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def test_fresh_bucket_admits_capacity_then_rejects():
    bucket = TokenBucket(capacity=10, refill_per_minute=10, clock=FakeClock())
    assert all(bucket.try_consume() for _ in range(10))
    assert bucket.try_consume() is False


def test_refill_after_six_seconds_admits_exactly_one():
    clock = FakeClock()
    bucket = TokenBucket(capacity=10, refill_per_minute=10, clock=clock)
    for _ in range(10):
        bucket.try_consume()

    clock.advance(6)
    assert bucket.try_consume() is True
    assert bucket.try_consume() is False


def test_refill_is_capped_at_capacity():
    clock = FakeClock()
    bucket = TokenBucket(capacity=3, refill_per_minute=60, clock=clock)
    bucket.try_consume()
    clock.advance(3600)
    assert [bucket.try_consume() for _ in range(4)] == [True, True, True, False]


def test_clock_going_backwards_does_not_add_tokens():
    clock = FakeClock()
    bucket = TokenBucket(capacity=1, refill_per_minute=10, clock=clock)
    assert bucket.try_consume()
    clock.advance(-100)
    assert bucket.try_consume() is False


def test_cache_keeps_buckets_per_key():
    clock = FakeClock()
    cache = BucketCache(max_buckets=10, bucket_factory=lambda: TokenBucket(1, 10, clock=clock))
    assert cache.try_consume("generate:user:a")
    assert cache.try_consume("generate:user:a") is False
    assert cache.try_consume("generate:user:b")


def test_cache_evicts_least_recently_used():
    clock = FakeClock()
    cache = BucketCache(max_buckets=2, bucket_factory=lambda: TokenBucket(1, 10, clock=clock))
    cache.try_consume("a")
    cache.try_consume("b")
    cache.try_consume("a")      # touch a so b becomes the oldest
    cache.try_consume("c")

    assert len(cache) == 2
    assert "a" in cache and "c" in cache
    assert "b" not in cache
    # an evicted identifier starts again with a full bucket
    assert cache.try_consume("b") is True


def test_limiter_scopes_are_independent(app):
    limiter = RateLimiter(clock=FakeClock())
    app.config['RATE_LIMIT_CAPACITY'] = 1
    limiter.init_app(app)

    assert limiter.try_consume("generate", "user:1")
    assert limiter.try_consume("generate", "user:1") is False
    assert limiter.try_consume("other", "user:1")


def test_limiter_requires_initialization():
    with pytest.raises(RuntimeError):
        RateLimiter().try_consume("generate", "ip:127.0.0.1")


def test_client_identifier_prefers_authenticated_user(app):
    with app.app_context():
        token = issue_token("user-123", "alice")
    with app.test_request_context('/api/generate', headers={'Authorization': f'Bearer {token}'}):
        assert client_identifier() == "user:user-123"


def test_client_identifier_uses_first_forwarded_address(app):
    headers = {'X-Forwarded-For': '203.0.113.7, 10.0.0.1'}
    with app.test_request_context('/api/generate', headers=headers):
        assert client_identifier() == "ip:203.0.113.7"


def test_client_identifier_falls_back_to_remote_addr(app):
    with app.test_request_context('/api/generate', environ_base={'REMOTE_ADDR': '198.51.100.4'}):
        assert client_identifier() == "ip:198.51.100.4"


def test_client_identifier_ignores_invalid_token(app):
    headers = {'Authorization': 'Bearer not-a-token'}
    with app.test_request_context('/api/generate', headers=headers, environ_base={'REMOTE_ADDR': '198.51.100.4'}):
        assert client_identifier() == "ip:198.51.100.4"
