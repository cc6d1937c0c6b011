# petsynth/core/rate_limit.py
import logging
import threading
import time
from collections import OrderedDict
from functools import wraps
from typing import Callable, Optional

from flask import Flask, request, jsonify, current_app
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError


class TokenBucket:
    """
    Holds up to `capacity` permits, refilled at `refill_per_minute`.
    Refill is computed lazily from the time elapsed since the last observation.
    """

    def __init__(self, capacity: int = 10, refill_per_minute: float = 10, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.refill_per_second = refill_per_minute / 60.0
        self.clock = clock
        self.tokens = float(capacity)
        self.last_refill = clock()

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(float(self.capacity), self.tokens + elapsed * self.refill_per_second)
        self.last_refill = now

    def try_consume(self) -> bool:
        self._refill()
        if self.tokens >= 1:
            self.tokens -= 1
            return True
        return False


class BucketCache:
    """
    Bounded LRU map of bucket key -> TokenBucket.
    Buckets are created on first sight; the least recently used one is dropped when full.
    An evicted identifier simply starts again with a full bucket.
    """

    def __init__(self, max_buckets: int, bucket_factory: Callable[[], TokenBucket]):
        self.max_buckets = max(1, max_buckets)
        self.bucket_factory = bucket_factory
        self._buckets: "OrderedDict[str, TokenBucket]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: str) -> bool:
        return key in self._buckets

    def try_consume(self, key: str) -> bool:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self.bucket_factory()
                self._buckets[key] = bucket
                if len(self._buckets) > self.max_buckets:
                    evicted_key, _ = self._buckets.popitem(last=False)
                    logging.debug(f"Rate limit bucket evicted: {evicted_key}")
            else:
                self._buckets.move_to_end(key)
            return bucket.try_consume()


class RateLimiter:
    """Per (scope, identifier) token-bucket limiter, stored in app.services['rate_limiter']."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.buckets: Optional[BucketCache] = None

    def init_app(self, app: Flask):
        capacity = app.config.get('RATE_LIMIT_CAPACITY', 10)
        refill = app.config.get('RATE_LIMIT_REFILL_PER_MINUTE', 10)
        max_buckets = app.config.get('RATE_LIMIT_MAX_BUCKETS', 10000)
        self.buckets = BucketCache(
            max_buckets=max_buckets,
            bucket_factory=lambda: TokenBucket(capacity, refill, clock=self.clock),
        )
        logging.info(f"RateLimiter: capacity={capacity}, refill={refill}/min, max_buckets={max_buckets}")

    def try_consume(self, scope: str, identifier: str) -> bool:
        if self.buckets is None:
            raise RuntimeError("RateLimiter has not been initialized. Call init_app first.")
        return self.buckets.try_consume(f"{scope}:{identifier}")


def client_identifier() -> str:
    """
    `user:<id>` for an authenticated caller, otherwise `ip:<address>`.
    The address form keys scopes that also admit anonymous callers.
    """
    try:
        verify_jwt_in_request(optional=True)
        user_id = get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        user_id = None
    if user_id:
        return f"user:{user_id}"

    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        ip = forwarded.split(',')[0].strip()
    else:
        ip = request.remote_addr or 'unknown'
    return f"ip:{ip}"


def rate_limit(scope: str):
    """Route decorator; place it below @jwt_required() so the user id is available."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            limiter: RateLimiter = current_app.services['rate_limiter']
            identifier = client_identifier()
            if not limiter.try_consume(scope, identifier):
                logging.warning(f"Rate limit exceeded (scope: {scope}, client: {identifier})")
                return jsonify({"error_code": "RATE_LIMITED", "message": "Too many requests. Try again shortly."}), 429
            return f(*args, **kwargs)
        return decorated_function
    return decorator
