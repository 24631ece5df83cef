"""
Rate limiting for unauthenticated endpoints.

Uses Django's cache framework so limits hold across worker processes when
a shared cache backend is configured.

Usage::

    from apps.core.throttling import check_rate_limit

    check_rate_limit(f"join_email:{client_ip}", max_requests=10, window_seconds=3600)
"""

from django.core.cache import cache

from apps.core.exceptions import GumboardError
from apps.core.logging import get_logger

logger = get_logger(__name__)


class RateLimitExceeded(GumboardError):
    """Raised when a rate limit is exceeded."""

    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: str | None = None, retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


def check_rate_limit(
    key: str,
    *,
    max_requests: int,
    window_seconds: int,
) -> None:
    """
    Check and increment a rate limit counter.

    ``cache.add()`` is a no-op when the key exists and ``cache.incr()`` is
    atomic on the shared backends, so concurrent workers count correctly.

    Raises:
        RateLimitExceeded: If the limit has been reached.
    """
    cache_key = f"rate_limit:{key}"

    cache.add(cache_key, 0, timeout=window_seconds)

    try:
        current = cache.incr(cache_key)
    except ValueError:
        # Key expired between add() and incr()
        cache.set(cache_key, 1, timeout=window_seconds)
        return

    if current > max_requests:
        logger.warning("rate_limit_exceeded", key=key, limit=max_requests, window=window_seconds)
        raise RateLimitExceeded(retry_after=window_seconds)
