import asyncio
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from reparaya import rate_limiter


def fake_redis(count: int) -> MagicMock:
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [count, True]
    return client


def make_request(ip: str = "10.0.0.1", forwarded: str = None) -> MagicMock:
    request = MagicMock()
    request.client.host = ip
    request.headers = {"X-Forwarded-For": forwarded} if forwarded else {}
    return request


def test_requests_within_limit_are_allowed():
    allowed, count, ttl = rate_limiter.check_rate_limit("catalog:1.2.3.4", 5, 60, fake_redis(3))

    assert allowed
    assert count == 3
    assert 0 < ttl <= 60


def test_requests_over_limit_are_refused():
    allowed, count, _ = rate_limiter.check_rate_limit("catalog:1.2.3.4", 5, 60, fake_redis(6))
    assert not allowed
    assert count == 6


def test_dependency_raises_429_with_retry_after():
    with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", True), patch.object(
        rate_limiter, "get_redis_client", return_value=fake_redis(121)
    ):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(rate_limiter.rate_limit_dependency(make_request(), 120, 60, "catalog"))

    assert exc_info.value.status_code == 429
    assert "Retry-After" in exc_info.value.headers


def test_forwarded_ip_is_used_for_the_key():
    client = fake_redis(1)

    with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", True), patch.object(
        rate_limiter, "get_redis_client", return_value=client
    ):
        asyncio.run(
            rate_limiter.rate_limit_dependency(
                make_request(forwarded="203.0.113.7, 10.0.0.1"), 120, 60, "catalog"
            )
        )

    key = client.pipeline.return_value.incr.call_args.args[0]
    assert key.startswith("catalog:203.0.113.7:")


def test_redis_failure_fails_closed():
    with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", True), patch.object(
        rate_limiter, "get_redis_client", side_effect=ConnectionError("down")
    ):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(rate_limiter.rate_limit_dependency(make_request(), 120, 60, "catalog"))

    assert exc_info.value.status_code == 503


def test_disabled_limiter_never_touches_redis():
    with patch.object(rate_limiter, "RATE_LIMIT_ENABLED", False), patch.object(
        rate_limiter, "get_redis_client"
    ) as get_client:
        asyncio.run(rate_limiter.rate_limit_dependency(make_request(), 1, 60, "catalog"))

    get_client.assert_not_called()
