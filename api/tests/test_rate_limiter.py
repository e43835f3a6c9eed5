"""Rate limiter tests."""

from redis.exceptions import ConnectionError as RedisConnectionError

from assethub.services.rate_limiter import RATE_LIMIT_PRESETS, RateLimiter, client_ip


class UnavailableRedis:
    def pipeline(self):
        raise RedisConnectionError("connection refused")


def test_presets():
    assert RATE_LIMIT_PRESETS["upload"].limit == 10
    assert RATE_LIMIT_PRESETS["upload"].window_ms == 300_000
    assert RATE_LIMIT_PRESETS["search"].limit == 30
    assert (RATE_LIMIT_PRESETS["auth"].limit, RATE_LIMIT_PRESETS["auth"].window_ms) == (5, 60_000)
    assert (RATE_LIMIT_PRESETS["api"].limit, RATE_LIMIT_PRESETS["api"].window_ms) == (100, 60_000)


def test_allows_up_to_limit_then_blocks(fake_redis):
    limiter = RateLimiter(fake_redis)

    results = [limiter.check("1.2.3.4:/v1/assets", 3, 60_000) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after > 0


def test_keys_are_independent(fake_redis):
    limiter = RateLimiter(fake_redis)
    limiter.check("a", 1, 60_000)

    assert not limiter.check("a", 1, 60_000).allowed
    assert limiter.check("b", 1, 60_000).allowed


def test_window_gets_ttl(fake_redis):
    RateLimiter(fake_redis).check("a", 5, 60_000)
    assert 0 < fake_redis.pttl("rate_limit:a") <= 60_000


def test_fails_open_when_redis_unavailable():
    result = RateLimiter(UnavailableRedis()).check("a", 1, 60_000)
    assert result.allowed
    assert result.remaining == 1


def test_disabled_limiter_allows_everything(fake_redis):
    limiter = RateLimiter(fake_redis, enabled=False)
    assert all(limiter.check("a", 1, 60_000).allowed for _ in range(5))


def test_client_ip_prefers_forwarded_header():
    assert client_ip({"x-forwarded-for": "10.0.0.1, 10.0.0.2"}, "127.0.0.1") == "10.0.0.1"
    assert client_ip({"x-real-ip": "10.0.0.9"}, "127.0.0.1") == "10.0.0.9"
    assert client_ip({}, "127.0.0.1") == "127.0.0.1"
    assert client_ip({}, None) == "anonymous"


def test_upload_endpoint_returns_429(client, creative, headers):
    body = {"fileName": "a.png", "fileSize": 1000, "fileType": "image/png"}
    statuses = [
        client.post("/v1/assets/upload/prepare", json=body, headers=headers(creative)).status_code
        for _ in range(11)
    ]

    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429

    response = client.post("/v1/assets/upload/prepare", json=body, headers=headers(creative))
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(response.headers["Retry-After"]) > 0
