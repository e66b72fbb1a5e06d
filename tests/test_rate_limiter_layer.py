import asyncio
from datetime import timedelta

import pytest

from subgateway.http.middleware.rate_limiter import RateLimitSettings
from subgateway.http.middleware.rate_limiter_layer import AddRateLimiterLayer
from subgateway.http.types import Request, Response

KEY_A = "0x7e85cd2be319b777be2dd77942b9471a7e0c9b25"
KEY_B = "0xbe2a4049c53d8919b0605354ad7ae8ce6e22717c"


class _Recorder:
    def __init__(self):
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        return Response(status=200, body="handled")


def _request(settings=None):
    request = Request()
    if settings is not None:
        request.insert_extension(settings)
    return request


def _setup(reset_interval=None):
    layer = AddRateLimiterLayer(reset_interval)
    inner = _Recorder()
    return layer, inner, layer.layer(inner)


@pytest.mark.asyncio
async def test_no_rate_limited_request_is_handled():
    layer, inner, svc = _setup()
    response = await svc(_request())
    assert response.body == "handled"
    assert len(inner.requests) == 1
    assert inner.requests[0].extension(RateLimitSettings) is None
    assert len(layer.counters) == 0


@pytest.mark.asyncio
async def test_rate_limited_request_within_limit():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=5)
    layer, inner, svc = _setup()
    for _ in range(3):
        await svc(_request(settings))
    assert len(inner.requests) == 3
    for request in inner.requests:
        got = request.extension(RateLimitSettings)
        assert got.key == settings.key
        assert got.queries_per_minute == 5
    assert len(layer.counters) == 1
    assert layer.counters.get(KEY_A) == 3


@pytest.mark.asyncio
async def test_rate_limited_request_exceeds_limit():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=4)
    layer, inner, svc = _setup()
    for _ in range(4):
        await svc(_request(settings))
    assert len(inner.requests) == 4

    response = await svc(_request(settings))
    assert response.status == 200
    assert response.header("content-type") == "application/json"
    body = response.json()
    assert len(body["errors"]) == 1
    assert body["errors"][0]["message"] == "auth error: rate limit exceeded"
    assert len(inner.requests) == 4

    assert len(layer.counters) == 1
    assert layer.counters.get(KEY_A) == 5


@pytest.mark.asyncio
async def test_different_rate_limits_should_be_handled():
    one_max = RateLimitSettings(key=KEY_B, queries_per_minute=1)
    three_max = RateLimitSettings(key=KEY_A, queries_per_minute=3)
    layer, inner, svc = _setup()
    for settings in [one_max, three_max, three_max, one_max, one_max, three_max, three_max]:
        await svc(_request(settings))

    assert len(inner.requests) == 4
    assert inner.requests[0].extension(RateLimitSettings) == one_max
    assert inner.requests[3].extension(RateLimitSettings) == three_max
    assert len(layer.counters) == 2
    assert layer.counters.get(KEY_B) == 3
    assert layer.counters.get(KEY_A) == 4


@pytest.mark.asyncio
async def test_request_counters_should_be_reset():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=3)
    layer, inner, svc = _setup()
    for _ in range(4):
        await svc(_request(settings))
    assert len(inner.requests) == 3

    before = layer.counters.get(KEY_A)
    layer.reset_counters()
    after = layer.counters.get(KEY_A)
    assert before == 4
    assert after == 0

    response = await svc(_request(settings))
    assert response.body == "handled"
    assert len(inner.requests) == 4
    assert len(layer.counters) == 1
    assert layer.counters.get(KEY_A) == 1


@pytest.mark.asyncio
async def test_request_counters_should_be_removed():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=3)
    layer, inner, svc = _setup()
    for _ in range(4):
        await svc(_request(settings))

    before = layer.counters.get(KEY_A)
    layer.reset_counters()
    after_reset = layer.counters.get(KEY_A)
    layer.reset_counters()
    after_remove = layer.counters.get(KEY_A)
    assert before == 4
    assert after_reset == 0
    assert after_remove is None

    await svc(_request(settings))
    assert len(inner.requests) == 4
    assert len(layer.counters) == 1
    assert layer.counters.get(KEY_A) == 1


@pytest.mark.asyncio
async def test_run_resets_and_removes_counters_periodically():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=3)
    layer, inner, svc = _setup(0.2)
    task = asyncio.create_task(layer.run())
    try:
        for _ in range(4):
            await svc(_request(settings))
        before = layer.counters.get(KEY_A)
        await asyncio.sleep(0.3)
        after_reset = layer.counters.get(KEY_A)
        await asyncio.sleep(0.2)
        after_remove = layer.counters.get(KEY_A)
    finally:
        task.cancel()
    assert before == 4
    assert after_reset == 0
    assert after_remove is None


@pytest.mark.asyncio
async def test_run_without_interval_never_resets():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=3)
    layer, _, svc = _setup(None)
    task = asyncio.create_task(layer.run())
    try:
        await svc(_request(settings))
        await asyncio.sleep(0.05)
        assert layer.counters.get(KEY_A) == 1
        assert not task.done()
    finally:
        task.cancel()


@pytest.mark.asyncio
async def test_layered_services_share_counters():
    settings = RateLimitSettings(key=KEY_A, queries_per_minute=1)
    layer = AddRateLimiterLayer()
    first_inner, second_inner = _Recorder(), _Recorder()
    first, second = layer.layer(first_inner), layer.layer(second_inner)
    await first(_request(settings))
    response = await second(_request(settings))
    assert response.json()["errors"][0]["message"] == "auth error: rate limit exceeded"
    assert len(second_inner.requests) == 0
    assert layer.counters.get(KEY_A) == 2


def test_default_reset_interval_is_one_minute():
    assert AddRateLimiterLayer().reset_interval == 60.0


def test_timedelta_and_infinite_intervals():
    assert AddRateLimiterLayer(timedelta(milliseconds=500)).reset_interval == 0.5
    assert AddRateLimiterLayer(float("inf")).reset_interval is None


@pytest.mark.parametrize("interval", [0, -1.0, float("nan")])
def test_invalid_reset_interval_is_rejected(interval):
    with pytest.raises(ValueError):
        AddRateLimiterLayer(interval)