"""
Tests for the verification cache handle.
"""
import pytest
import redis

from parley.core.errors import ServiceUnavailableError
from parley.db.cache import get_cache, get_redis_pool


def test_redis_pool_is_built_lazily_and_shared():
    get_redis_pool.cache_clear()
    assert get_redis_pool.cache_info().currsize == 0

    first, second = get_cache(), get_cache()
    assert first.client.connection_pool is second.client.connection_pool
    assert get_redis_pool.cache_info().currsize == 1
    get_redis_pool.cache_clear()


def test_entries_round_trip_with_ttl(cache):
    cache.set("key", {"code": "123456"}, 60)
    assert cache.get("key") == '{"code": "123456"}'
    assert 0 < cache.client.ttl("key") <= 60

    cache.delete("key")
    assert cache.get("key") is None


@pytest.mark.parametrize("method,args", [
    ("get", ("key",)),
    ("delete", ("key",)),
])
def test_redis_errors_become_service_unavailable(cache, monkeypatch, method, args):
    def broken(*a, **kw):
        raise redis.TimeoutError("timed out")

    monkeypatch.setattr(cache.client, method, broken)
    with pytest.raises(ServiceUnavailableError):
        getattr(cache, method)(*args)
