from storefront.cart.session_store import InMemoryCartSessionStore, RedisCartSessionStore


def test_redis_store_round_trip_with_ttl(redis_client):
    store = RedisCartSessionStore(redis_client, ttl_seconds=120, prefix="test:cart:")
    store.save("abc", {"currency": "EUR", "items": []})

    assert store.load("abc") == {"currency": "EUR", "items": []}
    assert redis_client.exists("test:cart:abc") == 1
    assert 0 < redis_client.ttl("test:cart:abc") <= 120


def test_redis_store_clear_and_missing(redis_client):
    store = RedisCartSessionStore(redis_client)
    assert store.load("missing") is None
    store.save("abc", {"currency": "EUR", "items": []})
    store.clear("abc")
    assert store.load("abc") is None


def test_in_memory_store_returns_copies():
    store = InMemoryCartSessionStore()
    data = {"currency": "EUR", "items": []}
    store.save("abc", data)
    data["items"].append({"key": "mutated"})

    assert store.load("abc") == {"currency": "EUR", "items": []}
    store.clear("abc")
    assert store.load("abc") is None
