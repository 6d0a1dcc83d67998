"""
Client Redis du stockage des paniers.
- CART_REDIS_URL: base dédiée aux paniers (distincte du rate limiting)
- USE_FAKE_REDIS_FOR_TESTS=1: fakeredis en mémoire (tests)
"""
from typing import Optional
import os
import redis
from storefront.config import CART_REDIS_URL

_cart_redis: Optional[redis.Redis] = None

def get_cart_redis() -> redis.Redis:
    global _cart_redis
    if _cart_redis is None:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            import fakeredis  # extra [test]

            _cart_redis = fakeredis.FakeRedis(decode_responses=True)
        else:
            _cart_redis = redis.from_url(CART_REDIS_URL, encoding="utf-8", decode_responses=True)
    return _cart_redis


def close_cart_redis() -> None:
    global _cart_redis
    if _cart_redis is not None:
        _cart_redis.close()
        _cart_redis = None
