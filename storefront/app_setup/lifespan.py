"""
Lifespan FastAPI.
Démarrage: limiteur de débit (FastAPILimiter sur Redis) pour les routes panier/checkout.
Arrêt: fermeture du limiteur et du client Redis des paniers.

Variables d'environnement:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de limiteur (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: fakeredis au lieu de Redis
  - LOCAL_RATE_LIMIT_FALLBACK=1: compteur en mémoire si Redis est injoignable
  - RATE_LIMIT_REDIS_URL: base Redis du limiteur
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from storefront.infra.redis_client import close_cart_redis

logger = logging.getLogger("uvicorn.error")


def _limiter_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        from fakeredis.aioredis import FakeRedis

        return FakeRedis(decode_responses=True)
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)


async def _start_rate_limiter(app: FastAPI) -> bool:
    """Retourne True si FastAPILimiter a été initialisé (à fermer à l'arrêt)."""
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("rate limit: désactivé (DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS)")
        return False
    try:
        await FastAPILimiter.init(_limiter_redis())
    except Exception as e:
        fallback = os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1"
        app.state.rate_limit_enabled = fallback
        logger.warning("rate limit: Redis indisponible (%s), fallback mémoire=%s", e, fallback)
        return False
    app.state.rate_limit_enabled = True
    logger.info("rate limit: actif (Redis)")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    limiter_started = await _start_rate_limiter(app)
    try:
        yield
    finally:
        if limiter_started:
            await FastAPILimiter.close()
        close_cart_redis()
