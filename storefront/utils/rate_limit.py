"""
Limitation de débit des routes panier et checkout.
Clé: identifiant de panier (hashé) sinon IP, par chemin.
"""
from typing import Dict, Any, List
from fastapi import Request, Response, HTTPException
import os
import time
import hashlib
import logging

from storefront.config import CART_SESSION_KEY

logger = logging.getLogger(__name__)

TOO_MANY = "Too Many Requests"


def _client_key(req: Request) -> str:
    path = req.url.path
    session = req.scope.get("session") or {}
    cart_id = session.get(CART_SESSION_KEY)
    if cart_id:
        h = hashlib.sha256(str(cart_id).encode("utf-8")).hexdigest()[:16]
        return f"cart:{h}:{path}"
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{path}"


def _memory_hit(request: Request, times: int, seconds: int) -> None:
    # Fenêtre glissante par clé, conservée sur app.state (un seul process)
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", None) or {}
    key = _client_key(request)
    now = time.time()
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail=TOO_MANY)
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store


def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de limitation de débit:
    - LOCAL_RATE_LIMIT_FALLBACK=1: compteur en mémoire
    - app.state.rate_limit_enabled False: aucune limite
    - sinon fastapi-limiter (Redis, initialisé par le lifespan)
    """
    async def _identifier(req: Request) -> str:
        return _client_key(req)

    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _memory_hit(request, times, seconds)
            return
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter import FastAPILimiter
        from fastapi_limiter.depends import RateLimiter
        if getattr(FastAPILimiter, "redis", None) is None:
            return
        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible: la requête passe
            logger.warning("rate_limit: limiteur indisponible, requête autorisée: %s", e)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    from fastapi_limiter import FastAPILimiter

    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None
    if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }

    if backend == "redis":
        from urllib.parse import urlparse
        redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
        if redis_url:
            p = urlparse(redis_url)
            info["redis"] = {
                "scheme": p.scheme,
                "host": p.hostname,
                "port": p.port,
            }

    return info
