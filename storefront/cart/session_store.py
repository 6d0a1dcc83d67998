"""
Stockage du panier par session de navigation.

Le cookie de session (SessionMiddleware) ne contient qu'un identifiant opaque;
le contenu du panier est un document JSON rangé sous cet identifiant.
- RedisCartSessionStore: production (TTL glissant à chaque écriture).
- InMemoryCartSessionStore: dev local sans Redis.
"""
from typing import Any, Dict, Optional, Protocol
import json
import threading

from storefront.config import CART_SESSION_TTL


class CartSessionStore(Protocol):
    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        ...

    def clear(self, session_id: str) -> None:
        ...


class RedisCartSessionStore:
    def __init__(self, client, ttl_seconds: int = CART_SESSION_TTL, prefix: str = "storefront:cart:"):
        self._client = client
        self._ttl = ttl_seconds
        self._prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        raw = self._client.get(self._key(session_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        self._client.set(self._key(session_id), json.dumps(data), ex=self._ttl)

    def clear(self, session_id: str) -> None:
        self._client.delete(self._key(session_id))


class InMemoryCartSessionStore:
    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            raw = self._data.get(session_id)
        return json.loads(raw) if raw is not None else None

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        # Sérialisé pour reproduire le comportement de Redis (pas d'alias mutable)
        with self._lock:
            self._data[session_id] = json.dumps(data)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._data.pop(session_id, None)
