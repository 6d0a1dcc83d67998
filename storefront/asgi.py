"""
ASGI entrypoint: expose `app` pour les process managers / déploiements
(ex: uvicorn storefront.asgi:app).
"""

from storefront.app import app

__all__ = ["app"]
