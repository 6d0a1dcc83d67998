"""
Middlewares transverses.
- Cookie de session signé (itsdangerous): ne porte que l'identifiant opaque du panier.
- CORS et TrustedHost selon CORS_ORIGINS / ALLOWED_HOSTS.
- En-têtes de sécurité sur toutes les réponses; pas de cache pour le panier et les commandes.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from storefront.config import ALLOWED_HOSTS, COOKIE_SECURE, CORS_ORIGINS, SESSION_SECRET_KEY

NO_CACHE_PREFIXES = ("/api/v1/cart", "/api/v1/orders")
SESSION_COOKIE = "storefront_session"


def register_basic_middlewares(app: FastAPI) -> None:
    app.add_middleware(
        SessionMiddleware,
        secret_key=SESSION_SECRET_KEY,
        session_cookie=SESSION_COOKIE,
        same_site="lax",
        https_only=COOKIE_SECURE,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        # Cookie de panier envoyé par le front
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )
    hosts = ["*"] if "*" in ALLOWED_HOSTS else ALLOWED_HOSTS
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=hosts)


def register_response_headers_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def response_headers(request: Request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("Referrer-Policy", "no-referrer")
        if COOKIE_SECURE:
            headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")
        if request.url.path.startswith(NO_CACHE_PREFIXES):
            headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            headers["Pragma"] = "no-cache"
        return response
