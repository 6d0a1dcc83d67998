"""
Factory d'application utilisée par storefront.app et storefront.asgi.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_response_headers_middleware
from .exception_handlers import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app: session de panier, CORS/TrustedHost, en-têtes de réponse,
    gestionnaires d'erreurs puis routers (panier, checkout, webhook, commandes, health).
    """
    app = FastAPI(title="Storefront Checkout", version="0.1.0", lifespan=lifespan)
    register_basic_middlewares(app)
    register_response_headers_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
