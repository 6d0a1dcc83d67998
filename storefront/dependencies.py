# module storefront.dependencies
"""
Dépendances FastAPI: assemblage des composants (catalogue, store de panier,
store de commandes, passerelle Stripe, réconciliateur).
Les tests remplacent ces fonctions via app.dependency_overrides.
"""
from typing import Optional
from uuid import uuid4

from fastapi import Depends, Request

from storefront.cart.cart import Cart
from storefront.cart.session_store import CartSessionStore, RedisCartSessionStore
from storefront.catalog.repository import ProductCatalog, SupabaseProductCatalog
from storefront.checkout.models import CheckoutConfig, ShippingConfig
from storefront.checkout.settings import load_shipping_config, resolve_checkout_config
from storefront.config import (
    CART_SESSION_KEY,
    CHECKOUT_CURRENCY,
    CHECKOUT_ORDERS_KEPT,
    CHECKOUT_ORDERS_SESSION_KEY,
    ORDERS_TABLE,
    PRODUCTS_TABLE,
)
from storefront.infra.redis_client import get_cart_redis
from storefront.infra.supabase_client import get_service_supabase
from storefront.orders.reconciler import WebhookReconciler
from storefront.orders.repository import OrderStore, SupabaseOrderStore
from storefront.payments.stripe_client import PaymentGateway, StripeGateway

_shipping_config: Optional[ShippingConfig] = None


def cart_session_id(request: Request) -> str:
    """Identifiant opaque du panier, créé au premier accès et rangé dans le cookie de session."""
    cart_id = request.session.get(CART_SESSION_KEY)
    if not cart_id:
        cart_id = uuid4().hex
        request.session[CART_SESSION_KEY] = cart_id
    return cart_id


def remember_checkout_order(request: Request, order_id: str) -> None:
    """Range l'order_id d'une session Checkout créée par ce navigateur (les plus récents)."""
    kept = [o for o in request.session.get(CHECKOUT_ORDERS_SESSION_KEY) or [] if o != order_id]
    kept.append(order_id)
    request.session[CHECKOUT_ORDERS_SESSION_KEY] = kept[-CHECKOUT_ORDERS_KEPT:]


def started_checkout(request: Request, order_id: str) -> bool:
    return order_id in (request.session.get(CHECKOUT_ORDERS_SESSION_KEY) or [])


def get_cart_store() -> CartSessionStore:
    return RedisCartSessionStore(get_cart_redis())


def get_catalog() -> ProductCatalog:
    return SupabaseProductCatalog(get_service_supabase(), PRODUCTS_TABLE)


def get_order_store() -> OrderStore:
    return SupabaseOrderStore(get_service_supabase(), ORDERS_TABLE)


def get_gateway() -> PaymentGateway:
    return StripeGateway()


def get_checkout_config() -> CheckoutConfig:
    return resolve_checkout_config()


def get_shipping_config() -> ShippingConfig:
    global _shipping_config
    if _shipping_config is None:
        _shipping_config = load_shipping_config()
    return _shipping_config


def get_cart(
    request: Request,
    store: CartSessionStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
) -> Cart:
    return Cart(cart_session_id(request), store, catalog, CHECKOUT_CURRENCY)


def get_reconciler(store: OrderStore = Depends(get_order_store)) -> WebhookReconciler:
    return WebhookReconciler(store)
