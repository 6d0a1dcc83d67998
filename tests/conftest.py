import os

# Avant tout import de l'app: pas de Redis réel pour le rate limiting ni pour les paniers
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("USE_FAKE_REDIS_FOR_TESTS", "1")

import json
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional

import fakeredis
import pytest
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.cart.session_store import RedisCartSessionStore
from storefront.catalog.models import Product
from storefront.catalog.repository import InMemoryProductCatalog
from storefront.checkout.models import HostedCheckout, ShippingConfig
from storefront.dependencies import (
    get_cart_store,
    get_catalog,
    get_checkout_config,
    get_gateway,
    get_order_store,
    get_shipping_config,
)
from storefront.errors import SignatureInvalid
from storefront.orders.repository import InMemoryOrderStore
from storefront.payments.models import CreatedSession, PaymentEvent
from storefront.payments.stripe_client import event_from_stripe

VALID_SIGNATURE = "t=1700000000,v1=valid"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeGateway:
    """Passerelle de paiement en mémoire: enregistre les requêtes, sert les sessions."""

    def __init__(self):
        self.requests: List[Any] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.retrieved: List[Any] = []

    def create_session(self, request) -> CreatedSession:
        self.requests.append(request)
        session_id = f"cs_test_{len(self.requests)}"
        return CreatedSession(
            id=session_id,
            client_secret=f"{session_id}_secret_abc",
            url=f"https://checkout.stripe.test/c/pay/{session_id}",
        )

    def retrieve_session(self, session_id: str, expand=()) -> Dict[str, Any]:
        self.retrieved.append((session_id, tuple(expand)))
        return self.sessions[session_id]

    def verify_webhook(self, payload: bytes, signature_header: Optional[str]) -> PaymentEvent:
        if signature_header != VALID_SIGNATURE:
            raise SignatureInvalid("Invalid signature.")
        try:
            event = json.loads(payload)
        except ValueError:
            raise SignatureInvalid("Invalid payload.")
        return event_from_stripe(event)


def _address(name: str = "Jane Doe") -> Dict[str, Any]:
    return {
        "name": name,
        "address": {
            "country": "PT",
            "line1": "Rua Augusta 1",
            "line2": None,
            "postal_code": "1100-048",
            "city": "Lisboa",
            "state": None,
        },
    }


def make_stripe_session(
    order_id: str,
    session_id: str = "cs_test_1",
    payment_status: str = "paid",
    **overrides: Any,
) -> Dict[str, Any]:
    """Session Checkout telle que relue avec les expansions (1 T-Shirt x2 + livraison)."""
    customer = _address()
    customer.update({"email": "jane@example.com", "phone": None, "tax_ids": []})
    session: Dict[str, Any] = {
        "id": session_id,
        "object": "checkout.session",
        "status": "complete",
        "currency": "eur",
        "payment_status": payment_status,
        "metadata": {"order_id": order_id},
        "amount_subtotal": 2000,
        "amount_total": 2490,
        "total_details": {"amount_discount": 0, "amount_shipping": 490, "amount_tax": 0},
        "customer_details": customer,
        "shipping_details": _address(),
        "custom_fields": [],
        "shipping_cost": {"shipping_rate": {"display_name": "Standard"}},
        "payment_intent": {
            "id": "pi_test_1",
            "payment_method": {"type": "card"},
            "last_payment_error": None,
        },
        "line_items": {
            "data": [
                {
                    "description": "T-Shirt",
                    "quantity": 2,
                    "amount_subtotal": 2000,
                    "amount_discount": 0,
                    "amount_total": 2000,
                    "price": {
                        "unit_amount": 1000,
                        "product": {
                            "name": "T-Shirt",
                            "description": "Size: M",
                            "metadata": {"product_id": "p1"},
                        },
                    },
                }
            ]
        },
    }
    session.update(overrides)
    return session


def make_stripe_event(event_id: str, event_type: str, session_id: str = "cs_test_1", created: int = 1700000000) -> Dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": created,
        "data": {"object": {"id": session_id, "object": "checkout.session"}},
    }


@pytest.fixture
def stripe_session():
    return make_stripe_session


@pytest.fixture
def stripe_event():
    return make_stripe_event


@pytest.fixture
def products() -> List[Product]:
    return [
        Product(id="p1", name="T-Shirt", price=Decimal("10.00"), thumbnail_url="https://cdn.test/p1.png", is_available=True),
        Product(id="p2", name="Mug", price=Decimal("4.50"), thumbnail_url=None, is_available=True),
        Product(id="p-draft", name="Draft", price=Decimal("3.00"), is_available=False),
        Product(id="p-noprice", name="Free text", price=None, is_available=True),
    ]


@pytest.fixture
def catalog(products) -> InMemoryProductCatalog:
    return InMemoryProductCatalog(products)


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def cart_store(redis_client) -> RedisCartSessionStore:
    return RedisCartSessionStore(redis_client, ttl_seconds=3600)


@pytest.fixture
def order_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def checkout_config():
    return HostedCheckout(
        success_url="https://shop.test/checkout/success",
        cancel_url="https://shop.test/cart",
    )


@pytest.fixture
def shipping_config() -> ShippingConfig:
    return ShippingConfig.disabled()


@pytest.fixture
def app(catalog, cart_store, order_store, gateway, checkout_config, shipping_config):
    fastapi_app = create_app()
    fastapi_app.dependency_overrides[get_catalog] = lambda: catalog
    fastapi_app.dependency_overrides[get_cart_store] = lambda: cart_store
    fastapi_app.dependency_overrides[get_order_store] = lambda: order_store
    fastapi_app.dependency_overrides[get_gateway] = lambda: gateway
    fastapi_app.dependency_overrides[get_checkout_config] = lambda: checkout_config
    fastapi_app.dependency_overrides[get_shipping_config] = lambda: shipping_config
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
