from datetime import datetime, timezone

from fastapi.testclient import TestClient

from storefront.orders.reconciler import WebhookReconciler
from storefront.payments.models import EventType, PaymentEvent


def _complete(order_store, session):
    event = PaymentEvent(
        id="evt_1",
        type=EventType.SESSION_COMPLETED,
        provider_type="checkout.session.completed",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        session_id=session["id"],
    )
    WebhookReconciler(order_store, policy="ignore").apply(event, session)


def _checkout(client, gateway, stripe_session, **overrides):
    client.post("/api/v1/cart/items", json={"id": "p1", "quantity": 2})
    assert client.get("/stripe/checkout", follow_redirects=False).status_code == 303
    order_id = gateway.requests[-1].order_id
    session = stripe_session(order_id, **overrides)
    gateway.sessions[session["id"]] = session
    return order_id, session


def test_success_page_returns_order_and_clears_cart(client, gateway, order_store, stripe_session):
    order_id, session = _checkout(client, gateway, stripe_session)
    _complete(order_store, session)

    res = client.get("/api/v1/orders/by-session/cs_test_1")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["id"] == order_id
    assert data["status"] == "paid"
    assert data["amounts"]["total"] == "24.90"
    assert data["payment_method"] == "Card"
    assert data["customer"]["email"] == "jane@example.com"
    assert client.get("/api/v1/cart").json()["data"]["items"] == []


def test_success_page_before_webhook(client, gateway, stripe_session):
    _checkout(client, gateway, stripe_session)

    res = client.get("/api/v1/orders/by-session/cs_test_1")

    assert res.status_code == 404
    # Paiement terminé: le panier est vidé même si la commande n'est pas encore enregistrée
    assert client.get("/api/v1/cart").json()["data"]["total_quantity"] == 0


def test_open_session_keeps_cart(client, gateway, stripe_session):
    _checkout(client, gateway, stripe_session, status="open")

    assert client.get("/api/v1/orders/by-session/cs_test_1").status_code == 404
    assert client.get("/api/v1/cart").json()["data"]["total_quantity"] == 2


def test_other_browser_gets_reduced_view_and_keeps_cart(app, client, gateway, order_store, stripe_session):
    order_id, session = _checkout(client, gateway, stripe_session)
    _complete(order_store, session)

    with TestClient(app) as other:
        other.post("/api/v1/cart/items", json={"id": "p2", "quantity": 1})
        res = other.get("/api/v1/orders/by-session/cs_test_1")

        assert res.status_code == 200
        data = res.json()["data"]
        assert data["id"] == order_id
        assert data["status"] == "paid"
        assert data["amounts"]["total"] == "24.90"
        assert "customer" not in data
        assert "shipping_details" not in data
        assert "billing_details" not in data
        assert other.get("/api/v1/cart").json()["data"]["total_quantity"] == 1

    # Le panier du navigateur d'origine n'a pas été touché non plus
    assert client.get("/api/v1/cart").json()["data"]["total_quantity"] == 2
