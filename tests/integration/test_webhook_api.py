import json

from conftest import VALID_SIGNATURE

from storefront.orders.models import OrderStatus

WEBHOOK = "/stripe/checkout/webhook"


def _post(client, event, signature=VALID_SIGNATURE):
    return client.post(
        WEBHOOK,
        content=json.dumps(event).encode("utf-8"),
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


def test_completed_event_creates_order(client, gateway, order_store, stripe_session, stripe_event):
    gateway.sessions["cs_test_1"] = stripe_session("order-1")

    res = _post(client, stripe_event("evt_1", "checkout.session.completed"))

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "result": {"outcome": "created", "order_id": "order-1", "status": "paid"}}
    assert gateway.retrieved == [(
        "cs_test_1",
        ("line_items.data.price.product", "payment_intent.payment_method", "shipping_cost.shipping_rate"),
    )]
    assert order_store.find("order-1").status == OrderStatus.PAID


def test_redelivered_completion_is_acknowledged(client, gateway, order_store, stripe_session, stripe_event):
    gateway.sessions["cs_test_1"] = stripe_session("order-1")
    _post(client, stripe_event("evt_1", "checkout.session.completed"))

    res = _post(client, stripe_event("evt_1", "checkout.session.completed"))

    assert res.status_code == 200
    assert res.json()["result"]["outcome"] == "duplicate_order"
    assert len(order_store.find("order-1").events) == 1


def test_async_success_then_duplicate(client, gateway, order_store, stripe_session, stripe_event):
    gateway.sessions["cs_test_1"] = stripe_session("order-1", payment_status="unpaid")
    _post(client, stripe_event("evt_1", "checkout.session.completed"))
    gateway.sessions["cs_test_1"] = stripe_session("order-1", payment_status="paid")

    first = _post(client, stripe_event("evt_2", "checkout.session.async_payment_succeeded"))
    second = _post(client, stripe_event("evt_2", "checkout.session.async_payment_succeeded"))

    assert first.json()["result"] == {"outcome": "updated", "order_id": "order-1", "status": "paid"}
    assert second.status_code == 200
    assert second.json()["result"]["outcome"] == "duplicate_event"
    assert len(order_store.find("order-1").events) == 2


def test_async_event_for_unknown_order_is_rejected(client, gateway, stripe_session, stripe_event):
    gateway.sessions["cs_test_1"] = stripe_session("order-404")

    res = _post(client, stripe_event("evt_2", "checkout.session.async_payment_failed"))

    assert res.status_code == 400
    assert "order-404" in res.json()["detail"]


def test_bad_signature_is_rejected(client, gateway, stripe_event, caplog):
    res = _post(client, stripe_event("evt_1", "checkout.session.completed"), signature="t=1,v1=forged")

    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid signature."
    assert gateway.retrieved == []
    assert "payments.webhook rejeté" in caplog.text


def test_missing_order_id_is_rejected(client, gateway, stripe_session, stripe_event):
    gateway.sessions["cs_test_1"] = stripe_session("order-1", metadata={})
    res = _post(client, stripe_event("evt_1", "checkout.session.completed"))
    assert res.status_code == 400


def test_unhandled_event_is_acknowledged_without_lookup(client, gateway, stripe_event):
    res = _post(client, stripe_event("evt_3", "checkout.session.expired"))

    assert res.status_code == 200
    assert res.json()["result"]["outcome"] == "ignored"
    assert gateway.retrieved == []
