from datetime import datetime, timezone
from decimal import Decimal

import pytest

from storefront.orders.models import OrderStatus
from storefront.orders.snapshot import humanize_payment_method, order_from_session
from storefront.payments.models import EventType, PaymentEvent

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def completed_event():
    return PaymentEvent(
        id="evt_1",
        type=EventType.SESSION_COMPLETED,
        provider_type="checkout.session.completed",
        created_at=datetime(2024, 5, 1, 11, 59, tzinfo=timezone.utc),
        session_id="cs_test_1",
    )


def test_paid_session_snapshot(stripe_session, completed_event):
    order = order_from_session("order-1", stripe_session("order-1"), completed_event, NOW)

    assert order.id == "order-1"
    assert order.status == OrderStatus.PAID
    assert order.paid_at == NOW
    assert order.created_at == NOW
    assert order.currency == "EUR"
    assert order.currency_symbol == "€"
    assert order.checkout_session_id == "cs_test_1"
    assert order.payment_method == "Card"
    assert order.payment_intent_id == "pi_test_1"
    assert order.shipping_option == "Standard"
    assert order.amounts.subtotal == Decimal("20.00")
    assert order.amounts.shipping == Decimal("4.90")
    assert order.amounts.discount == Decimal("0.00")
    assert order.amounts.total == Decimal("24.90")

    (line,) = order.line_items
    assert line.name == "T-Shirt"
    assert line.description == "Size: M"
    assert line.price == Decimal("10.00")
    assert line.quantity == 2
    assert line.total == Decimal("20.00")
    assert line.product_id == "p1"

    assert order.customer.email == "jane@example.com"
    assert order.shipping_details.city == "Lisboa"
    assert order.billing_details.postal_code == "1100-048"
    assert order.tax_id is None

    (event,) = order.events
    assert event.event_id == "evt_1"
    assert event.type == "checkout.session.completed"
    assert event.payment_status == "paid"
    assert event.message is None
    assert event.occurred_at == completed_event.created_at


def test_unpaid_session_is_pending(stripe_session, completed_event):
    order = order_from_session("order-1", stripe_session("order-1", payment_status="unpaid"), completed_event, NOW)
    assert order.status == OrderStatus.PENDING
    assert order.paid_at is None


def test_no_cost_session(stripe_session, completed_event):
    session = stripe_session(
        "order-1",
        payment_status="no_payment_required",
        payment_intent=None,
        shipping_details=None,
        shipping_cost=None,
        amount_total=0,
    )
    session["customer_details"]["address"]["country"] = None

    order = order_from_session("order-1", session, completed_event, NOW)

    assert order.status == OrderStatus.PAID
    assert order.payment_method == "No Cost"
    assert order.payment_intent_id is None
    assert order.shipping_details is None
    assert order.billing_details is None
    assert order.shipping_option is None


def test_tax_id_and_custom_fields(stripe_session, completed_event):
    session = stripe_session("order-1")
    session["customer_details"]["tax_ids"] = [{"type": "eu_vat", "value": "PT123456789"}, {"type": "x", "value": "y"}]
    session["custom_fields"] = [
        {"key": "gift", "type": "dropdown", "label": {"custom": "Gift wrap"}, "dropdown": {"value": "yes"}},
        {"key": "note", "type": "text", "label": {"custom": "Note"}, "text": {"value": None}},
    ]

    order = order_from_session("order-1", session, completed_event, NOW)

    assert order.tax_id.type == "eu_vat"
    assert order.tax_id.value == "PT123456789"
    gift, note = order.custom_fields
    assert (gift.name, gift.value, gift.key) == ("Gift wrap", "yes", "gift")
    assert note.value is None


def test_last_payment_error_becomes_event_message(stripe_session, completed_event):
    session = stripe_session("order-1", payment_status="unpaid")
    session["payment_intent"]["last_payment_error"] = {"message": "Your card was declined."}

    order = order_from_session("order-1", session, completed_event, NOW)

    assert order.events[0].message == "Your card was declined."


@pytest.mark.parametrize(
    "raw,expected",
    [("card", "Card"), ("apple_pay", "Apple Pay"), ("sepa_debit", "Sepa Debit"), ("no_cost", "No Cost")],
)
def test_humanize_payment_method(raw, expected):
    assert humanize_payment_method(raw) == expected
