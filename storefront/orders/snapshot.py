# module storefront.orders.snapshot
"""
Conversion d'une session Checkout (dict, avec expansions line_items /
payment_intent / shipping_cost) en commande.
Les montants de la session sont en unité mineure et sont ramenés en unité
majeure selon l'exposant de la devise.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from storefront.orders.models import (
    Address,
    Customer,
    CustomField,
    Order,
    OrderAmounts,
    OrderEvent,
    OrderLineItem,
    OrderStatus,
    TaxId,
)
from storefront.payments.models import PaymentEvent
from storefront.utils.money import currency_symbol, from_minor_unit

NO_COST = "no_cost"


def _get(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def _amount(value: Any, currency: str) -> Decimal:
    return from_minor_unit(int(value or 0), currency)


def humanize_payment_method(payment_type: str) -> str:
    # apple_pay -> Apple Pay
    return " ".join(w[:1].upper() + w[1:] for w in payment_type.replace("_", " ").split())


def status_from_payment(payment_status: Optional[str]) -> OrderStatus:
    return OrderStatus.PENDING if payment_status == "unpaid" else OrderStatus.PAID


def _address(details: Any) -> Address:
    return Address(
        name=_get(details, "name"),
        country=_get(details, "address", "country"),
        line1=_get(details, "address", "line1"),
        line2=_get(details, "address", "line2"),
        postal_code=_get(details, "address", "postal_code"),
        city=_get(details, "address", "city"),
        state=_get(details, "address", "state"),
    )


def _shipping_details(session: Mapping[str, Any]) -> Optional[Address]:
    # Anciennes versions de l'API: shipping_details; récentes: collected_information.shipping_details
    details = session.get("shipping_details") or _get(session, "collected_information", "shipping_details")
    if not details:
        return None
    return _address(details)


def _billing_details(session: Mapping[str, Any]) -> Optional[Address]:
    # customer_details est toujours rempli, même sans payment_intent (commande gratuite)
    details = session.get("customer_details")
    if _get(details, "address", "country") is None:
        return None
    return _address(details)


def _tax_id(session: Mapping[str, Any]) -> Optional[TaxId]:
    tax_ids = _get(session, "customer_details", "tax_ids") or []
    if not tax_ids:
        return None
    return TaxId(type=str(tax_ids[0].get("type")), value=str(tax_ids[0].get("value")))


def _custom_fields(session: Mapping[str, Any]) -> List[CustomField]:
    fields = []
    for field in session.get("custom_fields") or []:
        field_type = field.get("type")
        value = _get(field, field_type, "value") if field_type else None
        fields.append(CustomField(
            name=_get(field, "label", "custom"),
            value=None if value is None else str(value),
            key=str(field.get("key")),
        ))
    return fields


def _line_items(session: Mapping[str, Any], currency: str) -> List[OrderLineItem]:
    items = []
    for li in _get(session, "line_items", "data") or []:
        product = _get(li, "price", "product") or {}
        items.append(OrderLineItem(
            name=str(product.get("name") or li.get("description") or ""),
            description=product.get("description"),
            price=_amount(_get(li, "price", "unit_amount"), currency),
            quantity=int(li.get("quantity") or 0),
            subtotal=_amount(li.get("amount_subtotal"), currency),
            discount=_amount(li.get("amount_discount"), currency),
            total=_amount(li.get("amount_total"), currency),
            product_id=_get(product, "metadata", "product_id"),
        ))
    return items


def order_event(event: PaymentEvent, session: Mapping[str, Any]) -> OrderEvent:
    """Entrée du journal: message = dernière erreur de paiement éventuelle."""
    return OrderEvent(
        event_id=event.id,
        type=event.provider_type,
        payment_status=session.get("payment_status"),
        message=_get(session, "payment_intent", "last_payment_error", "message"),
        occurred_at=event.created_at,
    )


def order_from_session(
    order_id: str,
    session: Mapping[str, Any],
    event: PaymentEvent,
    now: datetime,
) -> Order:
    """
    Construit la commande complète:
    - statut paid sauf si payment_status == 'unpaid' (pending)
    - premier événement du journal = l'événement de complétion
    - payment_method 'No Cost' si la session n'a pas de payment_intent
    """
    currency = str(session.get("currency") or "").upper()
    payment_type = _get(session, "payment_intent", "payment_method", "type") or NO_COST
    status = status_from_payment(session.get("payment_status"))
    customer: Dict[str, Any] = session.get("customer_details") or {}

    return Order(
        id=order_id,
        status=status,
        currency=currency,
        currency_symbol=currency_symbol(currency),
        line_items=tuple(_line_items(session, currency)),
        amounts=OrderAmounts(
            subtotal=_amount(session.get("amount_subtotal"), currency),
            discount=_amount(_get(session, "total_details", "amount_discount"), currency),
            shipping=_amount(_get(session, "total_details", "amount_shipping"), currency),
            total=_amount(session.get("amount_total"), currency),
        ),
        customer=Customer(
            email=customer.get("email"),
            name=customer.get("name"),
            phone=customer.get("phone"),
        ),
        shipping_details=_shipping_details(session),
        billing_details=_billing_details(session),
        shipping_option=_get(session, "shipping_cost", "shipping_rate", "display_name"),
        tax_id=_tax_id(session),
        custom_fields=tuple(_custom_fields(session)),
        payment_method=humanize_payment_method(payment_type),
        payment_intent_id=_get(session, "payment_intent", "id"),
        checkout_session_id=session.get("id"),
        created_at=now,
        paid_at=now if status == OrderStatus.PAID else None,
        events=(order_event(event, session),),
    )
