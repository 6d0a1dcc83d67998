# module storefront.orders.models
"""
Modèles de commande.

Une commande est créée une seule fois (checkout.session.completed) à partir
de l'instantané de la session de paiement, puis seul son statut et son
journal d'événements évoluent:
- pending -> paid, pending -> failed
- paid / failed sont finaux
- events: journal en ajout seul, event_id unique par commande
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.FAILED})


class TerminalPolicy(str, Enum):
    """Événement de statut reçu alors que la commande est déjà finale."""

    IGNORE = "ignore"  # journalisé, statut inchangé
    REJECT = "reject"  # OrderAlreadyFinal, rien d'enregistré
    ALLOW = "allow"  # statut écrasé


class OrderEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    type: str
    payment_status: Optional[str] = None
    message: Optional[str] = None
    occurred_at: datetime


class OrderLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    price: Decimal
    quantity: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    product_id: Optional[str] = None


class OrderAmounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total: Decimal


class Customer(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    country: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


class TaxId(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    value: str


class CustomField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    value: Optional[str] = None
    key: str


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: OrderStatus = OrderStatus.PENDING
    currency: str
    currency_symbol: str
    line_items: Tuple[OrderLineItem, ...] = ()
    amounts: OrderAmounts
    customer: Customer = Customer()
    shipping_details: Optional[Address] = None
    billing_details: Optional[Address] = None
    shipping_option: Optional[str] = None
    tax_id: Optional[TaxId] = None
    custom_fields: Tuple[CustomField, ...] = ()
    payment_method: str
    payment_intent_id: Optional[str] = None
    checkout_session_id: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None
    events: Tuple[OrderEvent, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def has_event(self, event_id: str) -> bool:
        return any(e.event_id == event_id for e in self.events)
