# module storefront.orders.reconciler
"""
Réconciliation des webhooks de paiement en commandes.

Machine d'états: pending -> paid, pending -> failed; paid et failed sont finaux.

- session_completed: création de la commande (unicité portée par le store,
  une deuxième livraison lève DuplicateOrder).
- async_payment_succeeded / async_payment_failed: la commande doit exister
  (OrderNotFound sinon); l'événement est ajouté au journal s'il est absent
  (DuplicateEvent sinon) et le statut mis à jour dans la même opération.
- Événement tardif sur une commande finale: selon la politique
  ignore (journalisé, statut inchangé) | reject (OrderAlreadyFinal) | allow.
  La garde est évaluée par le store dans l'ajout atomique.
- order_hook: réécrit la commande avant sa création (id et journal conservés).
- Types non gérés: aucun effet, résultat 'ignored'.

apply() lève les signaux d'idempotence, handle() les convertit en résultat.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional
import logging

from pydantic import BaseModel, ConfigDict

from storefront.config import ORDER_TERMINAL_POLICY
from storefront.errors import (
    CheckoutConfigError,
    DuplicateEvent,
    DuplicateOrder,
    InvalidWebhook,
    OrderAlreadyFinal,
)
from storefront.orders.models import Order, OrderStatus, TerminalPolicy
from storefront.orders.repository import OrderStore
from storefront.orders.snapshot import order_event, order_from_session
from storefront.payments.models import EventType, PaymentEvent

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    IGNORED = "ignored"
    DUPLICATE_ORDER = "duplicate_order"
    DUPLICATE_EVENT = "duplicate_event"


class ReconcileResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    order_id: Optional[str] = None
    status: Optional[OrderStatus] = None


class PaymentNotification(BaseModel):
    """Notification envoyée aux écouteurs après un changement enregistré."""

    model_config = ConfigDict(frozen=True)

    kind: str  # succeeded | pending | failed
    order: Order
    event: PaymentEvent
    session: Dict[str, Any]


Listener = Callable[[PaymentNotification], None]
# Réécrit la commande avant sa création (contenu seulement)
OrderHook = Callable[[Order, Mapping[str, Any], PaymentEvent], Order]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_policy(value: Any) -> TerminalPolicy:
    if isinstance(value, TerminalPolicy):
        return value
    try:
        return TerminalPolicy(str(value or "").strip().lower())
    except ValueError:
        raise CheckoutConfigError(f'ORDER_TERMINAL_POLICY invalide: "{value}" (ignore | reject | allow)')


def order_id_from_session(session: Mapping[str, Any]) -> str:
    order_id = (session.get("metadata") or {}).get("order_id")
    if not order_id:
        raise InvalidWebhook("Missing order id in session metadata.")
    return str(order_id)


class WebhookReconciler:
    def __init__(
        self,
        store: OrderStore,
        policy: Any = ORDER_TERMINAL_POLICY,
        listeners: Iterable[Listener] = (),
        clock: Callable[[], datetime] = _utcnow,
        order_hook: Optional[OrderHook] = None,
    ):
        self._store = store
        self._policy = parse_policy(policy)
        self._listeners = list(listeners)
        self._clock = clock
        self._order_hook = order_hook

    @property
    def policy(self) -> TerminalPolicy:
        return self._policy

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def handle(self, event: PaymentEvent, session: Optional[Mapping[str, Any]]) -> ReconcileResult:
        """
        Comme apply(), mais les doublons sont des succès: le fournisseur doit
        cesser ses relances sans qu'aucun état ne change.
        """
        try:
            return self.apply(event, session)
        except DuplicateOrder:
            order_id = order_id_from_session(session or {})
            logger.info("orders: commande déjà créée order=%s event=%s", order_id, event.id)
            return self._duplicate(Outcome.DUPLICATE_ORDER, order_id)
        except DuplicateEvent:
            order_id = order_id_from_session(session or {})
            logger.info("orders: événement déjà traité order=%s event=%s", order_id, event.id)
            return self._duplicate(Outcome.DUPLICATE_EVENT, order_id)

    def apply(self, event: PaymentEvent, session: Optional[Mapping[str, Any]]) -> ReconcileResult:
        if event.type is None:
            return ReconcileResult(outcome=Outcome.IGNORED)
        if session is None:
            raise InvalidWebhook("Missing checkout session.")

        order_id = order_id_from_session(session)
        if event.type == EventType.SESSION_COMPLETED:
            return self._complete(order_id, event, session)
        return self._async_update(order_id, event, session)

    # --- interne ---
    def _complete(self, order_id: str, event: PaymentEvent, session: Mapping[str, Any]) -> ReconcileResult:
        order = order_from_session(order_id, session, event, self._clock())
        order = self._apply_order_hook(order, session, event)
        self._store.create(order)
        logger.info("orders: commande créée order=%s status=%s", order.id, order.status.value)

        kind = "succeeded" if order.status == OrderStatus.PAID else "pending"
        self._notify(kind, order, event, session)
        return ReconcileResult(outcome=Outcome.CREATED, order_id=order.id, status=order.status)

    def _apply_order_hook(self, order: Order, session: Mapping[str, Any], event: PaymentEvent) -> Order:
        if self._order_hook is None:
            return order
        hooked = self._order_hook(order, session, event)
        # Le contenu peut changer, pas l'identité ni le journal
        if not isinstance(hooked, Order) or hooked.id != order.id or hooked.events != order.events:
            raise CheckoutConfigError("order_hook doit retourner la commande avec le même id et le même journal.")
        return hooked

    def _async_update(self, order_id: str, event: PaymentEvent, session: Mapping[str, Any]) -> ReconcileResult:
        target = OrderStatus.PAID if event.type == EventType.ASYNC_PAYMENT_SUCCEEDED else OrderStatus.FAILED
        paid_at = self._clock() if target == OrderStatus.PAID else None
        try:
            updated = self._store.append_event(
                order_id,
                order_event(event, session),
                status=target,
                paid_at=paid_at,
                on_final=self._policy,
            )
        except OrderAlreadyFinal as e:
            if not e.recorded:
                raise
            # ignore: l'événement est journalisé, le statut reste inchangé
            logger.info(
                "orders: événement tardif ignoré order=%s status=%s event=%s",
                order_id, e.order.status.value, event.provider_type,
            )
            return ReconcileResult(outcome=Outcome.IGNORED, order_id=order_id, status=e.order.status)

        logger.info("orders: commande mise à jour order=%s status=%s", order_id, updated.status.value)
        kind = "succeeded" if target == OrderStatus.PAID else "failed"
        self._notify(kind, updated, event, session)
        return ReconcileResult(outcome=Outcome.UPDATED, order_id=order_id, status=updated.status)

    def _duplicate(self, outcome: Outcome, order_id: str) -> ReconcileResult:
        existing = self._store.find(order_id)
        return ReconcileResult(
            outcome=outcome,
            order_id=order_id,
            status=existing.status if existing is not None else None,
        )

    def _notify(self, kind: str, order: Order, event: PaymentEvent, session: Mapping[str, Any]) -> None:
        if not self._listeners:
            return
        notification = PaymentNotification(kind=kind, order=order, event=event, session=dict(session))
        for listener in self._listeners:
            try:
                listener(notification)
            except Exception:
                # La commande est déjà enregistrée: un écouteur en échec ne l'annule pas
                logger.exception("orders: écouteur en échec kind=%s order=%s", kind, order.id)
