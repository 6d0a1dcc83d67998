# module storefront.orders.repository
"""
Stockage des commandes.

Garanties attendues de toute implémentation:
- create: unicité de l'id de commande (DuplicateOrder sinon)
- append_event: ajout atomique "si absent" de l'événement, avec changement
  de statut optionnel dans la même opération (DuplicateEvent / OrderNotFound).
  Si la commande est déjà finale, on_final décide sous le même verrou:
  allow (statut écrasé), ignore (événement journalisé, statut inchangé,
  OrderAlreadyFinal(recorded=True)), reject (rien d'écrit, OrderAlreadyFinal).
"""
from datetime import datetime
from typing import Any, Dict, Optional, Protocol
import logging
import threading

from postgrest.exceptions import APIError

from storefront.config import ORDERS_TABLE
from storefront.errors import DuplicateEvent, DuplicateOrder, OrderAlreadyFinal, OrderNotFound
from storefront.orders.models import Order, OrderEvent, OrderStatus, TerminalPolicy

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    def create(self, order: Order) -> Order:
        ...

    def find(self, order_id: str) -> Optional[Order]:
        ...

    def append_event(
        self,
        order_id: str,
        event: OrderEvent,
        status: Optional[OrderStatus] = None,
        paid_at: Optional[datetime] = None,
        on_final: TerminalPolicy = TerminalPolicy.ALLOW,
    ) -> Order:
        ...

    def set_status(self, order_id: str, status: OrderStatus) -> Order:
        """
        Correction manuelle (administration, support), sans événement ni garde.
        Le flux webhook n'y passe pas: il change le statut via append_event.
        """
        ...


def _final_error(order: Order, recorded: bool) -> OrderAlreadyFinal:
    return OrderAlreadyFinal(f'Order "{order.id}" is already {order.status.value}.', order=order, recorded=recorded)


def _with_event(order: Order, event: OrderEvent, status: Optional[OrderStatus], paid_at: Optional[datetime]) -> Order:
    update: Dict[str, Any] = {"events": order.events + (event,)}
    if status is not None:
        update["status"] = status
    if paid_at is not None:
        update["paid_at"] = paid_at
    return order.model_copy(update=update)


class InMemoryOrderStore:
    """Implémentation mémoire (tests, développement local). Un seul verrou."""

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = threading.Lock()

    def create(self, order: Order) -> Order:
        with self._lock:
            if order.id in self._orders:
                raise DuplicateOrder(f'Order "{order.id}" already exists.')
            self._orders[order.id] = order
            return order

    def find(self, order_id: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def append_event(self, order_id, event, status=None, paid_at=None, on_final=TerminalPolicy.ALLOW) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFound(f'Order "{order_id}" does not exist.')
            if order.has_event(event.event_id):
                raise DuplicateEvent(f'Event "{event.event_id}" already recorded.')
            if order.is_final and on_final != TerminalPolicy.ALLOW:
                if on_final == TerminalPolicy.REJECT:
                    raise _final_error(order, recorded=False)
                updated = _with_event(order, event, None, None)
                self._orders[order_id] = updated
                raise _final_error(updated, recorded=True)
            updated = _with_event(order, event, status, paid_at)
            self._orders[order_id] = updated
            return updated

    def set_status(self, order_id: str, status: OrderStatus) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFound(f'Order "{order_id}" does not exist.')
            updated = order.model_copy(update={"status": status})
            self._orders[order_id] = updated
            return updated


# --- Supabase ---
def order_to_row(order: Order) -> Dict[str, Any]:
    """
    Ligne de la table orders:
    - id, status, checkout_session_id, paid_at, created_at: colonnes dédiées
    - events: jsonb (journal)
    - snapshot: jsonb (reste de la commande)
    """
    data = order.model_dump(mode="json")
    events = data.pop("events")
    return {
        "id": data.pop("id"),
        "status": data.pop("status"),
        "paid_at": data.pop("paid_at"),
        "checkout_session_id": data.get("checkout_session_id"),
        "created_at": data.get("created_at"),
        "events": events,
        "snapshot": data,
    }


def order_from_row(row: Dict[str, Any]) -> Order:
    data = dict(row.get("snapshot") or {})
    data.update(
        id=row["id"],
        status=row["status"],
        paid_at=row.get("paid_at"),
        events=row.get("events") or [],
    )
    return Order.model_validate(data)


def _api_error_code(e: APIError) -> Optional[str]:
    code = getattr(e, "code", None)
    if code is None and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return code


class SupabaseOrderStore:
    """
    Table orders (clé primaire id) + fonction RPC append_order_event
    (voir sql/orders.sql) pour l'ajout atomique d'événement.
    """

    def __init__(self, client, table: str = ORDERS_TABLE):
        self._client = client
        self._table = table

    def create(self, order: Order) -> Order:
        try:
            self._client.table(self._table).insert(order_to_row(order)).execute()
        except APIError as e:
            if _api_error_code(e) == "23505":
                raise DuplicateOrder(f'Order "{order.id}" already exists.')
            raise
        return order

    def find(self, order_id: str) -> Optional[Order]:
        res = (
            self._client.table(self._table)
            .select("*")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return order_from_row(rows[0]) if rows else None

    def append_event(self, order_id, event, status=None, paid_at=None, on_final=TerminalPolicy.ALLOW) -> Order:
        res = self._client.rpc(
            "append_order_event",
            {
                "p_order_id": order_id,
                "p_event": event.model_dump(mode="json"),
                "p_status": status.value if status is not None else None,
                "p_paid_at": paid_at.isoformat() if paid_at is not None else None,
                "p_on_final": TerminalPolicy(on_final).value,
            },
        ).execute()
        result = res.data
        if isinstance(result, list):
            result = result[0] if result else None
        if result == "not_found":
            raise OrderNotFound(f'Order "{order_id}" does not exist.')
        if result == "duplicate":
            raise DuplicateEvent(f'Event "{event.event_id}" already recorded.')
        if result not in ("appended", "final", "final_recorded"):
            logger.warning("orders: réponse inattendue de append_order_event order=%s result=%s", order_id, result)
        order = self.find(order_id)
        if order is None:
            raise OrderNotFound(f'Order "{order_id}" does not exist.')
        if result in ("final", "final_recorded"):
            raise _final_error(order, recorded=(result == "final_recorded"))
        return order

    def set_status(self, order_id: str, status: OrderStatus) -> Order:
        res = (
            self._client.table(self._table)
            .update({"status": status.value})
            .eq("id", order_id)
            .execute()
        )
        rows = res.data or []
        if not rows:
            raise OrderNotFound(f'Order "{order_id}" does not exist.')
        return order_from_row(rows[0])
