import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from storefront.cart.cart import Cart
from storefront.dependencies import get_cart, get_gateway, get_order_store, started_checkout
from storefront.errors import InvalidWebhook
from storefront.orders.models import Order
from storefront.orders.reconciler import order_id_from_session
from storefront.orders.repository import OrderStore
from storefront.payments.stripe_client import PaymentGateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

# Champs visibles sans preuve que ce navigateur a lancé le paiement
PUBLIC_ORDER_FIELDS = {"id", "status", "currency", "currency_symbol", "amounts", "created_at", "paid_at"}


def public_order_view(order: Order) -> Dict[str, Any]:
    return order.model_dump(mode="json", include=PUBLIC_ORDER_FIELDS)


# module storefront.orders.views
@router.get("/by-session/{session_id}")
def order_by_session(
    session_id: str,
    request: Request,
    cart: Cart = Depends(get_cart),
    gateway: PaymentGateway = Depends(get_gateway),
    store: OrderStore = Depends(get_order_store),
) -> Dict[str, Any]:
    """
    Page de succès: retrouve la commande d'une session Checkout terminée.
    - La session est relue chez Stripe (session_id de l'URL de retour)
    - Navigateur à l'origine du paiement (order_id rangé au checkout):
      commande complète, panier vidé une fois la session terminée
    - Autre navigateur: vue réduite (statut et montants), panier intact
    - 404 tant que le webhook n'a pas créé la commande
    """
    session = gateway.retrieve_session(session_id, ())
    try:
        order_id = order_id_from_session(session)
    except InvalidWebhook:
        raise HTTPException(status_code=404, detail="Commande introuvable")

    owner = started_checkout(request, order_id)
    if owner and session.get("status") == "complete" and not cart.is_empty:
        cart.destroy()
        logger.info("orders: panier vidé après paiement session=%s order=%s", session_id, order_id)

    order = store.find(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Commande introuvable")
    data = order.model_dump(mode="json") if owner else public_order_view(order)
    return {"status": "ok", "data": data}
