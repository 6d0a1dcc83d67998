import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictInt

from storefront.cart.cart import Cart
from storefront.dependencies import get_cart
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemIn(BaseModel):
    id: str
    quantity: StrictInt = 1
    options: Optional[Dict[str, Any]] = None


class UpdateItemIn(BaseModel):
    quantity: StrictInt


def _cart_response(cart: Cart) -> Dict[str, Any]:
    return {"status": "ok", "data": cart.to_dict()}


# module storefront.cart.views
@router.get("")
def read_cart(cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    return _cart_response(cart)


@router.post("/items", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def add_cart_item(payload: AddItemIn, cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    """
    Ajoute un produit au panier de la session.
    - Entrée JSON: { "id": "<product_id>", "quantity": 2, "options": {"Size": "M"} }
    - Même produit + mêmes options: quantités cumulées
    - Erreurs: 400 quantité invalide / produit sans prix, 404 produit indisponible
    """
    key = cart.add_item(payload.id, payload.quantity, payload.options)
    logger.info("cart: article ajouté session=%s key=%s quantity=%s", cart.session_id, key, payload.quantity)
    return _cart_response(cart)


@router.patch("/items/{key}", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def update_cart_item(key: str, payload: UpdateItemIn, cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    """Remplace la quantité d'une ligne (404 si la clé n'existe pas)."""
    cart.update_item(key, payload.quantity)
    return _cart_response(cart)


@router.delete("/items/{key}", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def remove_cart_item(key: str, cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    cart.remove_item(key)
    return _cart_response(cart)


@router.delete("")
def clear_cart(cart: Cart = Depends(get_cart)) -> Dict[str, Any]:
    cart.destroy()
    return _cart_response(cart)
