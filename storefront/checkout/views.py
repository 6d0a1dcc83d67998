import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront.cart.cart import Cart
from storefront.checkout.builder import build_session_request
from storefront.checkout.models import CheckoutConfig, CheckoutSessionRequest, ShippingConfig
from storefront.dependencies import get_cart, get_checkout_config, get_gateway, get_shipping_config, remember_checkout_order
from storefront.errors import InvalidEndpoint
from storefront.payments.models import CreatedSession
from storefront.payments.stripe_client import PaymentGateway
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stripe/checkout", tags=["Checkout"])


def _create_session(gateway: PaymentGateway, session_request: CheckoutSessionRequest) -> CreatedSession:
    try:
        return gateway.create_session(session_request)
    except Exception:
        logger.exception("checkout: création de session échouée order=%s", session_request.order_id)
        raise


# module storefront.checkout.views
@router.get("", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def hosted_checkout(
    request: Request,
    cart: Cart = Depends(get_cart),
    config: CheckoutConfig = Depends(get_checkout_config),
    shipping: ShippingConfig = Depends(get_shipping_config),
    gateway: PaymentGateway = Depends(get_gateway),
):
    """
    Checkout hébergé: crée la session Stripe puis redirige (303) vers sa page.
    - 400 si le mode configuré est embedded ou si le panier est vide
    """
    if config.ui_mode != "hosted":
        raise InvalidEndpoint("Checkout UI mode is embedded, use POST /stripe/checkout/embedded.")

    session_request = build_session_request(cart, shipping, config)
    created = _create_session(gateway, session_request)
    remember_checkout_order(request, session_request.order_id)
    logger.info("checkout: session créée session=%s order=%s mode=hosted", created.id, session_request.order_id)
    if not created.url:
        raise HTTPException(status_code=502, detail="Session Stripe invalide")
    return RedirectResponse(url=created.url, status_code=HTTP_303_SEE_OTHER)


@router.post("/embedded", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def embedded_checkout(
    request: Request,
    cart: Cart = Depends(get_cart),
    config: CheckoutConfig = Depends(get_checkout_config),
    shipping: ShippingConfig = Depends(get_shipping_config),
    gateway: PaymentGateway = Depends(get_gateway),
) -> Dict[str, Any]:
    """
    Checkout intégré: retourne {clientSecret} pour le formulaire Stripe côté client.
    - 400 si le mode configuré est hosted ou si le panier est vide
    """
    if config.ui_mode != "embedded":
        raise InvalidEndpoint("Checkout UI mode is hosted, use GET /stripe/checkout.")

    session_request = build_session_request(cart, shipping, config)
    created = _create_session(gateway, session_request)
    remember_checkout_order(request, session_request.order_id)
    logger.info("checkout: session créée session=%s order=%s mode=embedded", created.id, session_request.order_id)
    if not created.client_secret:
        raise HTTPException(status_code=502, detail="Session Stripe invalide")
    return {"clientSecret": created.client_secret}
