import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront.dependencies import get_gateway, get_reconciler
from storefront.errors import CheckoutConfigError, InvalidWebhook, OrderAlreadyFinal, OrderNotFound, SignatureInvalid
from storefront.orders.reconciler import WebhookReconciler
from storefront.payments.stripe_client import SESSION_EXPAND, PaymentGateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/stripe/checkout", tags=["Payments"])


# module storefront.payments.views
@router.post("/webhook", include_in_schema=False)
async def checkout_webhook(
    request: Request,
    gateway: PaymentGateway = Depends(get_gateway),
    reconciler: WebhookReconciler = Depends(get_reconciler),
):
    """
    Webhook Stripe Checkout.
    - Signature: Stripe-Signature + STRIPE_WEBHOOK_SECRET
    - Événements gérés: la session est relue avec ses expansions puis réconciliée
    - 200 {"status": "ok", "result": {...}} pour créé, mis à jour, ignoré et doublons
    - 400 si signature/payload invalide, commande inconnue, order_id absent
      ou événement refusé sur une commande finale
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        event = gateway.verify_webhook(payload, signature)
        session = None
        if event.type is not None:
            if not event.session_id:
                raise InvalidWebhook("Missing checkout session id.")
            session = await run_in_threadpool(gateway.retrieve_session, event.session_id, SESSION_EXPAND)
        result = await run_in_threadpool(reconciler.handle, event, session)
    except (SignatureInvalid, OrderNotFound, InvalidWebhook, OrderAlreadyFinal) as e:
        logger.warning("payments.webhook rejeté error=%s detail=%s", type(e).__name__, e.message)
        raise
    except CheckoutConfigError:
        raise
    except Exception:
        logger.exception("payments.webhook erreur inattendue")
        raise

    logger.info("payments.webhook event=%s type=%s result=%s", event.id, event.provider_type, result.outcome.value)
    return JSONResponse({"status": "ok", "result": result.model_dump(mode="json")})
