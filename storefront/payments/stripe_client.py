"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- create_session: crée une session Checkout à partir d'une CheckoutSessionRequest
- retrieve_session: relit la session avec les expansions nécessaires à la commande
- verify_webhook: valide la signature et normalise l'événement
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import stripe

from storefront.checkout.models import CheckoutSessionRequest, DeliveryEstimate
from storefront.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from storefront.errors import CheckoutConfigError, SignatureInvalid
from storefront.payments.models import CreatedSession, EventType, PaymentEvent

# module storefront.payments.stripe_client
STRIPE_EVENT_TYPES: Dict[str, EventType] = {
    "checkout.session.completed": EventType.SESSION_COMPLETED,
    "checkout.session.async_payment_succeeded": EventType.ASYNC_PAYMENT_SUCCEEDED,
    "checkout.session.async_payment_failed": EventType.ASYNC_PAYMENT_FAILED,
}

SESSION_EXPAND = (
    "line_items.data.price.product",
    "payment_intent.payment_method",
    "shipping_cost.shipping_rate",
)


class PaymentGateway(Protocol):
    def create_session(self, request: CheckoutSessionRequest) -> CreatedSession:
        ...

    def retrieve_session(self, session_id: str, expand: Iterable[str] = SESSION_EXPAND) -> Dict[str, Any]:
        ...

    def verify_webhook(self, payload: bytes, signature_header: Optional[str]) -> PaymentEvent:
        ...


def to_plain(obj: Any) -> Any:
    """
    Convertit récursivement un objet Stripe en dict/list Python.
    Selon la version du SDK, StripeObject est un dict ou non: to_dict() couvre les deux.
    """
    if isinstance(obj, stripe.StripeObject):
        obj = obj.to_dict()
    if isinstance(obj, Mapping):
        return {k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    return obj


def _delivery_estimate_params(estimate: DeliveryEstimate) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if estimate.minimum is not None:
        params["minimum"] = {"unit": estimate.minimum.unit, "value": estimate.minimum.value}
    if estimate.maximum is not None:
        params["maximum"] = {"unit": estimate.maximum.unit, "value": estimate.maximum.value}
    return params


def to_stripe_params(request: CheckoutSessionRequest) -> Dict[str, Any]:
    """
    Traduit la requête neutre en paramètres stripe.checkout.Session.create.
    - line_items: price_data (montant en unité mineure) + product_data
    - product_data.metadata.product_id: relu par le webhook pour la commande
    - shipping: shipping_address_collection + shipping_options (fixed_amount)
    """
    line_items: List[Dict[str, Any]] = []
    for li in request.line_items:
        product_data: Dict[str, Any] = {
            "name": li.product_name,
            "metadata": {"product_id": li.product_id},
        }
        if li.product_images:
            product_data["images"] = list(li.product_images)
        if li.product_description:
            product_data["description"] = li.product_description
        line_items.append({
            "quantity": li.quantity,
            "price_data": {
                "currency": li.currency,
                "unit_amount": li.unit_amount_minor,
                "product_data": product_data,
            },
        })

    params: Dict[str, Any] = {
        "mode": request.mode,
        "ui_mode": request.ui_mode,
        "line_items": line_items,
        "metadata": dict(request.metadata),
    }

    targets = request.return_targets
    if request.ui_mode == "hosted":
        params["success_url"] = targets.success_url
        params["cancel_url"] = targets.cancel_url
    else:
        params["return_url"] = targets.return_url

    if request.shipping is not None:
        params["shipping_address_collection"] = {"allowed_countries": list(request.shipping.allowed_countries)}
        options = []
        for rate in request.shipping.rate_options:
            rate_data: Dict[str, Any] = {
                "type": "fixed_amount",
                "fixed_amount": {"amount": rate.amount_minor, "currency": rate.currency},
                "display_name": rate.display_name,
            }
            if rate.delivery_estimate is not None:
                estimate = _delivery_estimate_params(rate.delivery_estimate)
                if estimate:
                    rate_data["delivery_estimate"] = estimate
            options.append({"shipping_rate_data": rate_data})
        params["shipping_options"] = options
    return params


def event_from_stripe(event: Mapping[str, Any]) -> PaymentEvent:
    provider_type = str(event.get("type") or "")
    data_obj = (event.get("data") or {}).get("object") or {}
    return PaymentEvent(
        id=str(event.get("id") or ""),
        type=STRIPE_EVENT_TYPES.get(provider_type),
        provider_type=provider_type,
        created_at=datetime.fromtimestamp(int(event.get("created") or 0), tz=timezone.utc),
        session_id=data_obj.get("id"),
    )


class StripeGateway:
    def __init__(self, secret_key: str = STRIPE_SECRET_KEY, webhook_secret: str = STRIPE_WEBHOOK_SECRET):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    def require_stripe(self):
        """
        Prépare et retourne le module stripe prêt à l'emploi.
        En absence de clé, les appels Stripe échoueront côté SDK (No API key provided).
        """
        if self._secret_key:
            stripe.api_key = self._secret_key
        return stripe

    def create_session(self, request: CheckoutSessionRequest) -> CreatedSession:
        """
        Crée une session Stripe Checkout.
        Retour: id, client_secret (embedded) et url (hosted).
        """
        self.require_stripe()
        session = to_plain(stripe.checkout.Session.create(**to_stripe_params(request)))
        return CreatedSession(
            id=session["id"],
            client_secret=session.get("client_secret"),
            url=session.get("url"),
        )

    def retrieve_session(self, session_id: str, expand: Iterable[str] = SESSION_EXPAND) -> Dict[str, Any]:
        """Récupère une session Checkout (avec expansions) sous forme de dict."""
        self.require_stripe()
        session = stripe.checkout.Session.retrieve(session_id, expand=list(expand))
        return to_plain(session)

    def verify_webhook(self, payload: bytes, signature_header: Optional[str]) -> PaymentEvent:
        """
        Valide la signature (en-tête Stripe-Signature) et normalise l'événement.
        - SignatureInvalid si le payload ou la signature sont invalides.
        """
        if not self._webhook_secret:
            raise CheckoutConfigError("STRIPE_WEBHOOK_SECRET manquant")
        try:
            event = stripe.Webhook.construct_event(payload, signature_header or "", self._webhook_secret)
        except ValueError:
            raise SignatureInvalid("Invalid payload.")
        except stripe.SignatureVerificationError:
            raise SignatureInvalid("Invalid signature.")
        return event_from_stripe(to_plain(event))
