# module storefront.checkout.builder
"""
Construction de la requête de session de paiement à partir du panier.
Logique pure (pas d'appel Stripe): la requête est ensuite transmise à la
passerelle de paiement par la vue.
"""
from typing import Callable, List, Optional
from urllib.parse import urlsplit
from uuid import uuid4

from storefront.cart.cart import Cart
from storefront.cart.models import CartItem
from storefront.checkout.models import (
    SESSION_ID_PLACEHOLDER,
    CheckoutConfig,
    CheckoutSessionRequest,
    EmbeddedCheckout,
    HostedCheckout,
    LineItem,
    ReturnTargets,
    ShippingConfig,
    ShippingOptions,
    ShippingRateOption,
)
from storefront.errors import EmptyCart
from storefront.utils.money import to_minor_unit


def new_order_id() -> str:
    return str(uuid4())


def add_session_id_to_url(url: str) -> str:
    """
    Ajoute session_id={CHECKOUT_SESSION_ID} à l'URL.
    - '?' si l'URL n'a pas de query string, '&' sinon (la query existante est conservée).
    """
    sep = "&" if urlsplit(url).query else "?"
    return f"{url}{sep}session_id={SESSION_ID_PLACEHOLDER}"


def describe_options(item: CartItem) -> Optional[str]:
    """'Size: M, Color: Red' ou None si la ligne n'a pas d'options."""
    if not item.options:
        return None
    return ", ".join(f"{name}: {value}" for name, value in item.options.items())


def to_line_items(cart: Cart) -> List[LineItem]:
    currency = cart.currency.lower()
    return [
        LineItem(
            currency=currency,
            unit_amount_minor=to_minor_unit(item.unit_price, cart.currency),
            product_name=item.name,
            product_images=(item.thumbnail_url,) if item.thumbnail_url else (),
            product_description=describe_options(item),
            quantity=item.quantity,
            product_id=item.product_id,
        )
        for item in cart.items
    ]


def to_shipping_options(shipping: ShippingConfig, currency: str) -> Optional[ShippingOptions]:
    if not shipping.enabled:
        return None
    return ShippingOptions(
        allowed_countries=shipping.allowed_countries,
        rate_options=tuple(
            ShippingRateOption(
                display_name=rate.name,
                amount_minor=to_minor_unit(rate.amount, currency),
                currency=currency.lower(),
                delivery_estimate=rate.delivery_estimate,
            )
            for rate in shipping.rates
        ),
    )


def to_return_targets(config: CheckoutConfig) -> ReturnTargets:
    if isinstance(config, HostedCheckout):
        return ReturnTargets(
            success_url=add_session_id_to_url(config.success_url),
            cancel_url=config.cancel_url,
        )
    if isinstance(config, EmbeddedCheckout):
        return ReturnTargets(return_url=add_session_id_to_url(config.return_url))
    raise TypeError(f"Unsupported checkout config: {type(config).__name__}")


def build_session_request(
    cart: Cart,
    shipping: ShippingConfig,
    config: CheckoutConfig,
    id_factory: Callable[[], str] = new_order_id,
) -> CheckoutSessionRequest:
    """
    Construit la requête de session à partir du panier.
    - EmptyCart si le panier ne contient aucun article.
    - metadata.order_id: identifiant unique de la future commande, relu par le
      webhook pour relier la session à la commande.
    - Deux appels sur le même panier ne diffèrent que par order_id.
    """
    if cart.total_quantity <= 0:
        raise EmptyCart("Cart is empty.")

    return CheckoutSessionRequest(
        ui_mode=config.ui_mode,
        line_items=tuple(to_line_items(cart)),
        metadata={"order_id": id_factory()},
        shipping=to_shipping_options(shipping, cart.currency),
        return_targets=to_return_targets(config),
    )
