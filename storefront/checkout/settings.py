# module storefront.checkout.settings
"""
Résolution de la configuration du checkout depuis l'environnement.
Une URL manquante ou invalide est une erreur de configuration levée dès la
résolution (pas au moment de l'appel Stripe).
"""
from typing import Optional

from pydantic import ValidationError

from storefront.checkout.models import CheckoutConfig, ShippingConfig, checkout_config_adapter
from storefront.config import (
    CHECKOUT_CANCEL_URL,
    CHECKOUT_RETURN_URL,
    CHECKOUT_SUCCESS_URL,
    CHECKOUT_UI_MODE,
    SHIPPING_CONFIG_PATH,
)
from storefront.errors import CheckoutConfigError


def resolve_checkout_config(
    ui_mode: str = CHECKOUT_UI_MODE,
    success_url: Optional[str] = CHECKOUT_SUCCESS_URL,
    cancel_url: Optional[str] = CHECKOUT_CANCEL_URL,
    return_url: Optional[str] = CHECKOUT_RETURN_URL,
) -> CheckoutConfig:
    if ui_mode == "hosted":
        data = {"ui_mode": "hosted", "success_url": success_url, "cancel_url": cancel_url}
    elif ui_mode == "embedded":
        data = {"ui_mode": "embedded", "return_url": return_url}
    else:
        raise CheckoutConfigError(f'CHECKOUT_UI_MODE invalide: "{ui_mode}" (hosted | embedded)')
    try:
        return checkout_config_adapter.validate_python(data)
    except ValidationError as e:
        raise CheckoutConfigError(f"Configuration checkout invalide ({ui_mode}): {e}") from e


def load_shipping_config(path: str = SHIPPING_CONFIG_PATH) -> ShippingConfig:
    try:
        return ShippingConfig.from_file(path)
    except (OSError, ValueError) as e:
        raise CheckoutConfigError(f"Configuration livraison illisible ({path}): {e}") from e
