# module storefront.checkout.models
"""
Modèles du checkout.

- HostedCheckout / EmbeddedCheckout: union étiquetée (ui_mode) des URLs de
  retour; chaque mode impose exactement ses champs.
- ShippingConfig: tarifs de livraison proposés au paiement.
- CheckoutSessionRequest: requête de création de session, indépendante du
  fournisseur, produite par le builder (immuable).
"""
from decimal import Decimal
from typing import Annotated, Dict, Literal, Optional, Tuple, Union
import json
import logging

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

logger = logging.getLogger(__name__)

SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def _validate_url(value: str) -> str:
    # Validation via pydantic mais on conserve la chaîne d'origine (pas de '/' ajouté)
    TypeAdapter(AnyHttpUrl).validate_python(value)
    return value


class HostedCheckout(BaseModel):
    model_config = ConfigDict(frozen=True)

    ui_mode: Literal["hosted"] = "hosted"
    success_url: str
    cancel_url: str

    @field_validator("success_url", "cancel_url")
    @classmethod
    def check_urls(cls, v: str) -> str:
        return _validate_url(v)


class EmbeddedCheckout(BaseModel):
    model_config = ConfigDict(frozen=True)

    ui_mode: Literal["embedded"] = "embedded"
    return_url: str

    @field_validator("return_url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return _validate_url(v)


CheckoutConfig = Annotated[Union[HostedCheckout, EmbeddedCheckout], Field(discriminator="ui_mode")]
checkout_config_adapter: TypeAdapter = TypeAdapter(CheckoutConfig)


class DeliveryEstimateBound(BaseModel):
    model_config = ConfigDict(frozen=True)

    unit: Literal["business_day", "day", "hour", "month", "week"]
    value: int = Field(gt=0)


class DeliveryEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    minimum: Optional[DeliveryEstimateBound] = None
    maximum: Optional[DeliveryEstimateBound] = None


class ShippingRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal = Field(ge=0)
    delivery_estimate: Optional[DeliveryEstimate] = None


class ShippingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    allowed_countries: Tuple[str, ...] = ()
    rates: Tuple[ShippingRate, ...] = ()

    @field_validator("allowed_countries")
    @classmethod
    def upper_countries(cls, v):
        return tuple(c.strip().upper() for c in v if c and c.strip())

    @classmethod
    def disabled(cls) -> "ShippingConfig":
        return cls(enabled=False)

    @classmethod
    def from_file(cls, path: str) -> "ShippingConfig":
        """
        Charge la configuration depuis un fichier JSON, ex:
        {"enabled": true, "allowed_countries": ["PT", "FR"],
         "rates": [{"name": "Standard", "amount": "4.90",
                    "delivery_estimate": {"minimum": {"unit": "business_day", "value": 2}}}]}
        Chemin vide -> livraison désactivée.
        """
        if not path:
            return cls.disabled()
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        config = cls.model_validate(data)
        logger.info("checkout: livraison chargée enabled=%s rates=%s", config.enabled, len(config.rates))
        return config


# --- Requête de session (sortie du builder) ---
class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    unit_amount_minor: int
    product_name: str
    product_images: Tuple[str, ...] = ()
    product_description: Optional[str] = None
    quantity: int
    product_id: str


class ShippingRateOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_name: str
    amount_minor: int
    currency: str
    delivery_estimate: Optional[DeliveryEstimate] = None


class ShippingOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed_countries: Tuple[str, ...]
    rate_options: Tuple[ShippingRateOption, ...]


class ReturnTargets(BaseModel):
    model_config = ConfigDict(frozen=True)

    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    return_url: Optional[str] = None


class CheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["payment"] = "payment"
    ui_mode: Literal["hosted", "embedded"]
    line_items: Tuple[LineItem, ...]
    metadata: Dict[str, str]
    shipping: Optional[ShippingOptions] = None
    return_targets: ReturnTargets

    @property
    def order_id(self) -> str:
        return self.metadata["order_id"]
