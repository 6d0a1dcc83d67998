# module storefront.cart.models
"""
Ligne de panier et dérivation de son identité.
- La clé d'une ligne = md5(product_id + options triées), donc l'ordre des
  options ne change jamais l'identité.
- options None et {} sont équivalentes (produit sans variante).
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional
import hashlib
import json

from pydantic import BaseModel, ConfigDict

from storefront.errors import InvalidArgument


def normalize_options(options: Optional[Mapping[str, Any]]) -> Optional[Dict[str, str]]:
    """
    Normalise les options d'un produit:
    - None ou {} -> None
    - clés/valeurs converties en str, triées par clé
    - Soulève InvalidArgument si une clé est vide ou une valeur non scalaire
    """
    if options is None:
        return None
    if not isinstance(options, Mapping):
        raise InvalidArgument("Options must be a mapping of name to value.")
    normalized: Dict[str, str] = {}
    for name in sorted(options, key=str):
        value = options[name]
        if not str(name).strip():
            raise InvalidArgument("Option names must not be blank.")
        if value is None or isinstance(value, (dict, list, tuple, set)):
            raise InvalidArgument(f'Option "{name}" must have a scalar value.')
        normalized[str(name)] = str(value)
    return normalized or None


def make_item_key(product_id: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """Clé déterministe d'une ligne de panier."""
    normalized = normalize_options(options)
    raw = product_id if normalized is None else product_id + json.dumps(normalized, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    product_id: str
    quantity: int
    unit_price: Decimal
    name: str
    thumbnail_url: Optional[str] = None
    options: Optional[Dict[str, str]] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
