# module storefront.cart.cart
"""
Panier lié à une session de navigation.

Règles:
- Une ligne est identifiée par (product_id, options normalisées); ajouter deux
  fois le même produit configuré cumule les quantités.
- Le prix unitaire, le nom et la vignette sont capturés depuis le catalogue au
  moment de l'ajout/mise à jour (pas relus à chaque lecture).
- Les totaux sont recalculés après chaque mutation à partir des lignes.
- Une mutation est soit entièrement appliquée et persistée, soit sans effet.
"""
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from pydantic import ValidationError

from storefront.cart.models import CartItem, make_item_key, normalize_options
from storefront.cart.session_store import CartSessionStore
from storefront.catalog.models import Product
from storefront.catalog.repository import ProductCatalog
from storefront.errors import InvalidArgument, NoSuchCartItem, ProductNotPriced, ProductUnavailable
from storefront.utils import money

logger = logging.getLogger(__name__)

ItemHook = Callable[[CartItem, Product], CartItem]


def identity_hook(item: CartItem, product: Product) -> CartItem:
    return item


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgument("Quantity must be greater than 0.")
    return quantity


class Cart:
    def __init__(
        self,
        session_id: str,
        store: CartSessionStore,
        catalog: ProductCatalog,
        currency: str,
        item_hook: Optional[ItemHook] = None,
    ):
        if not money.is_known_currency(currency):
            raise InvalidArgument(f'Unknown currency "{currency}".')
        self._session_id = session_id
        self._store = store
        self._catalog = catalog
        self._currency = currency.strip().upper()
        self._item_hook = item_hook or identity_hook
        self._items: Dict[str, CartItem] = self._load()
        self._recompute()

    # --- lecture ---
    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def get_item(self, key: str) -> Optional[CartItem]:
        return self._items.get(key)

    @property
    def total_quantity(self) -> int:
        return self._total_quantity

    @property
    def total_amount(self) -> Decimal:
        return self._total_amount

    @property
    def total_amount_formatted(self) -> str:
        return money.format_amount(self._total_amount, self._currency)

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def currency_symbol(self) -> str:
        return money.currency_symbol(self._currency)

    @property
    def is_empty(self) -> bool:
        return self._total_quantity == 0

    # --- mutations ---
    def add_item(self, product_id: str, quantity: int, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Ajoute un produit au panier et retourne la clé de la ligne.
        - Même produit + mêmes options: la quantité est ajoutée à l'existante.
        - ProductUnavailable si le produit n'existe pas ou n'est pas publié,
          ProductNotPriced s'il n'a pas de prix.
        """
        quantity = _validate_quantity(quantity)
        product_id = str(product_id or "").strip()
        if not product_id:
            raise InvalidArgument("Product id must not be blank.")
        normalized = normalize_options(options)
        key = make_item_key(product_id, normalized)

        existing = self._items.get(key)
        if existing is not None:
            quantity += existing.quantity

        item = self._make_item(key, product_id, quantity, normalized)
        items = dict(self._items)
        items[key] = item
        self._commit(items)
        return key

    def update_item(self, key: str, quantity: int) -> None:
        """Remplace la quantité d'une ligne existante (pas d'addition)."""
        quantity = _validate_quantity(quantity)
        existing = self._items.get(key)
        if existing is None:
            raise NoSuchCartItem(f'Cart item with key "{key}" does not exist.')

        item = self._make_item(key, existing.product_id, quantity, existing.options)
        items = dict(self._items)
        items[key] = item
        self._commit(items)

    def remove_item(self, key: str) -> None:
        if key not in self._items:
            raise NoSuchCartItem(f'Cart item with key "{key}" does not exist.')
        items = dict(self._items)
        del items[key]
        self._commit(items)

    def destroy(self) -> None:
        """Vide le panier et supprime l'état persisté."""
        self._store.clear(self._session_id)
        self._items = {}
        self._recompute()

    def to_dict(self) -> Dict[str, Any]:
        """Représentation API (montants en chaînes décimales + versions formatées)."""
        return {
            "items": [
                {
                    "key": item.key,
                    "id": item.product_id,
                    "name": item.name,
                    "price": str(item.unit_price),
                    "price_formatted": money.format_amount(item.unit_price, self._currency),
                    "quantity": item.quantity,
                    "subtotal": str(item.line_total),
                    "subtotal_formatted": money.format_amount(item.line_total, self._currency),
                    "options": item.options,
                    "thumbnail_url": item.thumbnail_url,
                }
                for item in self._items.values()
            ],
            "total_amount": str(self._total_amount),
            "total_amount_formatted": self.total_amount_formatted,
            "total_quantity": self._total_quantity,
            "currency": self._currency,
            "currency_symbol": self.currency_symbol,
        }

    # --- interne ---
    def _resolve(self, product_id: str) -> Product:
        product = self._catalog.resolve(product_id)
        if product is None or not product.is_available:
            raise ProductUnavailable(f'Product "{product_id}" does not exist.')
        if product.price is None:
            raise ProductNotPriced(f'Product "{product_id}" requires a "price" field.')
        return product

    def _make_item(self, key: str, product_id: str, quantity: int, options: Optional[Dict[str, str]]) -> CartItem:
        product = self._resolve(product_id)
        item = CartItem(
            key=key,
            product_id=product_id,
            quantity=quantity,
            unit_price=product.price,
            name=product.name,
            thumbnail_url=product.thumbnail_url,
            options=options,
        )
        item = self._item_hook(item, product)
        if not isinstance(item, CartItem) or item.key != key:
            raise InvalidArgument("Item hook must return a CartItem with the same key.")
        _validate_quantity(item.quantity)
        return item

    def _commit(self, items: Dict[str, CartItem]) -> None:
        # Persister d'abord: si le store échoue, l'état en mémoire reste inchangé
        self._store.save(self._session_id, self._serialize(items))
        self._items = items
        self._recompute()

    def _recompute(self) -> None:
        self._total_quantity = sum(item.quantity for item in self._items.values())
        self._total_amount = sum((item.line_total for item in self._items.values()), Decimal(0))

    def _serialize(self, items: Dict[str, CartItem]) -> Dict[str, Any]:
        return {
            "currency": self._currency,
            "items": [item.model_dump(mode="json") for item in items.values()],
        }

    def _load(self) -> Dict[str, CartItem]:
        data = self._store.load(self._session_id)
        if not data:
            return {}
        if data.get("currency") != self._currency:
            logger.warning(
                "cart: devise persistée %s != %s, panier ignoré session=%s",
                data.get("currency"), self._currency, self._session_id,
            )
            return {}
        try:
            items = [CartItem.model_validate(raw) for raw in data.get("items") or []]
        except ValidationError:
            logger.warning("cart: contenu de session illisible, panier ignoré session=%s", self._session_id)
            return {}
        return {item.key: item for item in items}
