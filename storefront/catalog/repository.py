"""
Accès au catalogue produits (source du nom, du prix et de la vignette).
- ProductCatalog: interface consommée par le panier.
- SupabaseProductCatalog: table 'products' (statut 'listed' = publié).
- InMemoryProductCatalog: catalogue local (dev/tests).
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Protocol
import logging

from storefront.catalog.models import Product
from storefront.config import PRODUCTS_TABLE

logger = logging.getLogger(__name__)


class ProductCatalog(Protocol):
    def resolve(self, product_id: str) -> Optional[Product]:
        ...


def _price_from_row(row: Dict[str, Any]) -> Optional[Decimal]:
    raw = row.get("price")
    if raw is None or raw == "":
        return None
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        logger.warning("catalog: prix illisible product_id=%s price=%r", row.get("id"), raw)
        return None


def product_from_row(row: Dict[str, Any]) -> Product:
    """Normalise une ligne brute de la table produits."""
    return Product(
        id=str(row.get("id") or ""),
        name=str(row.get("title") or row.get("name") or ""),
        price=_price_from_row(row),
        thumbnail_url=row.get("thumbnail_url") or None,
        is_available=(row.get("status") or "listed") == "listed",
    )


class SupabaseProductCatalog:
    def __init__(self, client, table: str = PRODUCTS_TABLE):
        self._client = client
        self._table = table

    def resolve(self, product_id: str) -> Optional[Product]:
        res = (
            self._client
            .table(self._table)
            .select("id, title, price, thumbnail_url, status")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        if not rows:
            return None
        return product_from_row(rows[0])


class InMemoryProductCatalog:
    def __init__(self, products: Iterable[Product] = ()):
        self._products: Dict[str, Product] = {p.id: p for p in products}

    def add(self, product: Product) -> None:
        self._products[product.id] = product

    def resolve(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)
