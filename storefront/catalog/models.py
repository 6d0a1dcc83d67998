from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    """Produit vendable tel que renvoyé par le catalogue (page listée du CMS)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Optional[Decimal] = None
    thumbnail_url: Optional[str] = None
    is_available: bool = True
