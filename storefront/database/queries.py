"""Typed query parameters and read results for the storage layer"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..models.product import effective_price


@dataclass(frozen=True)
class CartLineQuery:
    """Selects the cart lines owned by one user"""
    user_id: str
    now: Optional[datetime] = None


@dataclass(frozen=True)
class InventoryQuery:
    """Product and variant identifiers to read live inventory for"""
    product_ids: frozenset[str]
    variant_ids: frozenset[str] = frozenset()

    @classmethod
    def for_lines(cls, lines: Iterable) -> "InventoryQuery":
        lines = list(lines)
        return cls(
            product_ids=frozenset(line.product_id for line in lines),
            variant_ids=frozenset(line.variant_id for line in lines if line.variant_id),
        )


@dataclass(frozen=True)
class InventorySnapshot:
    """Live state of a product, or a product/variant pair, at lookup time"""
    product_id: str
    variant_id: Optional[str]
    name: str
    sku: str
    stock: int
    price: float
    compare_price: Optional[float]
    is_active: bool
    is_deleted: bool
    variant_name: Optional[str] = None

    @property
    def effective_price(self) -> float:
        return effective_price(self.price, self.compare_price)

    @property
    def sale_price(self) -> Optional[float]:
        if self.compare_price and self.compare_price < self.price:
            return self.compare_price
        return None

    @property
    def is_available(self) -> bool:
        return self.is_active and not self.is_deleted


InventoryKey = tuple[str, Optional[str]]
