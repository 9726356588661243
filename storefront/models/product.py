"""Catalog models for the storefront"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class ProductCategory(str, Enum):
    AUDIO = "audio"
    COMPUTING = "computing"
    HOME = "home"
    OUTDOOR = "outdoor"
    APPAREL = "apparel"


def round_price(price: float) -> float:
    """Round a money amount to 2 decimal places"""
    return round(price, 2)


def effective_price(price: float, compare_price: Optional[float]) -> float:
    """Sale price when a lower compare price is set, otherwise the list price"""
    if compare_price and compare_price < price:
        return round_price(compare_price)
    return round_price(price)


class ProductVariant(BaseModel):
    """Purchasable variant of a product (size, color, ...)"""
    id: str
    product_id: str
    name: str
    sku: str
    # Falls back to the product price when unset
    price: Optional[float] = Field(default=None, gt=0)
    compare_price: Optional[float] = Field(default=None, gt=0)
    stock: int = Field(ge=0, default=0)
    is_active: bool = True
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Product(BaseModel):
    """Product in the catalog"""
    id: str
    name: str
    description: str
    category: ProductCategory
    sku: str
    price: float = Field(gt=0)
    compare_price: Optional[float] = Field(default=None, gt=0)
    currency: str = "USD"
    image_url: Optional[str] = None
    stock: int = Field(ge=0, default=0)
    is_active: bool = True
    deleted_at: Optional[datetime] = None
    variants: list[ProductVariant] = []

    class Config:
        from_attributes = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_available(self) -> bool:
        return self.is_active and not self.is_deleted

    def get_variant(self, variant_id: str) -> Optional[ProductVariant]:
        return next((v for v in self.variants if v.id == variant_id), None)


class ProductSearchResponse(BaseModel):
    """Response from product search"""
    products: list[Product]
    total: int
    limit: int
    offset: int
