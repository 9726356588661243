"""Cart models for the storefront"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CartLine(BaseModel):
    """Persisted line in a user's cart, unique per (product, variant)"""
    id: str
    user_id: str
    product_id: str
    variant_id: Optional[str] = None
    product_name: str
    quantity: int = Field(gt=0)
    unit_price_at_add: float
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_id: str = Field(min_length=1)
    variant_id: Optional[str] = None
    quantity: int = 1


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity"""
    quantity: int


class CartItemView(BaseModel):
    """Cart line joined with live product data"""
    id: str
    product_id: str
    variant_id: Optional[str] = None
    product_name: str
    variant_name: Optional[str] = None
    sku: str
    quantity: int
    unit_price: float
    sale_price: Optional[float] = None
    stock: int
    added_at: datetime


class CartSummary(BaseModel):
    """Cart totals"""
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    total_items: int = 0
    free_shipping_threshold: float
    currency: str = "USD"


class CartResponse(BaseModel):
    """Cart API response"""
    items: list[CartItemView] = []
    summary: CartSummary
    message: Optional[str] = None


class GuestCartItem(BaseModel):
    """Line carried over from an anonymous cart"""
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(gt=0)


class MergeCartRequest(BaseModel):
    items: list[GuestCartItem]


class MergeCartResponse(BaseModel):
    merged: int
    skipped: int


class CartMetrics(BaseModel):
    """Cart value figures for analytics"""
    item_count: int
    subtotal: float
    total_savings: float
    average_item_value: float
