# Storefront Models

from .product import (
    Product,
    ProductCategory,
    ProductVariant,
    ProductSearchResponse,
    effective_price,
    round_price,
)
from .cart import (
    CartLine,
    AddToCartRequest,
    UpdateCartItemRequest,
    CartItemView,
    CartSummary,
    CartResponse,
    GuestCartItem,
    MergeCartRequest,
    MergeCartResponse,
    CartMetrics,
)
from .validation import (
    CartErrorKind,
    CartWarningKind,
    CartValidationError,
    CartValidationWarning,
    CartAdjustment,
    CartValidationResult,
    ValidateCartRequest,
    ValidateCartResponse,
    FixSummary,
)

__all__ = [
    "Product",
    "ProductCategory",
    "ProductVariant",
    "ProductSearchResponse",
    "effective_price",
    "round_price",
    "CartLine",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartItemView",
    "CartSummary",
    "CartResponse",
    "GuestCartItem",
    "MergeCartRequest",
    "MergeCartResponse",
    "CartMetrics",
    "CartErrorKind",
    "CartWarningKind",
    "CartValidationError",
    "CartValidationWarning",
    "CartAdjustment",
    "CartValidationResult",
    "ValidateCartRequest",
    "ValidateCartResponse",
    "FixSummary",
]
