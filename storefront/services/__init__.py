# Cart services

from .cart_validation import (
    CartValidator,
    CartValidationFailed,
    validate_cart,
    apply_cart_adjustments,
    remove_invalid_cart_items,
    run_cart_validation,
)
from .cart_service import build_cart_view, merge_guest_cart, cart_item_expiry
from .pricing import (
    validate_quantity,
    validate_stock,
    calculate_cart_totals,
    calculate_cart_metrics,
)

__all__ = [
    "CartValidator",
    "CartValidationFailed",
    "validate_cart",
    "apply_cart_adjustments",
    "remove_invalid_cart_items",
    "run_cart_validation",
    "build_cart_view",
    "merge_guest_cart",
    "cart_item_expiry",
    "validate_quantity",
    "validate_stock",
    "calculate_cart_totals",
    "calculate_cart_metrics",
]
