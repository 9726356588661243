"""Cart totals, metrics and input checks"""

from typing import Iterable, Optional

from ..core.config import settings
from ..database.products import ProductDatabase
from ..database.queries import InventoryQuery
from ..models.cart import CartItemView, CartLine, CartMetrics, CartSummary
from ..models.product import round_price


def validate_quantity(quantity: int) -> Optional[str]:
    """Return an error message, or None when the quantity is acceptable"""
    if quantity < settings.min_quantity:
        return f"Quantity must be at least {settings.min_quantity}"
    if quantity > settings.max_quantity_per_item:
        return f"Quantity cannot exceed {settings.max_quantity_per_item}"
    return None


def validate_stock(requested_quantity: int, available_stock: int) -> Optional[str]:
    """Return an error message, or None when stock covers the request"""
    if available_stock <= 0:
        return "Product is out of stock"
    if requested_quantity > available_stock:
        return f"Only {available_stock} items available"
    return None


def calculate_cart_totals(
    items: Iterable[CartItemView],
    discount_amount: float = 0.0,
) -> CartSummary:
    """
    Totals for a cart view. Quantities are capped at live stock, shipping
    is free from the configured threshold on.
    """
    subtotal = 0.0
    total_items = 0

    for item in items:
        quantity = min(item.quantity, item.stock)
        if quantity > 0:
            subtotal += item.unit_price * quantity
            total_items += quantity

    if total_items == 0 or subtotal >= settings.free_shipping_threshold:
        shipping = 0.0
    else:
        shipping = settings.standard_shipping_cost

    tax = subtotal * settings.tax_rate
    total = subtotal + tax + shipping - discount_amount

    return CartSummary(
        subtotal=round_price(subtotal),
        tax=round_price(tax),
        shipping=round_price(shipping),
        discount=round_price(discount_amount),
        total=round_price(total),
        total_items=total_items,
        free_shipping_threshold=settings.free_shipping_threshold,
        currency=settings.currency,
    )


def calculate_cart_metrics(lines: list[CartLine], products: ProductDatabase) -> CartMetrics:
    """Item count, subtotal and sale savings across the given lines"""
    inventory = products.lookup(InventoryQuery.for_lines(lines))

    subtotal = 0.0
    total_savings = 0.0
    item_count = 0

    for line in lines:
        snapshot = inventory.get((line.product_id, line.variant_id))
        if snapshot is None:
            continue

        subtotal += snapshot.effective_price * line.quantity
        item_count += line.quantity

        if snapshot.compare_price and snapshot.compare_price < snapshot.price:
            total_savings += (snapshot.price - snapshot.compare_price) * line.quantity

    return CartMetrics(
        item_count=item_count,
        subtotal=round_price(subtotal),
        total_savings=round_price(total_savings),
        average_item_value=round_price(subtotal / item_count) if item_count else 0.0,
    )
