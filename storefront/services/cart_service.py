"""Cart reads and guest cart merging"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..core.config import settings
from ..core.context import RequestContext
from ..database.carts import CartDatabase
from ..database.products import ProductDatabase
from ..database.queries import CartLineQuery, InventoryQuery
from ..models.cart import CartItemView, CartResponse, GuestCartItem, MergeCartResponse
from .pricing import calculate_cart_totals

logger = logging.getLogger(__name__)


def cart_item_expiry(now: Optional[datetime] = None) -> datetime:
    """Expiry timestamp for a line added or refreshed at `now`"""
    now = now or datetime.utcnow()
    return now + timedelta(days=settings.cart_item_expiry_days)


def build_cart_view(
    context: RequestContext,
    carts: CartDatabase,
    products: ProductDatabase,
    message: Optional[str] = None,
) -> CartResponse:
    """
    Current cart with live product data and totals.

    Expired lines are purged first. Lines whose product is gone or inactive
    are left out of the view; they stay stored until validation removes them.
    """
    purged = carts.cleanup_expired(user_id=context.user_id, now=context.now)
    if purged:
        logger.info(f"Purged {purged} expired cart lines for user {context.user_id}")

    lines = carts.list_lines(CartLineQuery(user_id=context.user_id, now=context.now))
    inventory = products.lookup(InventoryQuery.for_lines(lines))

    items: list[CartItemView] = []
    for line in lines:
        snapshot = inventory.get((line.product_id, line.variant_id))
        if snapshot is None or not snapshot.is_available:
            continue

        items.append(CartItemView(
            id=line.id,
            product_id=line.product_id,
            variant_id=line.variant_id,
            product_name=snapshot.name,
            variant_name=snapshot.variant_name,
            sku=snapshot.sku,
            quantity=min(line.quantity, snapshot.stock),
            unit_price=snapshot.effective_price,
            sale_price=snapshot.sale_price,
            stock=snapshot.stock,
            added_at=line.created_at,
        ))

    return CartResponse(
        items=items,
        summary=calculate_cart_totals(items),
        message=message,
    )


def merge_guest_cart(
    context: RequestContext,
    guest_items: Iterable[GuestCartItem],
    carts: CartDatabase,
    products: ProductDatabase,
) -> MergeCartResponse:
    """
    Fold an anonymous cart into the caller's cart after sign-in.

    Unavailable or out-of-stock items are skipped. Existing lines get the
    guest quantity added, new lines are capped at stock.
    """
    merged = 0
    skipped = 0
    carts.cleanup_expired(user_id=context.user_id, now=context.now)

    for item in guest_items:
        snapshot = products.resolve(item.product_id, item.variant_id)
        if snapshot is None or not snapshot.is_available or snapshot.stock <= 0:
            skipped += 1
            continue

        existing = carts.find_line(context.user_id, item.product_id, item.variant_id)
        if existing:
            carts.update_line_quantity(
                existing.id,
                existing.quantity + item.quantity,
                expires_at=cart_item_expiry(context.now),
            )
        elif carts.count_lines(context.user_id) >= settings.max_cart_items:
            skipped += 1
            continue
        else:
            carts.add_line(
                user_id=context.user_id,
                product_id=item.product_id,
                variant_id=item.variant_id,
                product_name=snapshot.name,
                quantity=min(item.quantity, snapshot.stock),
                unit_price=snapshot.effective_price,
                expires_at=cart_item_expiry(context.now),
            )
        merged += 1

    logger.info(f"Merged guest cart for user {context.user_id}: {merged} merged, {skipped} skipped")
    return MergeCartResponse(merged=merged, skipped=skipped)
