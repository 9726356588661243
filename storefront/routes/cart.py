"""Cart API routes"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import ValidationError

from ..core.config import settings
from ..core.context import RequestContext
from ..database.carts import cart_db
from ..database.products import product_db
from ..database.queries import CartLineQuery
from ..models.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    CartResponse,
    CartMetrics,
    MergeCartRequest,
    MergeCartResponse,
)
from ..models.validation import ValidateCartRequest, ValidateCartResponse
from ..security.session import require_user
from ..services.cart_service import build_cart_view, cart_item_expiry, merge_guest_cart
from ..services.cart_validation import CartValidationFailed, run_cart_validation
from ..services.pricing import calculate_cart_metrics, validate_quantity, validate_stock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(context: RequestContext = Depends(require_user)):
    """Get the caller's cart with live prices and totals"""
    return build_cart_view(context, cart_db, product_db)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    context: RequestContext = Depends(require_user),
):
    """Add an item to the cart, merging with an existing line"""
    quantity_error = validate_quantity(request.quantity)
    if quantity_error:
        raise HTTPException(status_code=400, detail=quantity_error)

    snapshot = product_db.resolve(request.product_id, request.variant_id)
    if snapshot is None or not snapshot.is_available:
        raise HTTPException(status_code=404, detail="Product not found or unavailable")

    # Expired lines are not part of the cart and must not block the line limit
    cart_db.cleanup_expired(user_id=context.user_id, now=context.now)

    expires_at = cart_item_expiry(context.now)
    existing = cart_db.find_line(context.user_id, request.product_id, request.variant_id)

    if existing:
        stock_error = validate_stock(1, snapshot.stock)
        if stock_error:
            raise HTTPException(status_code=400, detail=stock_error)

        requested = existing.quantity + request.quantity
        new_quantity = min(requested, settings.max_quantity_per_item, snapshot.stock)
        message = f"Added {request.quantity}x {snapshot.name} to cart"
        if new_quantity < requested:
            message = f"Updated to maximum available quantity: {new_quantity}"

        cart_db.update_line_quantity(existing.id, new_quantity, expires_at=expires_at)
        return build_cart_view(context, cart_db, product_db, message=message)

    stock_error = validate_stock(request.quantity, snapshot.stock)
    if stock_error:
        raise HTTPException(status_code=400, detail=stock_error)

    if cart_db.count_lines(context.user_id) >= settings.max_cart_items:
        raise HTTPException(
            status_code=400,
            detail=f"Cart cannot hold more than {settings.max_cart_items} items",
        )

    cart_db.add_line(
        user_id=context.user_id,
        product_id=request.product_id,
        variant_id=request.variant_id,
        product_name=snapshot.name,
        quantity=request.quantity,
        unit_price=snapshot.effective_price,
        expires_at=expires_at,
    )
    return build_cart_view(
        context,
        cart_db,
        product_db,
        message=f"Added {request.quantity}x {snapshot.name} to cart",
    )


@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    context: RequestContext = Depends(require_user),
):
    """Update item quantity in cart"""
    quantity_error = validate_quantity(request.quantity)
    if quantity_error:
        raise HTTPException(status_code=400, detail=quantity_error)

    line = cart_db.get_line(item_id, user_id=context.user_id)
    if not line:
        raise HTTPException(status_code=404, detail="Cart item not found")

    snapshot = product_db.resolve(line.product_id, line.variant_id)
    if snapshot is None or not snapshot.is_available:
        cart_db.delete_line(line.id)
        raise HTTPException(status_code=410, detail="Product is no longer available")

    stock_error = validate_stock(request.quantity, snapshot.stock)
    if stock_error:
        raise HTTPException(status_code=400, detail=stock_error)

    cart_db.update_line_quantity(line.id, request.quantity)
    return build_cart_view(context, cart_db, product_db, message="Cart updated")


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: str,
    context: RequestContext = Depends(require_user),
):
    """Remove an item from the cart"""
    line = cart_db.get_line(item_id, user_id=context.user_id)
    if not line:
        raise HTTPException(status_code=404, detail="Cart item not found")

    cart_db.delete_line(line.id)
    return build_cart_view(context, cart_db, product_db, message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(context: RequestContext = Depends(require_user)):
    """Clear all items from cart"""
    removed = cart_db.clear_cart(context.user_id)
    logger.info(f"Cleared {removed} lines from cart of user {context.user_id}")
    return build_cart_view(context, cart_db, product_db, message="Cart cleared")


@router.post("/merge", response_model=MergeCartResponse)
async def merge_cart(
    request: MergeCartRequest,
    context: RequestContext = Depends(require_user),
):
    """Merge a guest cart into the caller's cart"""
    return merge_guest_cart(context, request.items, cart_db, product_db)


@router.get("/metrics", response_model=CartMetrics)
async def cart_metrics(context: RequestContext = Depends(require_user)):
    """Item count, subtotal and savings for the caller's cart"""
    lines = cart_db.list_lines(CartLineQuery(user_id=context.user_id, now=context.now))
    return calculate_cart_metrics(lines, product_db)


async def _read_validate_options(request: Request) -> ValidateCartRequest:
    """Parse the optional validate body; an empty body means defaults"""
    body = await request.body()
    if not body.strip():
        return ValidateCartRequest()
    try:
        return ValidateCartRequest.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"Rejected cart validation body: {e.errors()[0]['msg']}")
        raise HTTPException(status_code=400, detail="Invalid request body")


@router.post(
    "/validate",
    response_model=ValidateCartResponse,
    response_model_exclude_none=True,
)
async def validate_cart(
    request: Request,
    context: RequestContext = Depends(require_user),
):
    """
    Validate cart before checkout.

    An invalid cart is still a 200; findings are reported in the body.
    With autoFix, short-stock lines are reduced and errored lines removed.
    The body is read only after the session is resolved, so anonymous
    callers get 401 whatever they send.
    """
    options = await _read_validate_options(request)
    auto_fix = bool(options.auto_fix)

    try:
        return run_cart_validation(
            context,
            cart_db,
            product_db,
            auto_fix=auto_fix,
            low_stock_threshold=settings.low_stock_threshold,
        )
    except CartValidationFailed:
        logger.error(f"Cart validation request failed for user {context.user_id}")
        raise HTTPException(status_code=500, detail="Failed to validate cart")
