"""
Cart Validation

Reconciles a user's persisted cart against live inventory and pricing
before checkout.

Usage:
    result = validate_cart(context, cart_db, product_db)
    if not result.is_valid:
        apply_cart_adjustments(result.adjustments, cart_db)
        remove_invalid_cart_items(result.errors, cart_db)

Validation itself never writes. A line that errors is never also adjusted:
errored lines are meant to be removed, adjusted lines are kept with a lower
quantity.
"""

import logging
from typing import Iterable, Optional

from ..core.context import RequestContext
from ..database.carts import CartDatabase
from ..database.products import ProductDatabase
from ..database.queries import CartLineQuery, InventoryQuery, InventorySnapshot
from ..models.cart import CartLine
from ..models.product import round_price
from ..models.validation import (
    CartAdjustment,
    CartErrorKind,
    CartValidationError,
    CartValidationResult,
    CartValidationWarning,
    CartWarningKind,
    FixSummary,
    ValidateCartResponse,
)

logger = logging.getLogger(__name__)


class CartValidationFailed(Exception):
    """The cart or catalog store could not be read or written"""
    pass


class CartValidator:
    """
    Produces a validation report for one user's cart.

    For each line, checks run in this order and stop at the first error:
    deleted, inactive, out of stock. Lines that pass get a quantity
    adjustment when stock is short, and a warning when the price moved
    since the line was added.
    """

    def __init__(
        self,
        carts: CartDatabase,
        products: ProductDatabase,
        low_stock_threshold: int = 0,
    ):
        """
        Args:
            carts: Cart line store
            products: Catalog store used for the inventory lookup
            low_stock_threshold: Warn when stock is at or below this even if
                it covers the requested quantity. 0 disables the notice.
        """
        self.carts = carts
        self.products = products
        self.low_stock_threshold = low_stock_threshold

    def validate(self, context: RequestContext) -> CartValidationResult:
        try:
            lines = self.carts.list_lines(
                CartLineQuery(user_id=context.user_id, now=context.now)
            )
            inventory = self.products.lookup(InventoryQuery.for_lines(lines))
        except Exception as exc:
            logger.exception(f"Cart validation failed for user {context.user_id}")
            raise CartValidationFailed("Failed to validate cart") from exc

        result = CartValidationResult()
        for line in lines:
            snapshot = inventory.get((line.product_id, line.variant_id))
            self._check_line(line, snapshot, result)

        logger.info(
            f"Validated cart for user {context.user_id}: {len(lines)} lines, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings, "
            f"{len(result.adjustments)} adjustments"
        )
        return result

    def _check_line(
        self,
        line: CartLine,
        snapshot: Optional[InventorySnapshot],
        result: CartValidationResult,
    ) -> None:
        name = snapshot.name if snapshot else line.product_name

        if snapshot is None or snapshot.is_deleted:
            result.errors.append(self._error(
                line, name, CartErrorKind.PRODUCT_DELETED,
                f"{name} is no longer available",
            ))
            return

        if not snapshot.is_active:
            result.errors.append(self._error(
                line, name, CartErrorKind.PRODUCT_INACTIVE,
                f"{name} is currently unavailable",
            ))
            return

        if snapshot.stock <= 0:
            result.errors.append(self._error(
                line, name, CartErrorKind.OUT_OF_STOCK,
                f"{name} is out of stock",
            ))
            return

        if line.quantity > snapshot.stock:
            result.warnings.append(CartValidationWarning(
                item_id=line.id,
                product_id=line.product_id,
                product_name=name,
                kind=CartWarningKind.LOW_STOCK,
                message=f"Only {snapshot.stock} of {name} available",
                old_value=line.quantity,
                new_value=snapshot.stock,
            ))
            result.adjustments.append(CartAdjustment(
                item_id=line.id,
                product_id=line.product_id,
                from_quantity=line.quantity,
                to_quantity=snapshot.stock,
                reason="Stock limitation",
            ))
        elif 0 < snapshot.stock <= self.low_stock_threshold:
            result.warnings.append(CartValidationWarning(
                item_id=line.id,
                product_id=line.product_id,
                product_name=name,
                kind=CartWarningKind.LOW_STOCK,
                message=f"Only {snapshot.stock} of {name} left in stock",
            ))

        old_price = round_price(line.unit_price_at_add)
        new_price = snapshot.effective_price
        if old_price != new_price:
            direction = "increased" if new_price > old_price else "dropped"
            result.warnings.append(CartValidationWarning(
                item_id=line.id,
                product_id=line.product_id,
                product_name=name,
                kind=CartWarningKind.PRICE_CHANGED,
                message=f"Price of {name} {direction} from {old_price:.2f} to {new_price:.2f}",
                old_value=old_price,
                new_value=new_price,
            ))

    @staticmethod
    def _error(
        line: CartLine,
        name: str,
        kind: CartErrorKind,
        message: str,
    ) -> CartValidationError:
        return CartValidationError(
            item_id=line.id,
            product_id=line.product_id,
            product_name=name,
            kind=kind,
            message=message,
        )


def validate_cart(
    context: RequestContext,
    carts: CartDatabase,
    products: ProductDatabase,
    low_stock_threshold: int = 0,
) -> CartValidationResult:
    """Validate every non-expired line in the caller's cart"""
    validator = CartValidator(carts, products, low_stock_threshold=low_stock_threshold)
    return validator.validate(context)


def apply_cart_adjustments(
    adjustments: Iterable[CartAdjustment],
    carts: CartDatabase,
) -> int:
    """
    Set each adjusted line's quantity to its target.

    Lines that no longer exist are skipped; the rest of the batch still runs.

    Returns:
        Number of adjustments applied
    """
    applied = 0
    try:
        for adjustment in adjustments:
            line = carts.update_line_quantity(adjustment.item_id, adjustment.to_quantity)
            if line is None:
                logger.warning(
                    f"Skipping adjustment for missing cart line {adjustment.item_id}"
                )
                continue
            applied += 1
    except Exception as exc:
        logger.exception(f"Failed applying cart adjustments after {applied} lines")
        raise CartValidationFailed("Failed to apply cart adjustments") from exc

    return applied


def remove_invalid_cart_items(
    errors: Iterable[CartValidationError],
    carts: CartDatabase,
) -> int:
    """
    Delete every line referenced by a validation error.

    Removing a line that is already gone is a no-op.

    Returns:
        Number of lines actually removed
    """
    try:
        return carts.delete_lines(error.item_id for error in errors)
    except Exception as exc:
        logger.exception("Failed removing invalid cart items")
        raise CartValidationFailed("Failed to remove invalid cart items") from exc


def run_cart_validation(
    context: RequestContext,
    carts: CartDatabase,
    products: ProductDatabase,
    auto_fix: bool = False,
    low_stock_threshold: int = 0,
) -> ValidateCartResponse:
    """
    Validate the caller's cart and, with auto_fix, repair it.

    Adjustments and removals touch disjoint lines, so running them in
    sequence gives the same cart as any other order.
    """
    validation = validate_cart(
        context, carts, products, low_stock_threshold=low_stock_threshold
    )

    response = ValidateCartResponse(
        errors=validation.errors,
        warnings=validation.warnings,
        adjustments=validation.adjustments,
    )

    if auto_fix:
        fixed = FixSummary()
        if validation.adjustments:
            fixed.adjustments_applied = apply_cart_adjustments(validation.adjustments, carts)
        if validation.errors:
            fixed.items_removed = remove_invalid_cart_items(validation.errors, carts)
        response.fixed = fixed

        logger.info(
            f"Auto-fixed cart for user {context.user_id}: "
            f"{fixed.adjustments_applied} adjusted, {fixed.items_removed} removed"
        )

    return response
