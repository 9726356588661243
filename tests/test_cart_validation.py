"""
Tests for the cart validation pipeline

These exercise CartValidator, apply_cart_adjustments and
remove_invalid_cart_items against fresh in-memory stores.
"""
from datetime import datetime, timedelta

import pytest

from storefront.core.context import RequestContext
from storefront.models.product import ProductVariant
from storefront.models.validation import CartErrorKind, CartWarningKind
from storefront.services.cart_validation import (
    CartValidationFailed,
    apply_cart_adjustments,
    remove_invalid_cart_items,
    run_cart_validation,
    validate_cart,
)


class TestValidCart:

    def test_in_stock_active_unchanged_cart_is_clean(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=10, price=10.0)
        add_product(products, "p2", stock=3, price=25.0)
        add_line(carts, "p1", quantity=3, unit_price=10.0)
        add_line(carts, "p2", quantity=3, unit_price=25.0)

        result = validate_cart(context, carts, products)

        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []
        assert result.adjustments == []

    def test_empty_cart_is_valid(self, context, carts, products):
        result = validate_cart(context, carts, products)
        assert result.is_valid is True

    def test_other_users_lines_are_ignored(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        add_line(carts, "p1", quantity=1, user_id="someone-else")

        result = validate_cart(context, carts, products)

        assert result.is_valid is True

    def test_expired_lines_are_ignored(
        self, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        line = add_line(carts, "p1", quantity=1)
        line.expires_at = datetime.utcnow() - timedelta(minutes=1)

        result = validate_cart(RequestContext(user_id="user-1"), carts, products)

        assert result.is_valid is True
        assert result.errors == []


class TestStockFindings:

    def test_short_stock_produces_adjustment_and_warning(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=2)
        line = add_line(carts, "p1", quantity=5)

        result = validate_cart(context, carts, products)

        assert result.errors == []
        assert result.is_valid is True
        assert len(result.adjustments) == 1
        adjustment = result.adjustments[0]
        assert adjustment.item_id == line.id
        assert adjustment.from_quantity == 5
        assert adjustment.to_quantity == 2
        assert len(result.warnings) == 1
        assert result.warnings[0].kind == CartWarningKind.LOW_STOCK
        assert result.warnings[0].old_value == 5
        assert result.warnings[0].new_value == 2

    def test_zero_stock_is_an_error_without_adjustment(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        line = add_line(carts, "p1", quantity=3)

        result = validate_cart(context, carts, products)

        assert result.is_valid is False
        assert [(e.item_id, e.kind) for e in result.errors] == [
            (line.id, CartErrorKind.OUT_OF_STOCK)
        ]
        assert result.adjustments == []

    def test_exact_stock_needs_no_adjustment(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=4)
        add_line(carts, "p1", quantity=4)

        result = validate_cart(context, carts, products)

        assert result.adjustments == []
        assert result.warnings == []

    def test_low_stock_notice_when_threshold_enabled(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=3)
        add_line(carts, "p1", quantity=2)

        result = validate_cart(context, carts, products, low_stock_threshold=5)

        assert result.adjustments == []
        assert [w.kind for w in result.warnings] == [CartWarningKind.LOW_STOCK]
        assert result.warnings[0].old_value is None


class TestAvailabilityFindings:

    def test_soft_deleted_product(self, context, carts, products, add_product, add_line):
        add_product(products, "p1", stock=10)
        add_line(carts, "p1", quantity=1)
        products.soft_delete("p1")

        result = validate_cart(context, carts, products)

        assert [e.kind for e in result.errors] == [CartErrorKind.PRODUCT_DELETED]

    def test_missing_product_uses_name_from_cart_line(self, context, carts, products, add_line):
        add_line(carts, "gone", quantity=1)

        result = validate_cart(context, carts, products)

        assert result.errors[0].kind == CartErrorKind.PRODUCT_DELETED
        assert result.errors[0].product_name == "Product gone"

    def test_inactive_product(self, context, carts, products, add_product, add_line):
        add_product(products, "p1", stock=10)
        add_line(carts, "p1", quantity=1)
        products.set_active("p1", False)

        result = validate_cart(context, carts, products)

        assert [e.kind for e in result.errors] == [CartErrorKind.PRODUCT_INACTIVE]

    def test_deleted_wins_over_out_of_stock(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        add_line(carts, "p1", quantity=1)
        products.soft_delete("p1")

        result = validate_cart(context, carts, products)

        assert len(result.errors) == 1
        assert result.errors[0].kind == CartErrorKind.PRODUCT_DELETED

    def test_variant_state_is_checked(self, context, carts, products, add_product, add_line):
        add_product(
            products,
            "p1",
            stock=50,
            variants=[
                ProductVariant(id="v-off", product_id="p1", name="Off", sku="V1", stock=5),
                ProductVariant(id="v-low", product_id="p1", name="Low", sku="V2", stock=1),
            ],
        )
        products.set_active("p1", False, variant_id="v-off")
        off = add_line(carts, "p1", quantity=1, variant_id="v-off")
        low = add_line(carts, "p1", quantity=3, variant_id="v-low")
        missing = add_line(carts, "p1", quantity=1, variant_id="v-missing")

        result = validate_cart(context, carts, products)

        kinds = {e.item_id: e.kind for e in result.errors}
        assert kinds == {
            off.id: CartErrorKind.PRODUCT_INACTIVE,
            missing.id: CartErrorKind.PRODUCT_DELETED,
        }
        assert [(a.item_id, a.to_quantity) for a in result.adjustments] == [(low.id, 1)]


class TestPriceFindings:

    def test_price_increase_is_a_warning_only(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=10, price=12.0)
        add_line(carts, "p1", quantity=1, unit_price=10.0)

        result = validate_cart(context, carts, products)

        assert result.is_valid is True
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind == CartWarningKind.PRICE_CHANGED
        assert warning.old_value == 10.0
        assert warning.new_value == 12.0

    def test_sale_price_counts_as_current_price(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=10, price=20.0, compare_price=15.0)
        add_line(carts, "p1", quantity=1, unit_price=15.0)

        result = validate_cart(context, carts, products)

        assert result.warnings == []

    def test_adjusted_line_can_also_report_price_change(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=1, price=9.0)
        add_line(carts, "p1", quantity=2, unit_price=10.0)

        result = validate_cart(context, carts, products)

        assert [w.kind for w in result.warnings] == [
            CartWarningKind.LOW_STOCK,
            CartWarningKind.PRICE_CHANGED,
        ]
        assert len(result.adjustments) == 1


class TestReportProperties:

    def test_errored_lines_are_never_adjusted(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        add_product(products, "p2", stock=1)
        add_product(products, "p3", stock=2)
        add_line(carts, "p1", quantity=5)
        add_line(carts, "p2", quantity=5)
        add_line(carts, "p3", quantity=5)
        products.set_active("p3", False)

        result = validate_cart(context, carts, products)

        errored = {e.item_id for e in result.errors}
        adjusted = {a.item_id for a in result.adjustments}
        assert errored
        assert adjusted
        assert errored.isdisjoint(adjusted)

    def test_validation_is_deterministic_and_read_only(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        add_product(products, "p2", stock=1, price=11.0)
        add_line(carts, "p1", quantity=1)
        add_line(carts, "p2", quantity=4)
        before = {line_id: line.quantity for line_id, line in carts.lines.items()}

        first = validate_cart(context, carts, products)
        second = validate_cart(context, carts, products)

        assert first.model_dump() == second.model_dump()
        assert {line_id: line.quantity for line_id, line in carts.lines.items()} == before

    def test_store_failure_is_wrapped(self, context, carts, products, monkeypatch):
        def broken(query):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(carts, "list_lines", broken)

        with pytest.raises(CartValidationFailed):
            validate_cart(context, carts, products)


class TestFixSteps:

    def test_apply_adjustments_skips_missing_lines(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=2)
        add_product(products, "p2", stock=1)
        first = add_line(carts, "p1", quantity=5)
        second = add_line(carts, "p2", quantity=3)
        result = validate_cart(context, carts, products)

        carts.delete_line(first.id)
        applied = apply_cart_adjustments(result.adjustments, carts)

        assert applied == 1
        assert carts.get_line(second.id).quantity == 1

    def test_remove_invalid_items_is_idempotent(
        self, context, carts, products, add_product, add_line
    ):
        add_product(products, "p1", stock=0)
        add_product(products, "p2", stock=10)
        add_line(carts, "p1", quantity=1)
        kept = add_line(carts, "p2", quantity=1)
        result = validate_cart(context, carts, products)

        assert remove_invalid_cart_items(result.errors, carts) == 1
        state_after_first = set(carts.lines)
        assert remove_invalid_cart_items(result.errors, carts) == 0
        assert set(carts.lines) == state_after_first == {kept.id}

    def test_empty_inputs_do_nothing(self, carts):
        assert apply_cart_adjustments([], carts) == 0
        assert remove_invalid_cart_items([], carts) == 0


class TestEndToEnd:
    """
    Cart: A qty 3 / stock 10, B qty 1 / stock 0, C qty 4 / stock 1,
    all at unchanged prices.
    """

    @pytest.fixture
    def mixed_cart(self, carts, products, add_product, add_line):
        add_product(products, "A", stock=10)
        add_product(products, "B", stock=0)
        add_product(products, "C", stock=1)
        return (
            add_line(carts, "A", quantity=3),
            add_line(carts, "B", quantity=1),
            add_line(carts, "C", quantity=4),
        )

    def test_report_without_auto_fix(self, context, carts, products, mixed_cart):
        line_a, line_b, line_c = mixed_cart

        response = run_cart_validation(context, carts, products)

        assert response.is_valid is False
        assert [(e.item_id, e.kind) for e in response.errors] == [
            (line_b.id, CartErrorKind.OUT_OF_STOCK)
        ]
        assert [(a.item_id, a.from_quantity, a.to_quantity) for a in response.adjustments] == [
            (line_c.id, 4, 1)
        ]
        assert [(w.item_id, w.kind) for w in response.warnings] == [
            (line_c.id, CartWarningKind.LOW_STOCK)
        ]
        assert response.fixed is None
        assert len(carts.lines) == 3

    def test_auto_fix_repairs_cart(self, context, carts, products, mixed_cart):
        line_a, line_b, line_c = mixed_cart

        response = run_cart_validation(context, carts, products, auto_fix=True)

        assert response.fixed.adjustments_applied == 1
        assert response.fixed.items_removed == 1
        assert carts.get_line(line_b.id) is None
        assert carts.get_line(line_c.id).quantity == 1
        assert carts.get_line(line_a.id).quantity == 3

        revalidated = run_cart_validation(context, carts, products)
        assert revalidated.is_valid is True
        assert revalidated.adjustments == []
