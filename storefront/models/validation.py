"""Cart validation report models

Serialized in camelCase to match the storefront client contract.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartErrorKind(str, Enum):
    """Findings that block checkout"""
    OUT_OF_STOCK = "out_of_stock"
    PRODUCT_DELETED = "product_deleted"
    PRODUCT_INACTIVE = "product_inactive"


class CartWarningKind(str, Enum):
    """Informational findings"""
    PRICE_CHANGED = "price_changed"
    LOW_STOCK = "low_stock"


class CartValidationError(CamelModel):
    item_id: str
    product_id: str
    product_name: str
    kind: CartErrorKind
    message: str


class CartValidationWarning(CamelModel):
    item_id: str
    product_id: str
    product_name: str
    kind: CartWarningKind
    message: str
    old_value: Optional[float] = None
    new_value: Optional[float] = None


class CartAdjustment(CamelModel):
    """Quantity reduction for a line that exceeds available stock"""
    item_id: str
    product_id: str
    from_quantity: int
    to_quantity: int = Field(gt=0)
    reason: str


class CartValidationResult(CamelModel):
    errors: list[CartValidationError] = Field(default_factory=list)
    warnings: list[CartValidationWarning] = Field(default_factory=list)
    adjustments: list[CartAdjustment] = Field(default_factory=list)

    @computed_field(alias="isValid")
    @property
    def is_valid(self) -> bool:
        return not self.errors


class ValidateCartRequest(CamelModel):
    """Body of POST /api/cart/validate"""
    # null is accepted and means False
    auto_fix: Optional[bool] = None


class FixSummary(CamelModel):
    adjustments_applied: int = 0
    items_removed: int = 0


class ValidateCartResponse(CartValidationResult):
    fixed: Optional[FixSummary] = None
