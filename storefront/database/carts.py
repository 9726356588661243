"""Cart line storage"""

import uuid
from datetime import datetime
from typing import Iterable, Optional

from ..models.cart import CartLine
from .queries import CartLineQuery


class CartDatabase:
    """In-memory cart line storage"""

    def __init__(self):
        self.lines: dict[str, CartLine] = {}

    def reset(self) -> None:
        self.lines = {}

    def list_lines(self, query: CartLineQuery) -> list[CartLine]:
        """Lines owned by query.user_id in creation order"""
        now = query.now or datetime.utcnow()
        lines = [
            line for line in self.lines.values()
            if line.user_id == query.user_id
            and not line.is_expired(now)
        ]
        # Stable sort keeps insertion order for equal timestamps
        lines.sort(key=lambda line: line.created_at)
        return lines

    def get_line(self, line_id: str, user_id: Optional[str] = None) -> Optional[CartLine]:
        """Get a line by ID, optionally checking ownership"""
        line = self.lines.get(line_id)
        if line is None or (user_id is not None and line.user_id != user_id):
            return None
        return line

    def find_line(
        self,
        user_id: str,
        product_id: str,
        variant_id: Optional[str] = None,
    ) -> Optional[CartLine]:
        return next(
            (
                line for line in self.lines.values()
                if line.user_id == user_id
                and line.product_id == product_id
                and line.variant_id == variant_id
            ),
            None,
        )

    def count_lines(self, user_id: str) -> int:
        return sum(1 for line in self.lines.values() if line.user_id == user_id)

    def add_line(
        self,
        user_id: str,
        product_id: str,
        product_name: str,
        quantity: int,
        unit_price: float,
        variant_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> CartLine:
        """Create a new line; callers merge into an existing one via find_line"""
        now = datetime.utcnow()
        line = CartLine(
            id=str(uuid.uuid4()),
            user_id=user_id,
            product_id=product_id,
            variant_id=variant_id,
            product_name=product_name,
            quantity=quantity,
            unit_price_at_add=unit_price,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
        )
        self.lines[line.id] = line
        return line

    def update_line_quantity(
        self,
        line_id: str,
        quantity: int,
        expires_at: Optional[datetime] = None,
    ) -> Optional[CartLine]:
        """Set a line's quantity. Returns None if the line is gone."""
        line = self.lines.get(line_id)
        if line is None:
            return None

        line.quantity = quantity
        line.updated_at = datetime.utcnow()
        if expires_at is not None:
            line.expires_at = expires_at
        return line

    def delete_line(self, line_id: str) -> bool:
        """Delete a line. Deleting a missing line returns False."""
        return self.lines.pop(line_id, None) is not None

    def delete_lines(self, line_ids: Iterable[str]) -> int:
        return sum(1 for line_id in set(line_ids) if self.delete_line(line_id))

    def clear_cart(self, user_id: str) -> int:
        """Remove every line owned by user_id"""
        return self.delete_lines(
            [line.id for line in self.lines.values() if line.user_id == user_id]
        )

    def cleanup_expired(
        self,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete expired lines for one user, or for everyone"""
        now = now or datetime.utcnow()
        expired = [
            line.id for line in self.lines.values()
            if line.is_expired(now) and (user_id is None or line.user_id == user_id)
        ]
        return self.delete_lines(expired)


# Singleton instance
cart_db = CartDatabase()
