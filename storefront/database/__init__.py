# Database modules

from .products import product_db, ProductDatabase
from .carts import cart_db, CartDatabase
from .queries import CartLineQuery, InventoryQuery, InventorySnapshot

__all__ = [
    "product_db",
    "ProductDatabase",
    "cart_db",
    "CartDatabase",
    "CartLineQuery",
    "InventoryQuery",
    "InventorySnapshot",
]
