"""Product catalog storage"""

from datetime import datetime
from typing import Optional

from ..models.product import Product, ProductCategory, ProductVariant
from .queries import InventoryKey, InventoryQuery, InventorySnapshot

# Default catalog
PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        name="Studio Monitor Headphones",
        description="Closed-back over-ear headphones with detachable cable.",
        category=ProductCategory.AUDIO,
        sku="AUD-HP-STUDIO",
        price=179.00,
        compare_price=149.00,
        stock=40,
    ),
    "prod-002": Product(
        id="prod-002",
        name="Portable Bluetooth Speaker",
        description="Waterproof speaker with 20-hour battery.",
        category=ProductCategory.AUDIO,
        sku="AUD-SPK-PORT",
        price=89.99,
        stock=4,
    ),
    "prod-003": Product(
        id="prod-003",
        name="Mechanical Keyboard",
        description="Tenkeyless keyboard with hot-swappable switches.",
        category=ProductCategory.COMPUTING,
        sku="CMP-KB-TKL",
        price=129.00,
        stock=25,
        variants=[
            ProductVariant(
                id="var-003-red",
                product_id="prod-003",
                name="Red switches",
                sku="CMP-KB-TKL-RED",
                stock=10,
            ),
            ProductVariant(
                id="var-003-brown",
                product_id="prod-003",
                name="Brown switches",
                sku="CMP-KB-TKL-BRN",
                price=134.00,
                stock=0,
            ),
        ],
    ),
    "prod-004": Product(
        id="prod-004",
        name="Cast Iron Skillet",
        description="Pre-seasoned 12-inch skillet.",
        category=ProductCategory.HOME,
        sku="HOM-SKL-12",
        price=39.50,
        stock=60,
    ),
    "prod-005": Product(
        id="prod-005",
        name="Trail Running Jacket",
        description="Lightweight windproof shell.",
        category=ProductCategory.APPAREL,
        sku="APP-JKT-TRAIL",
        price=110.00,
        stock=30,
        variants=[
            ProductVariant(
                id="var-005-m",
                product_id="prod-005",
                name="Medium",
                sku="APP-JKT-TRAIL-M",
                stock=12,
            ),
            ProductVariant(
                id="var-005-l",
                product_id="prod-005",
                name="Large",
                sku="APP-JKT-TRAIL-L",
                compare_price=95.00,
                stock=8,
            ),
        ],
    ),
    "prod-006": Product(
        id="prod-006",
        name="Two-Person Tent",
        description="Freestanding three-season tent.",
        category=ProductCategory.OUTDOOR,
        sku="OUT-TNT-2P",
        price=249.00,
        stock=0,
    ),
}


class ProductDatabase:
    """In-memory product catalog"""

    def __init__(self, products: Optional[dict[str, Product]] = None):
        source = PRODUCTS if products is None else products
        self.products = {pid: p.model_copy(deep=True) for pid, p in source.items()}

    def reset(self) -> None:
        """Restore the default catalog"""
        self.products = {pid: p.model_copy(deep=True) for pid, p in PRODUCTS.items()}

    def add_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID, hiding soft-deleted ones"""
        product = self.products.get(product_id)
        if product and product.is_deleted:
            return None
        return product

    def search_products(
        self,
        query: Optional[str] = None,
        category: Optional[ProductCategory] = None,
        in_stock_only: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Product], int]:
        """
        Search available products with filters.

        Returns:
            Tuple of (matching products, total count)
        """
        results = [p for p in self.products.values() if p.is_available]

        if query:
            query_lower = query.lower()
            results = [
                p for p in results
                if query_lower in p.name.lower() or query_lower in p.description.lower()
            ]

        if category:
            results = [p for p in results if p.category == category]

        if in_stock_only:
            results = [p for p in results if p.stock > 0]

        total = len(results)
        return results[offset : offset + limit], total

    def lookup(self, query: InventoryQuery) -> dict[InventoryKey, InventorySnapshot]:
        """
        Read live stock, price and availability.

        Product-level entries are keyed (product_id, None). Every known variant
        of a requested product that appears in query.variant_ids is keyed
        (product_id, variant_id) and merges product and variant state.
        Unknown identifiers are left out of the result.
        """
        snapshots: dict[InventoryKey, InventorySnapshot] = {}
        for product_id in sorted(query.product_ids):
            product = self.products.get(product_id)
            if product is None:
                continue

            snapshots[(product_id, None)] = InventorySnapshot(
                product_id=product.id,
                variant_id=None,
                name=product.name,
                sku=product.sku,
                stock=product.stock,
                price=product.price,
                compare_price=product.compare_price,
                is_active=product.is_active,
                is_deleted=product.is_deleted,
            )

            for variant in product.variants:
                if variant.id not in query.variant_ids:
                    continue
                price = variant.price if variant.price is not None else product.price
                compare_price = (
                    variant.compare_price
                    if variant.compare_price is not None
                    else product.compare_price
                )
                snapshots[(product_id, variant.id)] = InventorySnapshot(
                    product_id=product.id,
                    variant_id=variant.id,
                    name=f"{product.name} ({variant.name})",
                    sku=variant.sku,
                    stock=variant.stock,
                    price=price,
                    compare_price=compare_price,
                    is_active=product.is_active and variant.is_active,
                    is_deleted=product.is_deleted or variant.is_deleted,
                    variant_name=variant.name,
                )

        return snapshots

    def resolve(
        self,
        product_id: str,
        variant_id: Optional[str] = None,
    ) -> Optional[InventorySnapshot]:
        """Live state for a single product or product/variant pair"""
        query = InventoryQuery(
            product_ids=frozenset({product_id}),
            variant_ids=frozenset({variant_id}) if variant_id else frozenset(),
        )
        return self.lookup(query).get((product_id, variant_id))

    def set_active(self, product_id: str, is_active: bool, variant_id: Optional[str] = None) -> bool:
        product = self.products.get(product_id)
        if not product:
            return False
        record = product.get_variant(variant_id) if variant_id else product
        if record is None:
            return False
        record.is_active = is_active
        return True

    def soft_delete(self, product_id: str, variant_id: Optional[str] = None) -> bool:
        """Mark a product or variant as deleted; it stays readable by lookup"""
        product = self.products.get(product_id)
        if not product:
            return False
        record = product.get_variant(variant_id) if variant_id else product
        if record is None:
            return False
        record.deleted_at = datetime.utcnow()
        return True


# Singleton instance
product_db = ProductDatabase()
