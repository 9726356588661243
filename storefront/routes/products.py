"""Product API routes"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, Depends

from ..core.context import RequestContext
from ..models.product import Product, ProductCategory, ProductSearchResponse
from ..database.products import product_db
from ..security.session import optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=ProductSearchResponse)
async def search_products(
    query: Optional[str] = Query(None, description="Search query"),
    category: Optional[ProductCategory] = Query(None, description="Filter by category"),
    in_stock_only: bool = Query(True, description="Only show in-stock items"),
    limit: int = Query(20, ge=1, le=100, description="Max results"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
    user: Optional[RequestContext] = Depends(optional_user),
):
    """
    Search available products in the catalog.

    Works with or without a session.
    """
    products, total = product_db.search_products(
        query=query,
        category=category,
        in_stock_only=in_stock_only,
        limit=limit,
        offset=offset,
    )
    logger.debug(
        f"Product search by {user.user_id if user else 'anonymous'}: "
        f"query={query!r} total={total}"
    )

    return ProductSearchResponse(
        products=products,
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/categories", response_model=list[str])
async def list_categories():
    """List all product categories"""
    return [c.value for c in ProductCategory]


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str):
    """Get a product by ID"""
    product = product_db.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
