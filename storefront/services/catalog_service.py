import json
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.crud import product as product_crud
from storefront.schemas.product import Product
from storefront.utils.logger import logger

FEATURED_PRODUCTS_KEY = "featured_products"


def serialize_products(products) -> List[Dict[str, Any]]:
    return [Product.model_validate(p).model_dump(mode="json", by_alias=True) for p in products]


async def get_featured_products(db: Session, cache) -> List[Dict[str, Any]]:
    """Featured products, served from the cache and filled from the database on a miss"""
    cached = await cache.get(FEATURED_PRODUCTS_KEY)
    if cached:
        return json.loads(cached)

    featured = serialize_products(product_crud.get_featured_products(db))
    await cache.set(FEATURED_PRODUCTS_KEY, json.dumps(featured))
    return featured


async def update_featured_products_cache(db: Session, cache) -> None:
    try:
        featured = serialize_products(product_crud.get_featured_products(db))
        await cache.set(FEATURED_PRODUCTS_KEY, json.dumps(featured))
    except Exception as e:
        logger.error(f"Error updating featured products cache: {e}")
