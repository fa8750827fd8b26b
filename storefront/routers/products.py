# routers/products.py
"""
Product catalog router

Public reads (featured, category, recommendations) and admin-only
create/delete/toggle. The featured list is cached; every toggle rewrites it.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from storefront.crud import product as product_crud
from storefront.database import get_db
from storefront.dependencies import get_admin_user, get_cache, get_media_service
from storefront.schemas.product import Product, ProductCreate, ProductList, ProductSummary
from storefront.schemas.response import MessageResponse
from storefront.services import catalog_service
from storefront.services.media_service import MediaService
from storefront.utils.logger import logger

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductList, dependencies=[Depends(get_admin_user)])
async def get_all_products(db: Session = Depends(get_db)):
    try:
        return {"products": product_crud.get_products(db)}
    except Exception as e:
        logger.error(f"Error in get_all_products: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.get("/featured", response_model=List[Product])
async def get_featured_products(db: Session = Depends(get_db), cache=Depends(get_cache)):
    try:
        return await catalog_service.get_featured_products(db, cache)
    except Exception as e:
        logger.error(f"Error in get_featured_products: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.get("/recommendations", response_model=List[ProductSummary])
async def get_recommended_products(db: Session = Depends(get_db)):
    """Four random products"""
    try:
        return product_crud.get_random_products(db, size=4)
    except Exception as e:
        logger.error(f"Error in get_recommended_products: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.get("/category/{category}", response_model=ProductList)
async def get_products_by_category(category: str, db: Session = Depends(get_db)):
    try:
        return {"products": product_crud.get_products_by_category(db, category)}
    except Exception as e:
        logger.error(f"Error in get_products_by_category: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.post("", response_model=Product, status_code=201, dependencies=[Depends(get_admin_user)])
async def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    media: MediaService = Depends(get_media_service)
):
    """
    Create a product.

    The image is uploaded to Cloudinary when credentials are configured. If the
    upload is skipped or fails, the image string sent by the client is stored
    as is.
    """
    try:
        image_url = None
        if product.image:
            if media.is_configured:
                image_url = await media.upload(product.image, folder="products")
            else:
                logger.warning("Cloudinary credentials missing or look like placeholders; skipping image upload")

            if not image_url:
                logger.warning("Storing client-supplied image as the upload was skipped or failed")

        db_product = product_crud.create_product(db, product, image=image_url or product.image or "")
        logger.info(f"Created product {db_product.id}")
        return db_product
    except Exception as e:
        logger.error(f"Error in create_product: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.delete("/{product_id}", response_model=MessageResponse, dependencies=[Depends(get_admin_user)])
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    media: MediaService = Depends(get_media_service)
):
    try:
        db_product = product_crud.get_product(db, product_id)
        if not db_product:
            raise HTTPException(status_code=404, detail="Product not found")

        if db_product.image and media.is_configured:
            await media.destroy(db_product.image, folder="products")

        was_featured = db_product.is_featured
        product_crud.delete_product(db, db_product)
        if was_featured:
            await catalog_service.update_featured_products_cache(db, cache)

        return {"message": "Product deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in delete_product: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.patch("/{product_id}/toggle-featured", response_model=Product, dependencies=[Depends(get_admin_user)])
async def toggle_featured_product(
    product_id: int,
    db: Session = Depends(get_db),
    cache=Depends(get_cache)
):
    try:
        db_product = product_crud.get_product(db, product_id)
        if not db_product:
            raise HTTPException(status_code=404, detail="Product not found")

        updated = product_crud.toggle_featured(db, db_product)
        await catalog_service.update_featured_products_cache(db, cache)
        return updated
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in toggle_featured_product: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")
