from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional, List
from storefront.models.product import Product
from storefront.schemas.product import ProductCreate
from storefront.utils.logger import logger


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_products(db: Session) -> List[Product]:
    return db.query(Product).order_by(Product.id).all()


def get_featured_products(db: Session) -> List[Product]:
    return db.query(Product).filter(Product.is_featured.is_(True)).order_by(Product.id).all()


def get_products_by_category(db: Session, category: str) -> List[Product]:
    return db.query(Product).filter(Product.category == category).order_by(Product.id).all()


def get_random_products(db: Session, size: int = 4) -> List[Product]:
    return db.query(Product).order_by(func.random()).limit(size).all()


def create_product(db: Session, product: ProductCreate, image: str = "") -> Product:
    try:
        db_product = Product(**product.model_dump(exclude={"image"}), image=image)
        db.add(db_product)
        db.commit()
        db.refresh(db_product)
        return db_product
    except Exception as e:
        logger.error(f"Error creating product: {e}")
        db.rollback()
        raise


def toggle_featured(db: Session, db_product: Product) -> Product:
    try:
        db_product.is_featured = not db_product.is_featured
        db.commit()
        db.refresh(db_product)
        return db_product
    except Exception as e:
        logger.error(f"Error toggling product {db_product.id}: {e}")
        db.rollback()
        raise


def delete_product(db: Session, db_product: Product) -> None:
    try:
        db.delete(db_product)
        db.commit()
    except Exception as e:
        logger.error(f"Error deleting product {db_product.id}: {e}")
        db.rollback()
        raise
