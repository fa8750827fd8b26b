from sqlalchemy.orm import Session
from typing import Optional, List
from storefront.models.cart import CartItem
from storefront.utils.logger import logger


def get_cart_items(db: Session, user_id: int) -> List[CartItem]:
    return db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.id).all()


def get_cart_item(db: Session, user_id: int, product_id: int) -> Optional[CartItem]:
    return db.query(CartItem).filter(
        CartItem.user_id == user_id,
        CartItem.product_id == product_id
    ).first()


def add_to_cart(db: Session, user_id: int, product_id: int) -> CartItem:
    try:
        item = get_cart_item(db, user_id, product_id)
        if item:
            item.quantity += 1
        else:
            item = CartItem(user_id=user_id, product_id=product_id, quantity=1)
            db.add(item)
        db.commit()
        db.refresh(item)
        return item
    except Exception as e:
        logger.error(f"Error adding product {product_id} to cart of user {user_id}: {e}")
        db.rollback()
        raise


def update_quantity(db: Session, item: CartItem, quantity: int) -> Optional[CartItem]:
    """Set the quantity of a cart line, removing it at zero"""
    try:
        if quantity == 0:
            db.delete(item)
            db.commit()
            return None
        item.quantity = quantity
        db.commit()
        db.refresh(item)
        return item
    except Exception as e:
        logger.error(f"Error updating cart item {item.id}: {e}")
        db.rollback()
        raise


def remove_from_cart(db: Session, user_id: int, product_id: Optional[int] = None) -> int:
    try:
        query = db.query(CartItem).filter(CartItem.user_id == user_id)
        if product_id is not None:
            query = query.filter(CartItem.product_id == product_id)
        removed = query.delete(synchronize_session=False)
        db.commit()
        return removed
    except Exception as e:
        logger.error(f"Error removing items from cart of user {user_id}: {e}")
        db.rollback()
        raise
