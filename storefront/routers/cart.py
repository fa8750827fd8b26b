from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from storefront.crud import cart as cart_crud
from storefront.crud import product as product_crud
from storefront.database import get_db
from storefront.dependencies import get_current_user
from storefront.models.user import User
from storefront.schemas.cart import CartAdd, CartLine, CartQuantityUpdate, CartRemove
from storefront.schemas.product import Product
from storefront.utils.logger import logger

router = APIRouter(prefix="/cart", tags=["cart"])


def _cart_lines(db: Session, user_id: int) -> List[CartLine]:
    lines = []
    for item in cart_crud.get_cart_items(db, user_id):
        if item.product is None:
            continue
        product = Product.model_validate(item.product).model_dump()
        lines.append(CartLine(**product, quantity=item.quantity))
    return lines


@router.get("", response_model=List[CartLine])
async def get_cart_products(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return _cart_lines(db, user.id)
    except Exception as e:
        logger.error(f"Error in get_cart_products: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.post("", response_model=List[CartLine])
async def add_to_cart(
    payload: CartAdd,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add one unit of a product to the cart"""
    try:
        if not product_crud.get_product(db, payload.product_id):
            raise HTTPException(status_code=404, detail="Product not found")
        cart_crud.add_to_cart(db, user.id, payload.product_id)
        return _cart_lines(db, user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in add_to_cart: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.delete("", response_model=List[CartLine])
async def remove_all_from_cart(
    payload: Optional[CartRemove] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove one product from the cart, or empty it when no productId is given"""
    try:
        product_id = payload.product_id if payload else None
        cart_crud.remove_from_cart(db, user.id, product_id)
        return _cart_lines(db, user.id)
    except Exception as e:
        logger.error(f"Error in remove_all_from_cart: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.put("/{product_id}", response_model=List[CartLine])
async def update_quantity(
    product_id: int,
    payload: CartQuantityUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        item = cart_crud.get_cart_item(db, user.id, product_id)
        if not item:
            raise HTTPException(status_code=404, detail="Product not found in cart")
        cart_crud.update_quantity(db, item, payload.quantity)
        return _cart_lines(db, user.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_quantity: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")
