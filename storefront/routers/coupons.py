from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from storefront.crud import coupon as coupon_crud
from storefront.crud import user as user_crud
from storefront.database import get_db
from storefront.dependencies import get_admin_user, get_current_user
from storefront.models.user import User
from storefront.schemas.coupon import Coupon, CouponCreate, CouponValidate, CouponValidation
from storefront.utils.logger import logger

router = APIRouter(prefix="/coupons", tags=["coupons"])


def _is_expired(expiration_date: datetime) -> bool:
    # SQLite hands back naive datetimes
    if expiration_date.tzinfo is None:
        expiration_date = expiration_date.replace(tzinfo=timezone.utc)
    return expiration_date < datetime.now(timezone.utc)


@router.get("", response_model=Optional[Coupon])
async def get_coupon(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """The user's active coupon, or null"""
    try:
        return coupon_crud.get_active_coupon(db, user.id)
    except Exception as e:
        logger.error(f"Error in get_coupon: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.post("/validate", response_model=CouponValidation)
async def validate_coupon(
    payload: CouponValidate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        coupon = coupon_crud.get_user_coupon_by_code(db, user.id, payload.code)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")

        if _is_expired(coupon.expiration_date):
            coupon_crud.deactivate_coupon(db, coupon)
            raise HTTPException(status_code=404, detail="Coupon expired")

        return {
            "message": "Coupon is valid",
            "code": coupon.code,
            "discount_percentage": coupon.discount_percentage
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in validate_coupon: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@router.post("", response_model=Coupon, status_code=201, dependencies=[Depends(get_admin_user)])
async def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    """Issue a coupon to a user"""
    try:
        if not user_crud.get_user(db, payload.user_id):
            raise HTTPException(status_code=404, detail="User not found")
        if coupon_crud.get_coupon_by_code(db, payload.code):
            raise HTTPException(status_code=400, detail="Coupon code already exists")
        return coupon_crud.create_coupon(db, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in create_coupon: {e}")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")
