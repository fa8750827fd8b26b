from sqlalchemy.orm import Session
from typing import Optional
from storefront.models.coupon import Coupon
from storefront.schemas.coupon import CouponCreate
from storefront.utils.logger import logger


def get_active_coupon(db: Session, user_id: int) -> Optional[Coupon]:
    return db.query(Coupon).filter(
        Coupon.user_id == user_id,
        Coupon.is_active.is_(True)
    ).order_by(Coupon.id.desc()).first()


def get_user_coupon_by_code(db: Session, user_id: int, code: str) -> Optional[Coupon]:
    return db.query(Coupon).filter(
        Coupon.code == code,
        Coupon.user_id == user_id,
        Coupon.is_active.is_(True)
    ).first()


def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
    return db.query(Coupon).filter(Coupon.code == code).first()


def create_coupon(db: Session, coupon: CouponCreate) -> Coupon:
    try:
        db_coupon = Coupon(**coupon.model_dump())
        db.add(db_coupon)
        db.commit()
        db.refresh(db_coupon)
        return db_coupon
    except Exception as e:
        logger.error(f"Error creating coupon {coupon.code}: {e}")
        db.rollback()
        raise


def deactivate_coupon(db: Session, db_coupon: Coupon) -> Coupon:
    try:
        db_coupon.is_active = False
        db.commit()
        db.refresh(db_coupon)
        return db_coupon
    except Exception as e:
        logger.error(f"Error deactivating coupon {db_coupon.code}: {e}")
        db.rollback()
        raise
