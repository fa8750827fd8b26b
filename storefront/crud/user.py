from sqlalchemy.orm import Session
from typing import Optional
from storefront.models.user import User
from storefront.schemas.user import UserSignup
from storefront.services.password_service import hash_password
from storefront.utils.logger import logger


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, user: UserSignup) -> User:
    try:
        db_user = User(
            name=user.name,
            email=user.email.lower(),
            password=hash_password(user.password)
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user
    except Exception as e:
        logger.error(f"Error creating user {user.email}: {e}")
        db.rollback()
        raise
