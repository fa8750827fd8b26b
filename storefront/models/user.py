from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from storefront.database import Base

USER_ROLE = "user"
ADMIN_ROLE = "admin"


class User(Base):

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=USER_ROLE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
