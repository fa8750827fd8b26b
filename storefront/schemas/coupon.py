from pydantic import BaseModel, Field
from datetime import datetime


class CouponCreate(BaseModel):
    code: str = Field(min_length=1)
    discount_percentage: float = Field(gt=0, le=100, alias="discountPercentage")
    expiration_date: datetime = Field(alias="expirationDate")
    user_id: int = Field(alias="userId")

    model_config = {
        "populate_by_name": True
    }


class CouponValidate(BaseModel):
    code: str


class Coupon(BaseModel):
    code: str
    discount_percentage: float = Field(alias="discountPercentage")
    expiration_date: datetime = Field(alias="expirationDate")
    is_active: bool = Field(alias="isActive")

    model_config = {
        "from_attributes": True,
        "populate_by_name": True
    }


class CouponValidation(BaseModel):
    message: str
    code: str
    discount_percentage: float = Field(alias="discountPercentage")

    model_config = {
        "populate_by_name": True
    }
