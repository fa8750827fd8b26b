from pydantic import BaseModel, Field
from typing import Optional

from storefront.schemas.product import Product


class CartAdd(BaseModel):
    product_id: int = Field(alias="productId")

    model_config = {
        "populate_by_name": True
    }


class CartRemove(BaseModel):
    product_id: Optional[int] = Field(default=None, alias="productId")

    model_config = {
        "populate_by_name": True
    }


class CartQuantityUpdate(BaseModel):
    quantity: int = Field(ge=0)


class CartLine(Product):
    quantity: int
