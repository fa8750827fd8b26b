from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ProductBase(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)
    category: str = Field(min_length=1)


class ProductCreate(ProductBase):
    # URL or base64 data URI
    image: Optional[str] = None


class Product(ProductBase):
    id: int = Field(alias="_id")
    image: str = ""
    is_featured: bool = Field(default=False, alias="isFeatured")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = {
        "from_attributes": True,
        "populate_by_name": True
    }


class ProductList(BaseModel):
    products: List[Product]


class ProductSummary(BaseModel):
    id: int = Field(alias="_id")
    name: str
    description: str
    image: str = ""
    price: float

    model_config = {
        "from_attributes": True,
        "populate_by_name": True
    }
