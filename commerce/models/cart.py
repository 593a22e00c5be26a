"""Shopping cart models"""
from typing import List, Optional

from pydantic import BaseModel, Field


class CartItemRequest(BaseModel):
    """Item as submitted by a shopper: the variant is identified by color and size"""

    product_id: str
    product_name: str
    product_photo_url: Optional[str] = None
    color: str
    size: str
    quantity: int = Field(default=1, ge=1)


class CartItem(BaseModel):
    """Stored cart line; live price/color/size come from inventory"""

    product_id: str
    product_name: str
    product_photo_url: Optional[str] = None
    product_variant_id: str
    quantity: int = Field(ge=1)


class Cart(BaseModel):
    user_id: str
    item_list: List[CartItem] = Field(default_factory=list)


class CartItemView(CartItem):
    color: Optional[str] = None
    size: Optional[str] = None
    selling_price: Optional[float] = None


class CartView(BaseModel):
    user_id: str
    item_list: List[CartItemView] = Field(default_factory=list)
