"""Product variant (inventory) model"""
from pydantic import BaseModel, ConfigDict, Field


class ProductVariant(BaseModel):
    """
    A purchasable color/size combination of a product.

    Serialized over RPC with camelCase keys (productId, sellingPrice).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    product_id: str = Field(alias="productId")
    color: str
    size: str
    selling_price: float = Field(alias="sellingPrice", ge=0)
    quantity: int = Field(default=0, ge=0)

    @classmethod
    def from_document(cls, document: dict) -> "ProductVariant":
        return cls(
            id=str(document["_id"]),
            product_id=str(document["product_id"]),
            color=document["color"],
            size=document["size"],
            selling_price=document["selling_price"],
            quantity=document.get("quantity", 0),
        )
