"""
Cart repository (shopping service)
"""

from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from commerce.repositories.base_repository import BaseRepository


class CartRepository(BaseRepository):
    """One cart document per user, keyed by user_id"""

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def get_cart_by_user_id(
        self,
        user_id: str,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.find_one({"user_id": user_id}, correlation_id)

    async def create_cart(self, cart: Dict[str, Any], correlation_id: Optional[str] = None) -> Dict[str, Any]:
        await self.create(dict(cart), correlation_id)
        return cart

    async def update_cart(
        self,
        user_id: str,
        cart: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": {"item_list": cart["item_list"]}},
            return_document=ReturnDocument.AFTER,
        )

    async def remove_product_from_all_carts(self, product_id: str) -> int:
        result = await self.collection.update_many(
            {"item_list.product_id": product_id},
            {"$pull": {"item_list": {"product_id": product_id}}},
        )
        return result.modified_count
