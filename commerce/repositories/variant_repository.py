"""
Product variant repository (inventory service)
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from commerce.repositories.base_repository import BaseRepository


class VariantRepository(BaseRepository):
    """Repository for product variant documents"""

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def find_by_product_color_size(
        self,
        product_id: str,
        color: str,
        size: str,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.find_one(
            {"product_id": product_id, "color": color, "size": size},
            correlation_id,
        )

    async def find_by_ids(
        self,
        variant_ids: List[str],
        correlation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        if not variant_ids:
            return []
        ids = [self._to_object_id(variant_id) for variant_id in variant_ids]
        return await self.find_many({"_id": {"$in": ids}}, correlation_id=correlation_id)

    async def find_product_ids_by_options(
        self,
        options: Dict[str, List[str]],
        correlation_id: Optional[str] = None
    ) -> List[str]:
        """
        Distinct product ids having at least one variant matching every option.

        Args:
            options: Attribute name (color, size) to accepted values
        """
        query = {name: {"$in": values} for name, values in options.items() if values}
        product_ids = await self.collection.distinct("product_id", query)
        return [str(product_id) for product_id in product_ids]

    async def delete_by_product_id(self, product_id: str, correlation_id: Optional[str] = None) -> int:
        return await self.delete_many({"product_id": product_id}, correlation_id)
