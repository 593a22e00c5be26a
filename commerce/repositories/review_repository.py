"""
Review repository
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from commerce.core.logger import logger
from commerce.repositories.base_repository import BaseRepository


class ReviewRepository(BaseRepository):
    """Repository for review documents"""

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def find_by_product_id(
        self,
        product_id: str,
        correlation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.find_many(
            {"product_id": product_id},
            sort=[("created_at", -1)],
            correlation_id=correlation_id,
        )

    async def get_rating_summary(
        self,
        product_id: str,
        correlation_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Average rating and review count for a product.

        Returns:
            {"average_rating": float, "review_count": int}; zeros when unreviewed
        """
        pipeline = [
            {"$match": {"product_id": product_id}},
            {"$group": {
                "_id": "$product_id",
                "average_rating": {"$avg": "$rating"},
                "review_count": {"$sum": 1},
            }},
        ]

        try:
            cursor = self.collection.aggregate(pipeline)
            results = await cursor.to_list(length=1)
        except PyMongoError as e:
            logger.error(
                "Error aggregating review statistics",
                correlation_id=correlation_id,
                error=e,
                metadata={"productId": product_id},
            )
            raise

        if not results:
            return {"average_rating": 0.0, "review_count": 0}

        return {
            "average_rating": round(results[0]["average_rating"], 2),
            "review_count": results[0]["review_count"],
        }

    async def delete_by_product_id(self, product_id: str, correlation_id: Optional[str] = None) -> int:
        return await self.delete_many({"product_id": product_id}, correlation_id)
