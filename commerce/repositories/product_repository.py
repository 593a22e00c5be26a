"""
Product repository for domain-specific data access operations.

Extends BaseRepository with:
- Predicate-based paginated retrieval
- Review statistics updates
"""

from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from commerce.core.logger import logger
from commerce.repositories.base_repository import BaseRepository


class ProductRepository(BaseRepository):
    """Repository for product documents"""

    def __init__(self, collection: AsyncIOMotorCollection):
        """Initialize product repository with products collection."""
        super().__init__(collection)

    @staticmethod
    def build_query(predicates: List[Dict[str, Any]]) -> Dict[str, Any]:
        """AND every non-empty predicate together; no predicates matches everything"""
        predicates = [p for p in predicates if p]
        if not predicates:
            return {}
        if len(predicates) == 1:
            return predicates[0]
        return {"$and": predicates}

    async def find_matching(
        self,
        predicates: List[Dict[str, Any]],
        page: int = 1,
        page_size: int = 20,
        order_by: Optional[str] = None,
        sort_by: str = "asc",
        correlation_id: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Find one page of products matching all predicates.

        Args:
            predicates: MongoDB filter fragments, combined with $and
            page: Page number (1-indexed)
            page_size: Items per page
            order_by: Field to sort by; None keeps natural order
            sort_by: "asc" or "desc"
            correlation_id: Correlation ID for logging

        Returns:
            Tuple of (list of products, total count)
        """
        query = self.build_query(predicates)

        # Build sort criteria; _id breaks ties between equal sort keys
        sort_criteria = []
        if order_by:
            sort_criteria.append((order_by, -1 if sort_by == "desc" else 1))
        if order_by != "_id":
            sort_criteria.append(("_id", 1))

        logger.debug(
            "Retrieving products",
            correlation_id=correlation_id,
            metadata={"query": query, "page": page, "pageSize": page_size, "sort": sort_criteria},
        )

        products = await self.find_many(
            query,
            skip=(page - 1) * page_size,
            limit=page_size,
            sort=sort_criteria,
            correlation_id=correlation_id,
        )
        total_count = await self.count(query, correlation_id=correlation_id)
        return products, total_count

    async def update_review_statistics(
        self,
        product_id: str,
        average_rating: float,
        review_count: int,
        correlation_id: Optional[str] = None
    ) -> bool:
        """Overwrite the rating and reviewed counters; False if the product is gone"""
        return await self.update(
            product_id,
            {"$set": {"rating": average_rating, "reviewed": review_count}},
            correlation_id=correlation_id,
        )
