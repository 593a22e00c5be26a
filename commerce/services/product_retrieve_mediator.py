"""
Product retrieval mediator

Turns a set of filters into one paginated, sorted query against the product
repository.
"""

import math
from typing import List, Optional

from commerce.core.logger import logger
from commerce.models.product import ProductDB, ProductPage
from commerce.repositories.product_repository import ProductRepository
from commerce.services.filters.base import Filter


class ProductRetrieveMediator:
    """Builds filter predicates and runs the combined query"""

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    async def retrieve_products(
        self,
        filters: List[Filter],
        page: int = 1,
        page_size: int = 20,
        order_by: Optional[str] = None,
        sort_by: str = "asc",
        correlation_id: Optional[str] = None
    ) -> ProductPage:
        """
        Retrieve one page of products matching every filter.

        Args:
            filters: Local filters (remote ones must already be folded into
                a FilterByVariantOptions)
            page: Page number (1-indexed)
            page_size: Items per page
            order_by: Product field to sort by
            sort_by: "asc" or "desc"
            correlation_id: Correlation ID for logging

        Returns:
            ProductPage

        Raises:
            RPCTimeoutError: A variant filter could not be resolved in time
        """
        predicates = [await filter_.build_predicate() for filter_ in filters]

        documents, total = await self.repository.find_matching(
            predicates,
            page=page,
            page_size=page_size,
            order_by=order_by,
            sort_by=sort_by,
            correlation_id=correlation_id,
        )

        logger.info(
            f"Retrieved {len(documents)} of {total} products",
            correlation_id=correlation_id,
            metadata={"filters": [repr(f) for f in filters], "page": page, "pageSize": page_size},
        )

        return ProductPage(
            items=[ProductDB.from_document(doc) for doc in documents],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )
