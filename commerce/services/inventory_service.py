"""
Inventory service: product variants (color/size/price/stock)
"""

from typing import Any, Dict, List, Mapping, Optional

from commerce.core.errors import NotFoundError, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import RPCRequest
from commerce.messaging.event_dispatcher import EventHandler
from commerce.messaging.message_types import EventType, RPCType
from commerce.models.variant import ProductVariant
from commerce.repositories.variant_repository import VariantRepository
from commerce.services.base_service import IService
from commerce.services.filters.base import as_value_list

VARIANT_OPTION_FIELDS = ("color", "size")


class InventoryService(IService):
    """Answers variant lookups for the product and shopping services"""

    def __init__(self, repository: VariantRepository):
        self.repository = repository

    async def get_variant_by_product_color_size(
        self,
        product_id: str,
        color: str,
        size: str,
        correlation_id: Optional[str] = None
    ) -> ProductVariant:
        """
        Raises:
            NotFoundError: If the product has no such variant
        """
        document = await self.repository.find_by_product_color_size(product_id, color, size, correlation_id)
        if not document:
            raise NotFoundError(
                "Product variant not found",
                details={"productId": product_id, "color": color, "size": size},
            )
        return ProductVariant.from_document(document)

    async def get_variants_by_ids(
        self,
        variant_ids: List[str],
        correlation_id: Optional[str] = None
    ) -> List[ProductVariant]:
        documents = await self.repository.find_by_ids(variant_ids, correlation_id)
        return [ProductVariant.from_document(doc) for doc in documents]

    async def get_product_ids_by_variant_options(
        self,
        options: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> List[str]:
        """
        Products having a variant that matches every option.

        Raises:
            ValidationError: If an option is not a variant attribute
        """
        unknown = set(options) - set(VARIANT_OPTION_FIELDS)
        if unknown:
            raise ValidationError("Unknown variant options", details={"options": sorted(unknown)})

        normalized = {name: as_value_list(values) for name, values in options.items()}
        product_ids = await self.repository.find_product_ids_by_options(normalized, correlation_id)
        logger.debug(
            f"Variant options matched {len(product_ids)} products",
            correlation_id=correlation_id,
            metadata={"options": normalized},
        )
        return product_ids

    async def delete_variants_of_product(self, product_id: str, correlation_id: Optional[str] = None) -> int:
        deleted = await self.repository.delete_by_product_id(product_id, correlation_id)
        logger.info(
            f"Deleted {deleted} variants of product {product_id}",
            correlation_id=correlation_id,
            metadata={"productId": product_id, "deleted": deleted},
        )
        return deleted

    async def _on_product_deleted(self, data: Dict[str, Any]) -> None:
        await self.delete_variants_of_product(data["productId"])

    @property
    def event_handlers(self) -> Mapping[EventType, EventHandler]:
        return {EventType.DELETE_PRODUCT: self._on_product_deleted}

    async def serve_rpc_request(self, request: RPCRequest) -> Any:
        data = request.data
        kind = request.kind
        if kind is RPCType.GET_PRODUCT_VARIANT_BY_PRODUCT_ID_COLOR_SIZE:
            return await self.get_variant_by_product_color_size(
                data.get("productId"), data.get("color"), data.get("size")
            )
        if kind is RPCType.GET_PRODUCT_VARIANT_LIST_BY_ID_LIST:
            return await self.get_variants_by_ids(data.get("productVariantIdList") or [])
        if kind is RPCType.GET_PRODUCT_ID_LIST_BY_VARIANT_OPTIONS:
            return await self.get_product_ids_by_variant_options(data)
        return None
