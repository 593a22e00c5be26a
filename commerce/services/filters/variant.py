"""
Filters on variant attributes owned by the inventory service
"""

from typing import Any, Dict, List, Optional

from commerce.core.logger import logger
from commerce.messaging.envelope import RPCRequest
from commerce.messaging.message_types import Destination, RPCType
from commerce.messaging.rpc_gateway import RPCGateway
from commerce.repositories.base_repository import BaseRepository
from commerce.services.filters.base import Filter, FilterKind, FilterSource, VariantOptions, as_value_list


class _VariantAttributeFilter(Filter):
    source = FilterSource.REMOTE

    def __init__(self, values: Any):
        self.values = as_value_list(values)

    def extend_filter_options(self, options: VariantOptions) -> None:
        merged = options.setdefault(self.kind.value, [])
        for value in self.values:
            if value not in merged:
                merged.append(value)

    async def build_predicate(self) -> Dict[str, Any]:
        raise TypeError(
            f"{self.kind.value} filter must be merged into FilterByVariantOptions before querying"
        )


class FilterByColor(_VariantAttributeFilter):
    kind = FilterKind.VARIANT_COLOR


class FilterBySize(_VariantAttributeFilter):
    kind = FilterKind.VARIANT_SIZE


class FilterByVariantOptions(Filter):
    """
    Resolves the merged variant options to product ids with one RPC call to the
    inventory service, then narrows the product query to those ids.
    """

    kind = FilterKind.VARIANT_OPTIONS

    def __init__(self, options: VariantOptions, gateway: RPCGateway, timeout: Optional[float] = None):
        self.options = {name: list(values) for name, values in options.items()}
        self.gateway = gateway
        self.timeout = timeout

    async def resolve_product_ids(self) -> List[str]:
        """
        Raises:
            RPCTimeoutError: Inventory did not answer; never degrade to unfiltered results
            TransportError: Broker unavailable
        """
        request = RPCRequest(
            type=RPCType.GET_PRODUCT_ID_LIST_BY_VARIANT_OPTIONS.value,
            data=self.options,
        )
        product_ids = await self.gateway.call(Destination.INVENTORY_RPC.value, request, self.timeout)
        product_ids = product_ids or []

        logger.debug(
            f"Variant options matched {len(product_ids)} products",
            metadata={"options": self.options},
        )
        return product_ids

    async def build_predicate(self) -> Dict[str, Any]:
        product_ids = await self.resolve_product_ids()
        return {"_id": {"$in": [BaseRepository._to_object_id(pid) for pid in product_ids]}}
