"""
Product service layer - business logic for product operations.

Handles validation, orchestration between the product repository and the
retrieval mediator, and the product service's side of the messaging
contract (review statistics events, GET_PRODUCT_BY_ID RPC).
"""

from typing import Any, Dict, List, Mapping, Optional

from commerce.core.config import config
from commerce.core.errors import NotFoundError, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import EventEnvelope, RPCRequest
from commerce.messaging.event_dispatcher import EventHandler
from commerce.messaging.i_message_broker import IMessageBroker
from commerce.messaging.message_types import Destination, EventType, RPCType
from commerce.messaging.rpc_gateway import RPCGateway
from commerce.models.product import ProductCreate, ProductDB, ProductPage, ProductUpdate, utc_now
from commerce.models.retrieval import RetrievalRequest
from commerce.repositories.product_repository import ProductRepository
from commerce.services.base_service import IService
from commerce.services.filters import (
    Filter,
    FilterByVariantOptions,
    create_filters_from_request,
    create_variant_options,
    entity_field_filter_factory,
    rpc_variant_filter_factory,
)
from commerce.services.product_retrieve_mediator import ProductRetrieveMediator

# Services holding data keyed by product id
PRODUCT_DEPENDENTS = (
    Destination.REVIEW_SERVICE,
    Destination.INVENTORY_SERVICE,
    Destination.SHOPPING_SERVICE,
)


class ProductService(IService):
    """
    Service class for product business logic.

    Separates business logic from message handling and data access.
    """

    def __init__(
        self,
        repository: ProductRepository,
        broker: IMessageBroker,
        gateway: Optional[RPCGateway] = None,
        rpc_timeout: Optional[float] = None
    ):
        """
        Initialize product service.

        Args:
            repository: Product repository for data access
            broker: Broker used to publish product lifecycle events
            gateway: RPC gateway for variant filters; required only when
                filtering by color or size
            rpc_timeout: Deadline for variant filter RPCs
        """
        self.repository = repository
        self.broker = broker
        self.gateway = gateway
        self.rpc_timeout = rpc_timeout
        self.mediator = ProductRetrieveMediator(repository)

    async def get_product_by_id(self, product_id: str, correlation_id: Optional[str] = None) -> ProductDB:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If no product has this ID
        """
        document = await self.repository.find_by_id(product_id, correlation_id)
        if not document:
            raise NotFoundError("Product id did not match", details={"productId": product_id})
        return ProductDB.from_document(document)

    async def create_product(self, product_data: ProductCreate, correlation_id: Optional[str] = None) -> ProductDB:
        now = utc_now()
        document = product_data.model_dump()
        document.update({"rating": 0.0, "reviewed": 0, "created_at": now, "updated_at": now})

        product_id = await self.repository.create(document, correlation_id)
        logger.info(
            f"Product created: {product_data.name}",
            correlation_id=correlation_id,
            metadata={"productId": product_id},
        )
        return await self.get_product_by_id(product_id, correlation_id)

    async def update_product(
        self,
        product_id: str,
        product_data: ProductUpdate,
        correlation_id: Optional[str] = None
    ) -> ProductDB:
        """
        Apply the fields set on `product_data`.

        Raises:
            NotFoundError: If no product has this ID
            ValidationError: If no field is set
        """
        changes = product_data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("Product update body is empty")

        changes["updated_at"] = utc_now()
        if not await self.repository.update(product_id, {"$set": changes}, correlation_id):
            raise NotFoundError("Product id did not match", details={"productId": product_id})
        return await self.get_product_by_id(product_id, correlation_id)

    async def delete_product(self, product_id: str, correlation_id: Optional[str] = None) -> None:
        """
        Delete a product and tell every dependent service to drop its data.

        Raises:
            NotFoundError: If no product has this ID
        """
        if not await self.repository.delete(product_id, correlation_id):
            raise NotFoundError("Product id did not match", details={"productId": product_id})

        event = EventEnvelope(event=EventType.DELETE_PRODUCT.value, data={"productId": product_id})
        for destination in PRODUCT_DEPENDENTS:
            await self.broker.publish(destination.value, event, correlation_id=correlation_id)

        logger.info(
            f"Product deleted: {product_id}",
            correlation_id=correlation_id,
            metadata={"productId": product_id, "notified": [d.value for d in PRODUCT_DEPENDENTS]},
        )

    async def update_product_review_statistics(
        self,
        product_id: str,
        average_rating: float,
        review_count: int,
        correlation_id: Optional[str] = None
    ) -> bool:
        """Store recomputed review statistics; a missing product is ignored"""
        updated = await self.repository.update_review_statistics(
            product_id, average_rating, review_count, correlation_id
        )
        if updated:
            logger.info(
                "Product review statistics updated",
                correlation_id=correlation_id,
                metadata={"productId": product_id, "rating": average_rating, "reviewed": review_count},
            )
        return updated

    async def paginate_products(
        self,
        page: int = 1,
        page_size: int = config.default_page_size,
        order_by: Optional[str] = None,
        sort_by: str = "asc",
        correlation_id: Optional[str] = None
    ) -> ProductPage:
        return await self.mediator.retrieve_products(
            [], page, page_size, order_by, sort_by, correlation_id
        )

    def build_filters(self, criteria: Dict[str, Any]) -> List[Filter]:
        """
        Local filters for every criterion, plus one FilterByVariantOptions
        standing for all variant criteria.
        """
        filters = create_filters_from_request(criteria, entity_field_filter_factory)
        options = create_variant_options(create_filters_from_request(criteria, rpc_variant_filter_factory))
        if options:
            if self.gateway is None:
                raise ValidationError("Variant filters are not available", details={"options": options})
            filters.append(FilterByVariantOptions(options, self.gateway, self.rpc_timeout))
        return filters

    async def retrieve_products_by_filters(
        self,
        request: RetrievalRequest,
        correlation_id: Optional[str] = None
    ) -> ProductPage:
        """
        Filter, sort and paginate products.

        Raises:
            ValidationError: Malformed filter value
            RPCTimeoutError: Inventory did not resolve variant filters in time
        """
        filters = self.build_filters(request.filters)
        return await self.mediator.retrieve_products(
            filters,
            request.page,
            request.page_size,
            request.order_by,
            request.sort_by.value,
            correlation_id,
        )

    async def _on_review_changed(self, data: Dict[str, Any]) -> None:
        await self.update_product_review_statistics(
            data["productId"],
            data["averageRating"],
            data["reviewCount"],
        )

    @property
    def event_handlers(self) -> Mapping[EventType, EventHandler]:
        return {
            EventType.CREATE_REVIEW: self._on_review_changed,
            EventType.DELETE_REVIEW: self._on_review_changed,
        }

    async def serve_rpc_request(self, request: RPCRequest) -> Any:
        if request.kind is RPCType.GET_PRODUCT_BY_ID:
            return await self.get_product_by_id(request.data.get("id"))
        return None
