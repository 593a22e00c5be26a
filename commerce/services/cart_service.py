"""
Shopping cart service

Carts store only variant ids and quantities; price, color and size are read
live from the inventory service over RPC.
"""

from typing import Any, Dict, List, Mapping, Optional

from commerce.core.errors import RPCTimeoutError, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import RPCRequest
from commerce.messaging.event_dispatcher import EventHandler
from commerce.messaging.message_types import Destination, EventType, RPCType
from commerce.messaging.rpc_gateway import RPCGateway
from commerce.models.cart import Cart, CartItem, CartItemRequest, CartItemView, CartView
from commerce.repositories.cart_repository import CartRepository
from commerce.services.base_service import IService


class CartService(IService):
    """Cart operations for the shopping service"""

    def __init__(self, repository: CartRepository, gateway: RPCGateway, rpc_timeout: Optional[float] = None):
        self.repository = repository
        self.gateway = gateway
        self.rpc_timeout = rpc_timeout

    async def _load_cart(self, user_id: str, correlation_id: Optional[str] = None) -> Optional[Cart]:
        document = await self.repository.get_cart_by_user_id(user_id, correlation_id)
        if not document:
            return None
        return Cart.model_validate(document)

    async def _fetch_variants(
        self,
        variant_ids: List[str],
        correlation_id: Optional[str] = None
    ) -> Dict[str, Dict[str, Any]]:
        """Live variant data keyed by variant id; empty when inventory does not answer in time"""
        if not variant_ids:
            return {}

        request = RPCRequest(
            type=RPCType.GET_PRODUCT_VARIANT_LIST_BY_ID_LIST.value,
            data={"productVariantIdList": variant_ids},
        )
        try:
            variants = await self.gateway.call(Destination.INVENTORY_RPC.value, request, self.rpc_timeout)
        except RPCTimeoutError as e:
            logger.warning(
                "Inventory did not answer, returning cart without live variant data",
                correlation_id=correlation_id,
                metadata={"variantIds": variant_ids, "error": e.message},
            )
            return {}
        return {variant["id"]: variant for variant in variants or []}

    async def get_cart_by_user_id(self, user_id: str, correlation_id: Optional[str] = None) -> Optional[CartView]:
        """
        Cart joined with live variant data.

        Returns:
            CartView, or None if the user has no cart

        Raises:
            TransportError: If the broker is unavailable
        """
        cart = await self._load_cart(user_id, correlation_id)
        if cart is None:
            return None

        variants = await self._fetch_variants([item.product_variant_id for item in cart.item_list], correlation_id)

        items = []
        for item in cart.item_list:
            variant = variants.get(item.product_variant_id, {})
            items.append(CartItemView(
                **item.model_dump(),
                color=variant.get("color"),
                size=variant.get("size"),
                selling_price=variant.get("sellingPrice"),
            ))
        return CartView(user_id=cart.user_id, item_list=items)

    async def add_item_to_cart(
        self,
        user_id: str,
        item_request: CartItemRequest,
        correlation_id: Optional[str] = None
    ) -> Optional[CartView]:
        """
        Add a variant to the cart, merging quantities with an existing line.

        Returns:
            The updated cart, or None if no variant matches product/color/size
            (the cart is left untouched)

        Raises:
            RPCTimeoutError: If inventory does not answer the variant lookup
        """
        request = RPCRequest(
            type=RPCType.GET_PRODUCT_VARIANT_BY_PRODUCT_ID_COLOR_SIZE.value,
            data={
                "productId": item_request.product_id,
                "color": item_request.color,
                "size": item_request.size,
            },
        )
        variant = await self.gateway.call(Destination.INVENTORY_RPC.value, request, self.rpc_timeout)
        if not variant:
            logger.info(
                "No variant matches cart item",
                correlation_id=correlation_id,
                metadata={"userId": user_id, "item": request.data},
            )
            return None

        new_item = CartItem(
            product_id=item_request.product_id,
            product_name=item_request.product_name,
            product_photo_url=item_request.product_photo_url,
            product_variant_id=variant["id"],
            quantity=item_request.quantity,
        )

        cart = await self._load_cart(user_id, correlation_id)
        if cart is None:
            cart = Cart(user_id=user_id, item_list=[new_item])
            await self.repository.create_cart(cart.model_dump(), correlation_id)
        else:
            existing = [item for item in cart.item_list if item.product_variant_id == new_item.product_variant_id]
            if existing:
                new_item.quantity += existing[0].quantity
                cart.item_list.remove(existing[0])
            # the most recently touched line goes last
            cart.item_list.append(new_item)
            await self.repository.update_cart(user_id, cart.model_dump(), correlation_id)

        return await self.get_cart_by_user_id(user_id, correlation_id)

    async def remove_item_from_cart(
        self,
        user_id: str,
        product_variant_id: str,
        correlation_id: Optional[str] = None
    ) -> Optional[CartView]:
        """Returns None if there is no cart or no such line"""
        cart = await self._load_cart(user_id, correlation_id)
        if cart is None:
            return None

        remaining = [item for item in cart.item_list if item.product_variant_id != product_variant_id]
        if len(remaining) == len(cart.item_list):
            return None

        cart.item_list = remaining
        await self.repository.update_cart(user_id, cart.model_dump(), correlation_id)
        return await self.get_cart_by_user_id(user_id, correlation_id)

    async def update_item_quantity(
        self,
        user_id: str,
        product_variant_id: str,
        quantity: int,
        correlation_id: Optional[str] = None
    ) -> Optional[CartItem]:
        """
        Returns the updated line, or None if there is no cart or no such line

        Raises:
            ValidationError: If quantity is below 1
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})

        cart = await self._load_cart(user_id, correlation_id)
        if cart is None:
            return None

        for item in cart.item_list:
            if item.product_variant_id == product_variant_id:
                item.quantity = quantity
                await self.repository.update_cart(user_id, cart.model_dump(), correlation_id)
                return item
        return None

    async def remove_product_from_carts(self, product_id: str, correlation_id: Optional[str] = None) -> int:
        modified = await self.repository.remove_product_from_all_carts(product_id)
        logger.info(
            f"Removed product {product_id} from {modified} carts",
            correlation_id=correlation_id,
            metadata={"productId": product_id, "carts": modified},
        )
        return modified

    async def _on_product_deleted(self, data: Dict[str, Any]) -> None:
        await self.remove_product_from_carts(data["productId"])

    @property
    def event_handlers(self) -> Mapping[EventType, EventHandler]:
        return {EventType.DELETE_PRODUCT: self._on_product_deleted}
