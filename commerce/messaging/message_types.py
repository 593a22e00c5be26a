"""
Message vocabulary shared by every service

Routing destinations, event kinds and RPC request kinds are closed
enumerations; publishers and subscribers must agree on them. Values received
off the wire that are not listed here resolve to None and are ignored.
"""

from enum import Enum
from typing import Optional


class Destination(str, Enum):
    """Routing keys on the shared exchange, one per service and protocol"""

    PRODUCT_SERVICE = "PRODUCT_SERVICE"
    INVENTORY_SERVICE = "INVENTORY_SERVICE"
    REVIEW_SERVICE = "REVIEW_SERVICE"
    SHOPPING_SERVICE = "SHOPPING_SERVICE"
    PRODUCT_RPC = "PRODUCT_RPC"
    INVENTORY_RPC = "INVENTORY_RPC"


class _ClosedEnum(str, Enum):
    @classmethod
    def parse(cls, value: Optional[str]):
        """Resolve a wire value, returning None for unknown kinds"""
        try:
            return cls(value)
        except ValueError:
            return None


class EventType(_ClosedEnum):
    """Pub/sub event kinds (version 1)"""

    CREATE_REVIEW = "CREATE_REVIEW"
    DELETE_REVIEW = "DELETE_REVIEW"
    DELETE_PRODUCT = "DELETE_PRODUCT"


class RPCType(_ClosedEnum):
    """RPC request kinds (version 1)"""

    GET_PRODUCT_BY_ID = "GET_PRODUCT_BY_ID"
    GET_PRODUCT_VARIANT_BY_PRODUCT_ID_COLOR_SIZE = "GET_PRODUCT_VARIANT_BY_PRODUCT_ID_COLOR_SIZE"
    GET_PRODUCT_VARIANT_LIST_BY_ID_LIST = "GET_PRODUCT_VARIANT_LIST_BY_ID_LIST"
    GET_PRODUCT_ID_LIST_BY_VARIANT_OPTIONS = "GET_PRODUCT_ID_LIST_BY_VARIANT_OPTIONS"
