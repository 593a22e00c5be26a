"""
Filters evaluated against the product collection itself
"""

from typing import Any, Dict, Optional, Tuple

from commerce.core.errors import ValidationError
from commerce.services.filters.base import Filter, FilterKind, as_value_list


class FilterByCategories(Filter):
    """Product belongs to any of the given categories"""

    kind = FilterKind.CATEGORY

    def __init__(self, categories: Any):
        self.categories = as_value_list(categories)

    async def build_predicate(self) -> Dict[str, Any]:
        return {"categories": {"$in": self.categories}}


class FilterByPrice(Filter):
    """
    Price within an inclusive range.

    Accepts "min-max", "min-", "-max" or a [min, max] pair (either bound may be None).
    """

    kind = FilterKind.PRICE_RANGE

    def __init__(self, price_range: Any):
        self.min_price, self.max_price = self.parse_range(price_range)

    @staticmethod
    def _parse_bound(raw: Any, price_range: Any) -> Optional[float]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        try:
            bound = float(raw)
        except (TypeError, ValueError):
            raise ValidationError("Invalid price range", details={"priceRange": price_range})
        if bound < 0:
            raise ValidationError("Price bounds must not be negative", details={"priceRange": price_range})
        return bound

    @classmethod
    def parse_range(cls, price_range: Any) -> Tuple[Optional[float], Optional[float]]:
        if isinstance(price_range, str):
            parts = price_range.split("-")
        elif isinstance(price_range, (list, tuple)):
            parts = list(price_range)
        else:
            raise ValidationError("Invalid price range", details={"priceRange": price_range})

        if len(parts) != 2:
            raise ValidationError("Invalid price range", details={"priceRange": price_range})

        min_price = cls._parse_bound(parts[0], price_range)
        max_price = cls._parse_bound(parts[1], price_range)

        if min_price is None and max_price is None:
            raise ValidationError("Price range needs at least one bound", details={"priceRange": price_range})
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("Minimum price exceeds maximum price", details={"priceRange": price_range})
        return min_price, max_price

    async def build_predicate(self) -> Dict[str, Any]:
        price_query = {}
        if self.min_price is not None:
            price_query["$gte"] = self.min_price
        if self.max_price is not None:
            price_query["$lte"] = self.max_price
        return {"price": price_query}
