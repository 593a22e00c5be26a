"""
Filter factories: map request attribute names to filter instances
"""

from typing import Any, Callable, Dict, List, Optional

from commerce.services.filters.base import Filter, FilterSource, VariantOptions, as_value_list
from commerce.services.filters.local import FilterByCategories, FilterByPrice
from commerce.services.filters.variant import FilterByColor, FilterBySize

FilterFactory = Callable[[str, Any], Optional[Filter]]


def entity_field_filter_factory(name: str, value: Any) -> Optional[Filter]:
    """Filters evaluated against product fields"""
    if name == "category":
        return FilterByCategories(value)
    if name == "priceRange":
        return FilterByPrice(value)
    return None


def rpc_variant_filter_factory(name: str, value: Any) -> Optional[Filter]:
    """Filters on variant attributes resolved by the inventory service"""
    if name == "color":
        return FilterByColor(value)
    if name == "size":
        return FilterBySize(value)
    return None


def _is_empty(value: Any) -> bool:
    if isinstance(value, (list, tuple, set)):
        return not as_value_list(value)
    return value is None or value == ""


def create_filters_from_request(criteria: Dict[str, Any], factory: FilterFactory) -> List[Filter]:
    """Build filters for every known, non-empty criterion; others are skipped"""
    filters = []
    for name, value in (criteria or {}).items():
        if _is_empty(value):
            continue
        filter_ = factory(name, value)
        if filter_ is not None:
            filters.append(filter_)
    return filters


def create_variant_options(filters: List[Filter]) -> Optional[VariantOptions]:
    """Fold every remote filter into one options dict; None when there is nothing to resolve"""
    options: VariantOptions = {}
    for filter_ in filters:
        if filter_.source is FilterSource.REMOTE:
            filter_.extend_filter_options(options)
    return options or None
