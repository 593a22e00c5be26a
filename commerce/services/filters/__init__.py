from .base import Filter, FilterKind, FilterSource, VariantOptions
from .factory import (
    create_filters_from_request,
    create_variant_options,
    entity_field_filter_factory,
    rpc_variant_filter_factory,
)
from .local import FilterByCategories, FilterByPrice
from .variant import FilterByColor, FilterBySize, FilterByVariantOptions

__all__ = [
    "Filter",
    "FilterByCategories",
    "FilterByColor",
    "FilterByPrice",
    "FilterBySize",
    "FilterByVariantOptions",
    "FilterKind",
    "FilterSource",
    "VariantOptions",
    "create_filters_from_request",
    "create_variant_options",
    "entity_field_filter_factory",
    "rpc_variant_filter_factory",
]
