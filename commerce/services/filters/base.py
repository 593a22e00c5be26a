"""
Filter strategy base

A filter either evaluates against the product store directly (LOCAL) or
describes variant attributes that live in the inventory service (REMOTE).
Remote filters never produce a predicate themselves; they fold their criterion
into a shared options dict that is resolved by a single RPC call.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List

VariantOptions = Dict[str, List[str]]


class FilterKind(str, Enum):
    CATEGORY = "category"
    PRICE_RANGE = "priceRange"
    VARIANT_COLOR = "color"
    VARIANT_SIZE = "size"
    VARIANT_OPTIONS = "variantOptions"


class FilterSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Filter(ABC):
    kind: FilterKind
    source: FilterSource = FilterSource.LOCAL

    def extend_filter_options(self, options: VariantOptions) -> None:
        raise TypeError(f"{self.kind.value} filter does not contribute variant options")

    @abstractmethod
    async def build_predicate(self) -> Dict[str, Any]:
        """MongoDB filter fragment for the product query"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value})"


def as_value_list(value: Any) -> List[str]:
    """Normalize a scalar or list criterion into a de-duplicated list of strings"""
    values = value if isinstance(value, (list, tuple, set)) else [value]
    result: List[str] = []
    for item in values:
        if item is None or item == "":
            continue
        item = str(item)
        if item not in result:
            result.append(item)
    return result
