"""Product retrieval (filter + sort + paginate) request"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from commerce.core.config import config
from commerce.core.errors import ValidationError


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RetrievalRequest(BaseModel):
    """
    One inbound product query.

    `page` is 1-indexed. `filters` maps an attribute name (category, priceRange,
    color, size) to a value or list of values; unknown names are ignored.
    """

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=config.default_page_size, ge=1)
    order_by: Optional[str] = None
    sort_by: SortDirection = SortDirection.ASC
    filters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("page_size")
    @classmethod
    def _cap_page_size(cls, value: int) -> int:
        if value > config.max_page_size:
            raise ValueError(f"page_size must not exceed {config.max_page_size}")
        return value

    @field_validator("order_by")
    @classmethod
    def _check_sort_field(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if any(not part or part.startswith("$") for part in value.split(".")):
            raise ValueError(f"order_by is not a valid field path: {value!r}")
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _normalize_sort(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def from_query(cls, params: Dict[str, Any]) -> "RetrievalRequest":
        """
        Build a request from untrusted input.

        Raises:
            ValidationError: If any field is malformed
        """
        try:
            return cls.model_validate(params)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid product retrieval request",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
