"""Product model and related schemas"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def utc_now():
    return datetime.now(timezone.utc)


class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    categories: List[str] = Field(default_factory=list)
    photo_urls: List[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    categories: Optional[List[str]] = None
    photo_urls: Optional[List[str]] = None


class ProductDB(ProductBase):
    """Product document as stored, with review statistics kept in sync by events"""

    id: str
    rating: float = 0.0
    reviewed: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_document(cls, document: dict) -> "ProductDB":
        data = {k: v for k, v in document.items() if k != "_id"}
        return cls(id=str(document["_id"]), **data)


class ProductPage(BaseModel):
    items: List[ProductDB]
    total: int
    page: int
    page_size: int
    total_pages: int
