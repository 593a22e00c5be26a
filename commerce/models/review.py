"""Review models"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    product_id: str
    user_id: str
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewDB(ReviewCreate):
    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_document(cls, document: dict) -> "ReviewDB":
        data = {k: v for k, v in document.items() if k != "_id"}
        return cls(id=str(document["_id"]), **data)


class ReviewAnalysis(BaseModel):
    """Aggregate statistics published to the product service"""

    product_id: str
    average_rating: float = 0.0
    review_count: int = 0
