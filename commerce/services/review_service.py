"""
Review service

Every change to a product's reviews republishes the product's recomputed
rating statistics to the product service.
"""

from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from commerce.core.errors import NotFoundError, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import EventEnvelope
from commerce.messaging.event_dispatcher import EventHandler
from commerce.messaging.i_message_broker import IMessageBroker
from commerce.messaging.message_types import Destination, EventType
from commerce.models.review import ReviewAnalysis, ReviewCreate, ReviewDB
from commerce.repositories.review_repository import ReviewRepository
from commerce.services.base_service import IService


class ReviewService(IService):
    """Review CRUD plus rating aggregation"""

    def __init__(self, repository: ReviewRepository, broker: IMessageBroker):
        self.repository = repository
        self.broker = broker

    async def get_review_by_id(self, review_id: str, correlation_id: Optional[str] = None) -> ReviewDB:
        document = await self.repository.find_by_id(review_id, correlation_id)
        if not document:
            raise NotFoundError("Review not found", details={"reviewId": review_id})
        return ReviewDB.from_document(document)

    async def get_reviews_by_product_id(
        self,
        product_id: str,
        correlation_id: Optional[str] = None
    ) -> List[ReviewDB]:
        documents = await self.repository.find_by_product_id(product_id, correlation_id)
        return [ReviewDB.from_document(doc) for doc in documents]

    async def get_review_analysis_by_product_id(
        self,
        product_id: str,
        correlation_id: Optional[str] = None
    ) -> ReviewAnalysis:
        summary = await self.repository.get_rating_summary(product_id, correlation_id)
        return ReviewAnalysis(product_id=product_id, **summary)

    async def create_review(self, review_data: ReviewCreate, correlation_id: Optional[str] = None) -> ReviewDB:
        review = ReviewDB(id="", **review_data.model_dump())
        document = review.model_dump(exclude={"id"})
        review.id = await self.repository.create(document, correlation_id)

        await self.publish_review_event(review.product_id, EventType.CREATE_REVIEW, correlation_id)
        return review

    async def update_review_content(
        self,
        review_id: str,
        rating: int,
        comment: Optional[str],
        correlation_id: Optional[str] = None
    ) -> ReviewDB:
        """
        Replace rating and comment of an existing review.

        Raises:
            NotFoundError: If the review does not exist
            ValidationError: If the rating is out of range
        """
        existing = await self.get_review_by_id(review_id, correlation_id)
        try:
            updated = ReviewDB.model_validate({**existing.model_dump(), "rating": rating, "comment": comment})
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid review content",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        await self.repository.update(
            review_id,
            {"$set": {"rating": updated.rating, "comment": updated.comment}},
            correlation_id,
        )
        # an edit is announced like a new review; the product only needs fresh statistics
        await self.publish_review_event(updated.product_id, EventType.CREATE_REVIEW, correlation_id)
        return updated

    async def delete_review(self, review_id: str, correlation_id: Optional[str] = None) -> None:
        """
        Raises:
            NotFoundError: If the review does not exist
        """
        review = await self.get_review_by_id(review_id, correlation_id)
        await self.repository.delete(review_id, correlation_id)
        await self.publish_review_event(review.product_id, EventType.DELETE_REVIEW, correlation_id)

    async def delete_reviews_of_product(self, product_id: str, correlation_id: Optional[str] = None) -> int:
        deleted = await self.repository.delete_by_product_id(product_id, correlation_id)
        logger.info(
            f"Deleted {deleted} reviews of product {product_id}",
            correlation_id=correlation_id,
            metadata={"productId": product_id, "deleted": deleted},
        )
        return deleted

    async def publish_review_event(
        self,
        product_id: str,
        event_type: EventType,
        correlation_id: Optional[str] = None
    ) -> None:
        analysis = await self.get_review_analysis_by_product_id(product_id, correlation_id)
        event = EventEnvelope(
            event=event_type.value,
            data={
                "productId": product_id,
                "averageRating": analysis.average_rating,
                "reviewCount": analysis.review_count,
            },
        )
        await self.broker.publish(Destination.PRODUCT_SERVICE.value, event, correlation_id=correlation_id)

    async def _on_product_deleted(self, data: Dict[str, Any]) -> None:
        await self.delete_reviews_of_product(data["productId"])

    @property
    def event_handlers(self) -> Mapping[EventType, EventHandler]:
        return {EventType.DELETE_PRODUCT: self._on_product_deleted}
