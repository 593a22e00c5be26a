"""Unit tests for ReviewService and the review statistics flow"""
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from commerce.core.errors import NotFoundError, ValidationError
from commerce.messaging.envelope import EventEnvelope
from commerce.messaging.event_dispatcher import EventDispatcher
from commerce.models.review import ReviewCreate
from commerce.repositories.product_repository import ProductRepository
from commerce.repositories.review_repository import ReviewRepository
from commerce.services.product_service import ProductService
from commerce.services.review_service import ReviewService
from tests.conftest import PRODUCT_ID

REVIEW_ID = "65a0c0ffee0000000000abcd"


@pytest.fixture
def mock_repository():
    repo = AsyncMock(spec=ReviewRepository)
    repo.create.return_value = REVIEW_ID
    repo.get_rating_summary.return_value = {"average_rating": 4.5, "review_count": 2}
    return repo


@pytest.fixture
def review_service(mock_repository, broker):
    return ReviewService(mock_repository, broker)


@pytest.fixture
def review_doc():
    return {
        "_id": ObjectId(REVIEW_ID),
        "product_id": PRODUCT_ID,
        "user_id": "user123",
        "rating": 4,
        "comment": "Fits well",
    }


class TestReviewChanges:

    @pytest.mark.asyncio
    async def test_create_review_publishes_statistics(self, review_service, broker):
        review = await review_service.create_review(
            ReviewCreate(product_id=PRODUCT_ID, user_id="user123", rating=5, comment="Great!")
        )

        assert review.id == REVIEW_ID
        [message] = broker.published_to("PRODUCT_SERVICE")
        assert message.envelope.event == "CREATE_REVIEW"
        assert message.envelope.data == {"productId": PRODUCT_ID, "averageRating": 4.5, "reviewCount": 2}

    @pytest.mark.asyncio
    async def test_delete_review_publishes_product_id(self, review_service, mock_repository, broker, review_doc):
        mock_repository.find_by_id.return_value = review_doc
        mock_repository.get_rating_summary.return_value = {"average_rating": 0.0, "review_count": 0}

        await review_service.delete_review(REVIEW_ID)

        mock_repository.delete.assert_awaited_once_with(REVIEW_ID, None)
        [message] = broker.published
        assert message.envelope.event == "DELETE_REVIEW"
        assert message.envelope.data["productId"] == PRODUCT_ID
        assert message.envelope.data["reviewCount"] == 0

    @pytest.mark.asyncio
    async def test_delete_missing_review(self, review_service, mock_repository, broker):
        mock_repository.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await review_service.delete_review(REVIEW_ID)
        assert broker.published == []

    @pytest.mark.asyncio
    async def test_update_review_content(self, review_service, mock_repository, broker, review_doc):
        mock_repository.find_by_id.return_value = review_doc

        updated = await review_service.update_review_content(REVIEW_ID, 2, "Shrank in the wash")

        assert updated.rating == 2
        mock_repository.update.assert_awaited_once_with(
            REVIEW_ID, {"$set": {"rating": 2, "comment": "Shrank in the wash"}}, None
        )
        assert broker.published[0].envelope.event == "CREATE_REVIEW"

    @pytest.mark.asyncio
    async def test_update_with_invalid_rating(self, review_service, mock_repository, review_doc):
        mock_repository.find_by_id.return_value = review_doc
        with pytest.raises(ValidationError):
            await review_service.update_review_content(REVIEW_ID, 9, "Too good")
        mock_repository.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_review_analysis(self, review_service):
        analysis = await review_service.get_review_analysis_by_product_id(PRODUCT_ID)
        assert analysis.product_id == PRODUCT_ID
        assert analysis.average_rating == 4.5
        assert analysis.review_count == 2

    @pytest.mark.asyncio
    async def test_delete_product_event_removes_reviews(self, review_service, mock_repository):
        await review_service.subscribe_events(
            EventEnvelope(event="DELETE_PRODUCT", data={"productId": PRODUCT_ID}).encode()
        )
        mock_repository.delete_by_product_id.assert_awaited_once_with(PRODUCT_ID, None)


class TestReviewStatisticsFlow:

    @pytest.mark.asyncio
    async def test_new_review_updates_product_rating(self, review_service, broker):
        product_repository = AsyncMock(spec=ProductRepository)
        product_service = ProductService(product_repository, broker)
        await EventDispatcher(broker, "PRODUCT_SERVICE", product_service).start()

        await review_service.create_review(ReviewCreate(product_id=PRODUCT_ID, user_id="user123", rating=5))
        await broker.drain()

        product_repository.update_review_statistics.assert_awaited_once_with(PRODUCT_ID, 4.5, 2, None)
