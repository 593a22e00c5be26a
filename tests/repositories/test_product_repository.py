"""Tests for ProductRepository query building and pagination"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from commerce.repositories.product_repository import ProductRepository
from tests.conftest import PRODUCT_ID


@pytest.fixture
def cursor(product_doc):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[product_doc])
    return cursor


@pytest.fixture
def repository(mock_collection, cursor):
    mock_collection.find.return_value = cursor
    mock_collection.count_documents = AsyncMock(return_value=41)
    return ProductRepository(mock_collection)


class TestBuildQuery:

    def test_no_predicates_match_everything(self):
        assert ProductRepository.build_query([]) == {}

    def test_single_predicate_is_used_as_is(self):
        assert ProductRepository.build_query([{"price": {"$gte": 1}}]) == {"price": {"$gte": 1}}

    def test_predicates_are_anded(self):
        predicates = [{"categories": {"$in": ["shirts"]}}, {"price": {"$lte": 50}}]
        assert ProductRepository.build_query(predicates) == {"$and": predicates}

    def test_empty_predicates_are_dropped(self):
        assert ProductRepository.build_query([{}, {"price": {"$lte": 50}}]) == {"price": {"$lte": 50}}


class TestFindMatching:

    @pytest.mark.asyncio
    async def test_pages_are_one_indexed(self, repository, mock_collection, cursor, product_doc):
        items, total = await repository.find_matching([{"price": {"$lte": 50}}], page=3, page_size=20)

        assert items == [product_doc]
        assert total == 41
        mock_collection.find.assert_called_once_with({"price": {"$lte": 50}})
        cursor.skip.assert_called_once_with(40)
        cursor.limit.assert_called_once_with(20)
        mock_collection.count_documents.assert_awaited_once_with({"price": {"$lte": 50}})

    @pytest.mark.asyncio
    async def test_sort_uses_id_as_tie_breaker(self, repository, cursor):
        await repository.find_matching([], order_by="price", sort_by="desc")
        cursor.sort.assert_called_once_with([("price", -1), ("_id", 1)])

    @pytest.mark.asyncio
    async def test_natural_order_is_stable(self, repository, cursor):
        await repository.find_matching([])
        cursor.sort.assert_called_once_with([("_id", 1)])

    @pytest.mark.asyncio
    async def test_sort_by_id_only_once(self, repository, cursor):
        await repository.find_matching([], order_by="_id", sort_by="desc")
        cursor.sort.assert_called_once_with([("_id", -1)])

    @pytest.mark.asyncio
    async def test_database_errors_propagate(self, repository, cursor):
        cursor.to_list.side_effect = PyMongoError("connection reset")
        with pytest.raises(PyMongoError):
            await repository.find_matching([])


class TestReviewStatistics:

    @pytest.mark.asyncio
    async def test_update_review_statistics(self, repository, mock_collection):
        mock_collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        assert await repository.update_review_statistics(PRODUCT_ID, 4.25, 4) is True
        mock_collection.update_one.assert_awaited_once_with(
            {"_id": ObjectId(PRODUCT_ID)},
            {"$set": {"rating": 4.25, "reviewed": 4}},
        )

    @pytest.mark.asyncio
    async def test_missing_product_is_reported(self, repository, mock_collection):
        mock_collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
        assert await repository.update_review_statistics(PRODUCT_ID, 1.0, 1) is False
