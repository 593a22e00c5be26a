"""
Base repository pattern for MongoDB data access.

Provides generic CRUD operations for MongoDB collections with async/await support.
All domain-specific repositories inherit from BaseRepository.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from commerce.core.logger import logger


class BaseRepository:
    """
    Base repository providing generic CRUD operations for MongoDB collections.

    Usage:
        class ReviewRepository(BaseRepository):
            def __init__(self, collection: AsyncIOMotorCollection):
                super().__init__(collection)
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self.collection_name = collection.name

    @staticmethod
    def _to_object_id(document_id: Union[str, ObjectId]) -> Union[str, ObjectId]:
        """Use an ObjectId where the string is one; other ids are stored verbatim"""
        if isinstance(document_id, str) and ObjectId.is_valid(document_id):
            return ObjectId(document_id)
        return document_id

    async def create(self, document: Dict[str, Any], correlation_id: Optional[str] = None) -> str:
        """
        Create a new document.

        Returns:
            str: ID of created document
        """
        try:
            result = await self.collection.insert_one(document)
            logger.info(
                f"Document created in {self.collection_name}",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "documentId": str(result.inserted_id)},
            )
            return str(result.inserted_id)
        except PyMongoError as e:
            logger.error(
                f"Failed to create document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name},
            )
            raise

    async def find_by_id(
        self,
        document_id: str,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Find a document by ID.

        Returns:
            Optional[Dict]: Document if found, None otherwise
        """
        return await self.find_one({"_id": self._to_object_id(document_id)}, correlation_id)

    async def find_one(
        self,
        query: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Find a single document matching query."""
        try:
            return await self.collection.find_one(query)
        except PyMongoError as e:
            logger.error(
                f"Error finding document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query},
            )
            raise

    async def find_many(
        self,
        query: Dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        correlation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Find multiple documents matching query.

        Args:
            query: MongoDB query filter
            skip: Number of documents to skip
            limit: Maximum number of documents to return
            sort: Sort specification
            correlation_id: Optional correlation ID for logging

        Returns:
            List[Dict]: List of matching documents
        """
        try:
            cursor = self.collection.find(query)

            if sort:
                cursor = cursor.sort(sort)

            cursor = cursor.skip(skip)

            if limit:
                cursor = cursor.limit(limit)

            documents = await cursor.to_list(length=limit)

            logger.debug(
                f"Found {len(documents)} documents in {self.collection_name}",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "count": len(documents)},
            )
            return documents

        except PyMongoError as e:
            logger.error(
                f"Error finding documents in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query},
            )
            raise

    async def update(
        self,
        document_id: str,
        update_data: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> bool:
        """
        Update a document by ID.

        Args:
            document_id: Document ID to update
            update_data: Update operations (should include $set, $push, etc.)

        Returns:
            bool: True if a document matched
        """
        try:
            result = await self.collection.update_one(
                {"_id": self._to_object_id(document_id)},
                update_data
            )
            if result.matched_count == 0:
                logger.warning(
                    f"No document matched in {self.collection_name}",
                    correlation_id=correlation_id,
                    metadata={"collection": self.collection_name, "documentId": document_id},
                )
            return result.matched_count > 0

        except PyMongoError as e:
            logger.error(
                f"Error updating document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "documentId": document_id},
            )
            raise

    async def delete(self, document_id: str, correlation_id: Optional[str] = None) -> bool:
        """Delete a document by ID."""
        try:
            result = await self.collection.delete_one({"_id": self._to_object_id(document_id)})
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(
                f"Error deleting document from {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "documentId": document_id},
            )
            raise

    async def delete_many(self, query: Dict[str, Any], correlation_id: Optional[str] = None) -> int:
        """Delete every document matching query; returns the deleted count."""
        try:
            result = await self.collection.delete_many(query)
            return result.deleted_count
        except PyMongoError as e:
            logger.error(
                f"Error deleting documents from {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query},
            )
            raise

    async def count(self, query: Dict[str, Any], correlation_id: Optional[str] = None) -> int:
        """Count documents matching query."""
        try:
            return await self.collection.count_documents(query)
        except PyMongoError as e:
            logger.error(
                f"Error counting documents in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name},
            )
            raise
